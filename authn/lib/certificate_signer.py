"""Signs workload CSRs with the CA key under a fixed extension policy."""

from datetime import UTC, datetime, timedelta

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm

from .cert_utils import (
    extract_csr_public_key,
    get_certificate_serial_hex,
    get_dns_names,
    validate_csr_signature,
)
from .certificate_builder import CertificateBuilder
from .config import CAConfig
from .csr_issuer import canonical_workload_name
from .errors import CaExpired, CsrInvalid, SigningFailed
from .logging_config import LOGGER
from .models import CertificateAuthority, CertificateUsage, SignedCertificate


class CertificateSigner:
    """Turns a verified CSR into a leaf certificate issued by the CA."""

    def __init__(self, config: CAConfig) -> None:
        self.config = config

    def sign(
        self,
        csr: x509.CertificateSigningRequest,
        ca: CertificateAuthority,
        usage: CertificateUsage = CertificateUsage.MTLS,
        name: str | None = None,
    ) -> SignedCertificate:
        """Sign a CSR into a workload certificate.

        The CSR must verify against its own public key and carry exactly one
        DNS subjectAltName inside the configured zone; that name is copied
        into the certificate. Validity starts now and ends after
        workload_validity_days, clamped to the CA's own expiry.

        Args:
            csr: Workload certificate signing request
            ca: Certificate authority that signs
            usage: Extended key usage policy for the leaf
            name: Workload name recorded (lowercased) on the result; defaults to
                the DNS name

        Returns:
            SignedCertificate with a freshly allocated serial

        Raises:
            CaExpired: If the CA's validity window has elapsed
            CsrInvalid: If the CSR signature or SAN is unacceptable
            SigningFailed: If the CA is not yet valid, or building or signing fails
            StorageFailure: If the serial counter cannot be updated
        """
        now = datetime.now(UTC)
        if now >= ca.not_valid_after:
            raise CaExpired(f"CA expired at {ca.not_valid_after.isoformat()}")
        if now < ca.not_valid_before:
            raise SigningFailed(f"CA not valid before {ca.not_valid_before.isoformat()}")

        if not validate_csr_signature(csr):
            raise CsrInvalid("CSR signature validation failed")

        dns_name = self._dns_name(csr)
        try:
            public_key = extract_csr_public_key(csr)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise CsrInvalid(str(e)) from e

        not_before = now
        not_after = min(
            now + timedelta(days=self.config.workload_validity_days),
            ca.not_valid_after,
        )

        serial_number = ca.serial_counter.allocate()

        try:
            certificate = CertificateBuilder.build_workload_certificate(
                subject=csr.subject,
                public_key=public_key,
                dns_name=dns_name,
                issuer_cert=ca.certificate,
                issuer_key=ca.private_key,
                serial_number=serial_number,
                not_before=not_before,
                not_after=not_after,
                usage=usage,
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            LOGGER.error("signing failed for %s: %s", dns_name, e)
            raise SigningFailed(f"failed to sign certificate for {dns_name}: {e}") from e

        LOGGER.info(
            "certificate signed for %s, serial %s",
            dns_name,
            get_certificate_serial_hex(certificate),
        )
        name = canonical_workload_name(name) if name is not None else dns_name
        return SignedCertificate(name=name, certificate=certificate)

    def _dns_name(self, csr: x509.CertificateSigningRequest) -> str:
        try:
            dns_names = get_dns_names(csr)
        except (ValueError, x509.DuplicateExtension) as e:
            raise CsrInvalid(f"CSR extensions cannot be parsed: {e}") from e

        if len(dns_names) != 1:
            raise CsrInvalid(
                f"CSR must carry exactly one DNS subjectAltName, found {len(dns_names)}"
            )

        dns_name = dns_names[0]
        if not dns_name.endswith(f".{self.config.zone}"):
            raise CsrInvalid(f"CSR DNS name {dns_name!r} is outside zone {self.config.zone!r}")
        return dns_name
