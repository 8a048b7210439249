"""Workload key pair and certificate signing request generation."""

import re

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm

from .cert_utils import generate_private_key, signing_hash
from .config import CAConfig
from .errors import CsrConstructionFailed, InvalidWorkloadName, KeyGenerationFailed
from .logging_config import LOGGER
from .models import WorkloadIdentityRequest

_DNS_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")
_MAX_DNS_NAME_LENGTH = 253


def canonical_workload_name(name: str) -> str:
    """Return the lowercase DNS label that identifies a workload.

    Raises:
        InvalidWorkloadName: If name is empty or not a valid DNS label
    """
    if not isinstance(name, str) or not name:
        raise InvalidWorkloadName("workload name must be a non-empty string")

    label = name.lower()
    if not label.isascii() or not _DNS_LABEL.match(label):
        raise InvalidWorkloadName(f"workload name is not a valid DNS label: {name!r}")
    return label


def workload_dns_name(name: str, zone: str) -> str:
    """Map a workload name to its canonical DNS name, `<name>.<zone>`.

    Raises:
        InvalidWorkloadName: If name is not a valid DNS label or the result is too long
    """
    dns_name = f"{canonical_workload_name(name)}.{zone}"
    if len(dns_name) > _MAX_DNS_NAME_LENGTH:
        raise InvalidWorkloadName(
            f"DNS name for {name!r} exceeds {_MAX_DNS_NAME_LENGTH} characters"
        )
    return dns_name


class CSRIssuer:
    """Generates a fresh key and CSR for a named workload."""

    def __init__(self, config: CAConfig) -> None:
        self.config = config

    def issue_request(self, name: str) -> WorkloadIdentityRequest:
        """Generate a workload key pair and a CSR bound to `<name>.<zone>`.

        The DNS name is both the subject CN and the only subjectAltName entry.
        Nothing is persisted.

        Args:
            name: Workload name, a single DNS label

        Returns:
            WorkloadIdentityRequest holding the new key, its CSR and the lowercase name

        Raises:
            InvalidWorkloadName: If name is not a valid DNS label
            KeyGenerationFailed: If the key pair cannot be generated
            CsrConstructionFailed: If the CSR cannot be built or signed
        """
        dns_name = workload_dns_name(name, self.config.zone)
        LOGGER.info("Attempting to generate CSR for: %s", dns_name)

        try:
            private_key = generate_private_key(
                key_type=self.config.key_type,
                key_size=self.config.key_size,
                ec_curve=self.config.ec_curve,
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyGenerationFailed(f"failed to generate key for {dns_name}: {e}") from e

        try:
            csr = (
                x509.CertificateSigningRequestBuilder()
                .subject_name(self.config.dn(dns_name).to_x509_name())
                .add_extension(
                    x509.SubjectAlternativeName([x509.DNSName(dns_name)]),
                    critical=False,
                )
                .sign(private_key, signing_hash(private_key))
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CsrConstructionFailed(f"failed to build CSR for {dns_name}: {e}") from e

        LOGGER.info("CSR generated for: %s", dns_name)
        return WorkloadIdentityRequest(
            name=canonical_workload_name(name),
            dns_name=dns_name,
            private_key=private_key,
            csr=csr,
        )
