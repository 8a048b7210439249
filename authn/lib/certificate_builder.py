"""Certificate builder for X.509 certificate construction."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID

from .cert_utils import PrivateKey, PublicKey, generate_serial_number, signing_hash
from .config import DistinguishedName
from .models import CertificateUsage

EXTENDED_KEY_USAGES = {
    CertificateUsage.SERVER: [ExtendedKeyUsageOID.SERVER_AUTH],
    CertificateUsage.CLIENT: [ExtendedKeyUsageOID.CLIENT_AUTH],
    CertificateUsage.MTLS: [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH],
}


class CertificateBuilder:
    """Builds the self-signed root and the leaf certificates it issues."""

    @staticmethod
    def build_root_ca(
        subject_dn: DistinguishedName,
        private_key: PrivateKey,
        validity_days: int,
        dns_name: str,
    ) -> x509.Certificate:
        """Build self-signed Root CA certificate.

        Args:
            subject_dn: Distinguished name for certificate subject
            private_key: Private key for signing
            validity_days: Certificate validity period in days
            dns_name: DNS name placed in the subjectAltName

        Returns:
            Self-signed X.509 certificate with CA extensions
        """
        subject = subject_dn.to_x509_name()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(private_key.public_key())
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=False,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(dns_name)]),
                critical=False,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
        )

        return builder.sign(private_key, signing_hash(private_key))

    @staticmethod
    def build_workload_certificate(
        subject: x509.Name,
        public_key: PublicKey,
        dns_name: str,
        issuer_cert: x509.Certificate,
        issuer_key: PrivateKey,
        serial_number: int,
        not_before: datetime,
        not_after: datetime,
        usage: CertificateUsage = CertificateUsage.MTLS,
    ) -> x509.Certificate:
        """Build a workload (leaf) certificate signed by the CA.

        The extension set is fixed by `usage` and applied once: end-entity
        basic constraints, key usage, extended key usage, a single DNS
        subjectAltName, and subject/authority key identifiers.

        Args:
            subject: Subject name taken from the CSR
            public_key: Workload public key taken from the CSR
            dns_name: The workload's DNS name for the subjectAltName
            issuer_cert: CA certificate (issuer)
            issuer_key: CA private key for signing
            serial_number: Serial allocated by the CA's counter
            not_before: Start of the validity window
            not_after: End of the validity window
            usage: Extended key usage policy

        Returns:
            X.509 leaf certificate signed by the CA
        """
        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer_cert.subject)
            .public_key(public_key)
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    # Key transport only exists for RSA keys
                    key_encipherment=isinstance(public_key, rsa.RSAPublicKey),
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage(EXTENDED_KEY_USAGES[usage]),
                critical=False,
            )
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(dns_name)]),
                critical=False,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
                critical=False,
            )
        )

        return builder.sign(issuer_key, signing_hash(issuer_key))
