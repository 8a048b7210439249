"""Certificate utility functions for key generation, serialization, and metadata extraction."""

import uuid
from datetime import UTC, datetime

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .models import CertificateMetadata

PrivateKey = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey
PublicKey = rsa.RSAPublicKey | ec.EllipticCurvePublicKey

MIN_RSA_KEY_SIZE = 4096

# Curves at or above the strength of 4096-bit RSA
EC_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}


def generate_private_key(
    key_type: str = "rsa",
    key_size: int = 4096,
    ec_curve: str = "secp384r1",
) -> PrivateKey:
    """Generate an RSA or elliptic-curve private key.

    Args:
        key_type: "rsa" or "ec"
        key_size: RSA modulus size in bits, at least 4096
        ec_curve: Curve name for "ec" keys, one of EC_CURVES

    Returns:
        Freshly generated private key

    Raises:
        ValueError: If the key type is unknown or weaker than 4096-bit RSA
    """
    if key_type == "rsa":
        if key_size < MIN_RSA_KEY_SIZE:
            raise ValueError(f"RSA key size {key_size} below minimum {MIN_RSA_KEY_SIZE}")
        return rsa.generate_private_key(
            public_exponent=65537,
            key_size=key_size,
        )
    if key_type == "ec":
        curve = EC_CURVES.get(ec_curve)
        if curve is None:
            raise ValueError(f"unsupported EC curve: {ec_curve}")
        return ec.generate_private_key(curve())
    raise ValueError(f"unsupported key type: {key_type}")


def signing_hash(key: PrivateKey) -> hashes.HashAlgorithm:
    """Pick the digest to sign with for the given key."""
    if isinstance(key, ec.EllipticCurvePrivateKey) and key.curve.key_size > 256:
        return hashes.SHA384()
    return hashes.SHA256()


def serialize_private_key(key: PrivateKey) -> bytes:
    """Serialize private key to PEM format (PKCS8, no encryption)."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def deserialize_private_key(pem_data: bytes) -> PrivateKey:
    """Deserialize private key from PEM bytes."""
    key = serialization.load_pem_private_key(pem_data, password=None)
    if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise ValueError("expected RSA or EC private key")
    return key


def serialize_certificate(cert: x509.Certificate) -> bytes:
    """Serialize certificate to PEM format."""
    return cert.public_bytes(serialization.Encoding.PEM)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes."""
    return x509.load_pem_x509_certificate(pem_data)


def serialize_csr(csr: x509.CertificateSigningRequest) -> bytes:
    """Serialize CSR to PEM format."""
    return csr.public_bytes(serialization.Encoding.PEM)


def public_key_bytes(key: PublicKey) -> bytes:
    """Encode a public key as DER SubjectPublicKeyInfo for comparisons."""
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def key_matches_certificate(key: PrivateKey, cert: x509.Certificate) -> bool:
    """Return True if the certificate was issued for this key's public half."""
    return public_key_bytes(key.public_key()) == public_key_bytes(cert.public_key())


def generate_serial_number() -> int:
    """Generate a random serial number from UUID4.

    Used for the self-signed root only. Leaf serials come from the CA's
    monotonic counter.
    """
    return uuid.uuid4().int


def get_certificate_serial_hex(cert: x509.Certificate) -> str:
    """Return certificate serial number as hex with colons (e.g., 3A:F2:B1:...)."""
    serial_hex = f"{cert.serial_number:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return ":".join(serial_hex[i : i + 2] for i in range(0, len(serial_hex), 2))


def get_common_name(name: x509.Name) -> str:
    """Return the first CN attribute of an X.509 name."""
    attributes = name.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
    if not attributes:
        raise ValueError("name has no CN attribute")
    cn = attributes[0].value
    if not isinstance(cn, str):
        raise ValueError("CN must be string")
    return cn


def get_dns_names(obj: x509.Certificate | x509.CertificateSigningRequest) -> list[str]:
    """Return the DNS entries of the subjectAltName extension, or [] if absent."""
    try:
        san = obj.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return []
    return san.get_values_for_type(x509.DNSName)


def extract_certificate_metadata(cert: x509.Certificate, workload_name: str) -> CertificateMetadata:
    """Extract workload certificate metadata for JSON serialization.

    Args:
        cert: Signed workload certificate
        workload_name: Workload name the certificate was issued for

    Returns:
        CertificateMetadata with serialNumber, DNS name, issuer and timestamps
    """
    dns_names = get_dns_names(cert)
    if len(dns_names) != 1:
        raise ValueError("workload certificate must carry exactly one DNS name")

    return CertificateMetadata(
        serialNumber=get_certificate_serial_hex(cert),
        workloadName=workload_name,
        dnsName=dns_names[0],
        issuer=cert.issuer.rfc4514_string(),
        notBefore=cert.not_valid_before_utc.isoformat(),
        expiry=cert.not_valid_after_utc.isoformat(),
        issuedAt=datetime.now(UTC).isoformat(),
    )


def validate_csr_signature(csr: x509.CertificateSigningRequest) -> bool:
    """Verify CSR self-signature to prove private key possession.

    Args:
        csr: Certificate signing request

    Returns:
        True if signature is valid, False otherwise
    """
    try:
        return csr.is_signature_valid
    except (ValueError, TypeError, UnsupportedAlgorithm):
        return False


def extract_csr_public_key(csr: x509.CertificateSigningRequest) -> PublicKey:
    """Extract public key from CSR.

    Raises:
        ValueError: If public key is neither RSA nor EC
    """
    public_key = csr.public_key()
    if not isinstance(public_key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey)):
        raise ValueError("CSR public key must be RSA or EC type")
    return public_key
