"""CA configuration dataclasses."""

from dataclasses import dataclass

from cryptography import x509
from cryptography.x509 import oid


@dataclass
class CAConfig:
    """CA configuration for a single local root and its workload certificates."""

    country: str = "IS"
    state: str = "aurae"
    locality: str = "aurae"
    organization: str = "Aurae"
    organizational_unit: str = "Runtime"
    zone: str = "unsafe.aurae.io"
    root_validity_days: int = 9999
    workload_validity_days: int = 365
    key_type: str = "rsa"
    key_size: int = 4096
    ec_curve: str = "secp384r1"

    def root_dn(self) -> "DistinguishedName":
        """Return the fixed subject identity of the root CA."""
        return self.dn(self.zone)

    def dn(self, common_name: str) -> "DistinguishedName":
        """Build DN from config fields + common_name."""
        return DistinguishedName(
            country=self.country,
            state=self.state,
            locality=self.locality,
            organization=self.organization,
            organizational_unit=self.organizational_unit,
            common_name=common_name,
        )


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name."""

    country: str
    state: str
    locality: str
    organization: str
    organizational_unit: str
    common_name: str

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation."""
        return x509.Name(
            [
                x509.NameAttribute(oid.NameOID.COUNTRY_NAME, self.country),
                x509.NameAttribute(oid.NameOID.STATE_OR_PROVINCE_NAME, self.state),
                x509.NameAttribute(oid.NameOID.LOCALITY_NAME, self.locality),
                x509.NameAttribute(oid.NameOID.ORGANIZATION_NAME, self.organization),
                x509.NameAttribute(oid.NameOID.ORGANIZATIONAL_UNIT_NAME, self.organizational_unit),
                x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name),
            ]
        )
