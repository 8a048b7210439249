"""Data models for the CA, workload requests, and signed certificates."""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TypedDict

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .serial_counter import SerialCounter


class CertificateMetadata(TypedDict):
    """Workload certificate metadata written next to the certificate."""

    serialNumber: str
    workloadName: str
    dnsName: str
    issuer: str
    notBefore: str
    expiry: str
    issuedAt: str


class CertificateUsage(enum.Enum):
    """Extended key usage policy applied to a leaf certificate."""

    SERVER = "server"
    CLIENT = "client"
    MTLS = "mtls"


class AuthenticatorState(enum.Enum):
    """Lifecycle states of the Authenticator."""

    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class CertificateAuthority:
    """Root key and certificate loaded from, or generated into, one directory."""

    private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey = field(repr=False)
    certificate: x509.Certificate
    storage_dir: Path
    serial_counter: SerialCounter = field(repr=False)

    @property
    def subject(self) -> x509.Name:
        return self.certificate.subject

    @property
    def not_valid_before(self) -> datetime:
        return self.certificate.not_valid_before_utc

    @property
    def not_valid_after(self) -> datetime:
        return self.certificate.not_valid_after_utc

    @property
    def certificate_pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)


@dataclass(frozen=True)
class WorkloadIdentityRequest:
    """Freshly generated workload key and the CSR bound to its DNS name."""

    name: str
    dns_name: str
    private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey = field(repr=False)
    csr: x509.CertificateSigningRequest

    @property
    def csr_pem(self) -> bytes:
        return self.csr.public_bytes(serialization.Encoding.PEM)


@dataclass(frozen=True)
class SignedCertificate:
    """Leaf certificate issued by the CA for one workload."""

    name: str
    certificate: x509.Certificate

    @property
    def serial_number(self) -> int:
        return self.certificate.serial_number

    @property
    def issuer(self) -> x509.Name:
        return self.certificate.issuer

    @property
    def not_valid_before(self) -> datetime:
        return self.certificate.not_valid_before_utc

    @property
    def not_valid_after(self) -> datetime:
        return self.certificate.not_valid_after_utc

    @property
    def extensions(self) -> x509.Extensions:
        return self.certificate.extensions

    @property
    def pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    @property
    def der(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.DER)


@dataclass(frozen=True)
class WorkloadIdentity:
    """Issued workload identity: the request that produced it and its certificate."""

    request: WorkloadIdentityRequest
    certificate: SignedCertificate


@dataclass
class WorkloadArtifacts:
    """Paths of a persisted workload identity."""

    directory: Path
    key_path: Path
    csr_path: Path
    cert_path: Path
    metadata_path: Path
    serial_number: str
