"""Error taxonomy for CA bootstrap and workload certificate issuance."""


class AuthnError(Exception):
    """Base class for certificate authority and issuance errors."""


class CaGenerationFailed(AuthnError):
    """Raised when root key generation or self-signing fails."""


class CaStoreCorrupt(AuthnError):
    """Raised when persisted CA material is unparsable or only half present."""


class InvalidWorkloadName(AuthnError):
    """Raised when a workload name is not a valid DNS label."""


class KeyGenerationFailed(AuthnError):
    """Raised when a workload key pair cannot be generated."""


class CsrConstructionFailed(AuthnError):
    """Raised when a CSR cannot be built or signed."""


class CsrInvalid(AuthnError):
    """Raised when a CSR signature does not verify or its SAN is unusable."""


class SigningFailed(AuthnError):
    """Raised when the CA fails to sign or encode a leaf certificate."""


class CaExpired(AuthnError):
    """Raised when the CA's own validity window has elapsed."""


class StorageFailure(AuthnError):
    """Raised when key or certificate bytes cannot be read or written."""


class NotReady(AuthnError):
    """Raised when a certificate is requested before the CA is bootstrapped."""
