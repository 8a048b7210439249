"""Authenticator: bootstraps the CA and hands out workload certificates."""

import threading
from pathlib import Path

from .ca_store import CAStore
from .certificate_signer import CertificateSigner
from .config import CAConfig
from .csr_issuer import CSRIssuer
from .errors import AuthnError, NotReady
from .logging_config import LOGGER
from .models import (
    AuthenticatorState,
    CertificateAuthority,
    CertificateUsage,
    WorkloadIdentity,
)
from .workload_store import WorkloadStore


class Authenticator:
    """Facade over CA store, CSR issuer and certificate signer.

    Lifecycle: UNINITIALIZED -> BOOTSTRAPPING -> READY, or FAILED. A failed
    bootstrap is sticky: get_ca() raises a copy of the original error until
    retry_bootstrap() is called. Once READY the CA is never replaced, and
    issuance for different workloads runs without holding the state lock.
    """

    def __init__(
        self,
        root_dir: Path,
        config: CAConfig | None = None,
        workload_store: WorkloadStore | None = None,
    ) -> None:
        """Initialize the authenticator without touching storage.

        Args:
            root_dir: Directory owning the CA (material lives in root_dir/pki)
            config: CA configuration; defaults to CAConfig()
            workload_store: Optional store that persists every issued identity
        """
        self.root_dir = Path(root_dir)
        self.config = config or CAConfig()
        self.workload_store = workload_store
        self.ca_store = CAStore(self.config)
        self.csr_issuer = CSRIssuer(self.config)
        self.signer = CertificateSigner(self.config)

        self._lock = threading.Lock()
        self._state = AuthenticatorState.UNINITIALIZED
        self._ca: CertificateAuthority | None = None
        self._failure: AuthnError | None = None

    @property
    def state(self) -> AuthenticatorState:
        return self._state

    @property
    def ca(self) -> CertificateAuthority:
        """Return the bootstrapped CA.

        Raises:
            NotReady: If the CA has not been bootstrapped
        """
        ca = self._ca
        if ca is None:
            raise NotReady(f"CA not bootstrapped (state: {self._state.value})")
        return ca

    def start(self) -> "Authenticator":
        """Bootstrap the CA and return self."""
        self.get_ca()
        return self

    def get_ca(self) -> bytes:
        """Return the CA certificate PEM, bootstrapping on the first call.

        Raises:
            CaGenerationFailed: Bootstrap could not generate the CA
            CaStoreCorrupt: Persisted CA material is inconsistent
            StorageFailure: CA files could not be read or written
        """
        with self._lock:
            if self._state is AuthenticatorState.READY:
                return self.ca.certificate_pem
            if self._state is AuthenticatorState.FAILED and self._failure is not None:
                failure = self._failure
                raise type(failure)(*failure.args) from failure

            self._state = AuthenticatorState.BOOTSTRAPPING
            try:
                ca = self.ca_store.ensure_ca(self.root_dir)
            except AuthnError as e:
                LOGGER.error("CA bootstrap failed: %s", e)
                self._failure = e
                self._state = AuthenticatorState.FAILED
                raise

            self._ca = ca
            self._state = AuthenticatorState.READY
            return ca.certificate_pem

    def retry_bootstrap(self) -> bytes:
        """Clear a sticky failure and attempt the bootstrap again."""
        with self._lock:
            if self._state is AuthenticatorState.FAILED:
                LOGGER.info("retrying CA bootstrap")
                self._state = AuthenticatorState.UNINITIALIZED
                self._failure = None
        return self.get_ca()

    def issue_workload_identity(
        self,
        name: str,
        usage: CertificateUsage = CertificateUsage.MTLS,
    ) -> WorkloadIdentity:
        """Generate a key and CSR for `name` and sign it with the CA.

        Never bootstraps implicitly.

        Raises:
            NotReady: If get_ca() has not succeeded yet
            InvalidWorkloadName: If name is not a valid DNS label
            KeyGenerationFailed, CsrConstructionFailed: Request generation failed
            CsrInvalid, SigningFailed, CaExpired: Signing failed
            StorageFailure: Serial counter or workload files could not be written
        """
        ca = self.ca
        request = self.csr_issuer.issue_request(name)
        certificate = self.signer.sign(request.csr, ca, usage=usage, name=request.name)
        identity = WorkloadIdentity(request=request, certificate=certificate)

        if self.workload_store is not None:
            artifacts = self.workload_store.save(identity)
            LOGGER.info("workload identity persisted: %s", artifacts.cert_path)

        return identity

    def get_workload_certificate(
        self,
        name: str,
        usage: CertificateUsage = CertificateUsage.MTLS,
    ) -> bytes:
        """Return the PEM bytes of a freshly signed certificate for `name`."""
        return self.issue_workload_identity(name, usage=usage).certificate.pem


def start(
    root_dir: Path,
    config: CAConfig | None = None,
    workload_store: WorkloadStore | None = None,
) -> Authenticator:
    """Build an Authenticator for root_dir and bootstrap its CA."""
    return Authenticator(root_dir, config=config, workload_store=workload_store).start()
