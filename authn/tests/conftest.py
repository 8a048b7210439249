"""Test fixtures for authn tests."""

from pathlib import Path

import pytest

from authn.lib.authenticator import Authenticator
from authn.lib.ca_store import CAStore
from authn.lib.certificate_signer import CertificateSigner
from authn.lib.config import CAConfig
from authn.lib.csr_issuer import CSRIssuer
from authn.lib.models import CertificateAuthority


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Return an empty directory to bootstrap a CA into."""
    return tmp_path / "root"


@pytest.fixture
def ca_config() -> CAConfig:
    """Return test CA configuration using P-384 keys."""
    return CAConfig(
        root_validity_days=30,
        workload_validity_days=7,
        key_type="ec",  # Faster than 4096-bit RSA
        ec_curve="secp384r1",
    )


@pytest.fixture
def ca_store(ca_config: CAConfig) -> CAStore:
    """Return a CA store for the test configuration."""
    return CAStore(ca_config)


@pytest.fixture
def ca(ca_store: CAStore, root_dir: Path) -> CertificateAuthority:
    """Bootstrap a CA under root_dir."""
    return ca_store.ensure_ca(root_dir)


@pytest.fixture
def csr_issuer(ca_config: CAConfig) -> CSRIssuer:
    """Return a CSR issuer for the test configuration."""
    return CSRIssuer(ca_config)


@pytest.fixture
def signer(ca_config: CAConfig) -> CertificateSigner:
    """Return a certificate signer for the test configuration."""
    return CertificateSigner(ca_config)


@pytest.fixture
def authenticator(root_dir: Path, ca_config: CAConfig) -> Authenticator:
    """Return an Authenticator whose CA has not been bootstrapped."""
    return Authenticator(root_dir, config=ca_config)
