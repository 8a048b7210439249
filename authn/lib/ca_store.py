"""CA store: existence check, lazy generation, and retrieval of the root CA."""

from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm

from .cert_utils import (
    deserialize_certificate,
    deserialize_private_key,
    generate_private_key,
    get_certificate_serial_hex,
    get_common_name,
    key_matches_certificate,
    serialize_certificate,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import CAConfig
from .errors import CaGenerationFailed, CaStoreCorrupt
from .fs_io import atomic_write_dir, read_bytes_if_present, remove_stale_staging
from .locking import PathLock
from .logging_config import LOGGER
from .models import CertificateAuthority
from .serial_counter import SerialCounter

PKI_DIR_NAME = "pki"
CA_DIR_NAME = "ca"
CA_KEY_FILENAME = "ca.key"
CA_CERT_FILENAME = "ca.crt"
CA_SERIAL_FILENAME = "ca.srl"
BOOTSTRAP_LOCK_FILENAME = ".bootstrap.lock"
SERIAL_LOCK_FILENAME = ".serial.lock"


def pki_dir(root_dir: Path) -> Path:
    """Return the directory holding CA material for a root directory."""
    return root_dir / PKI_DIR_NAME


def ca_dir(root_dir: Path) -> Path:
    """Return the directory holding the CA key and certificate pair."""
    return pki_dir(root_dir) / CA_DIR_NAME


class CAStore:
    """Owns the root key and certificate persisted under <root_dir>/pki."""

    def __init__(self, config: CAConfig) -> None:
        """Initialize CA store with configuration.

        Args:
            config: CA configuration with subject, key policy and validity
        """
        self.config = config

    def ensure_ca(self, root_dir: Path) -> CertificateAuthority:
        """Load the CA under root_dir, generating it on first use.

        Both files present: parse and return them unchanged. Both absent:
        generate a self-signed root and publish key and certificate together
        as <root_dir>/pki/ca, return it. Anything in between is surfaced as
        corruption, never overwritten. The whole check-then-generate sequence
        runs under the bootstrap lock.

        Args:
            root_dir: Directory owning exactly one CA

        Returns:
            CertificateAuthority for root_dir

        Raises:
            CaStoreCorrupt: Half-present or unparsable key/certificate
            CaGenerationFailed: Key generation or self-signing failed
            StorageFailure: CA files could not be read or written
        """
        directory = pki_dir(root_dir)
        pair_dir = ca_dir(root_dir)
        key_path = pair_dir / CA_KEY_FILENAME
        cert_path = pair_dir / CA_CERT_FILENAME

        with PathLock(directory / BOOTSTRAP_LOCK_FILENAME):
            key_pem = read_bytes_if_present(key_path)
            cert_pem = read_bytes_if_present(cert_path)

            if key_pem is not None and cert_pem is not None:
                ca = self._load(directory, key_pem, cert_pem)
                LOGGER.info(
                    "found CA %s, reusing: %s",
                    get_common_name(ca.subject),
                    get_certificate_serial_hex(ca.certificate),
                )
                return ca

            if key_pem is not None or cert_pem is not None:
                present = key_path if key_pem is not None else cert_path
                raise CaStoreCorrupt(f"only one half of the CA key pair exists: {present}")

            # Leftovers of a writer killed before publishing the pair
            for stale in remove_stale_staging(pair_dir):
                LOGGER.info("removed interrupted CA staging directory %s", stale)

            LOGGER.info("no CA found, generating in %s", pair_dir)
            ca = self._generate(directory)
            LOGGER.info("CA generated: %s", get_certificate_serial_hex(ca.certificate))
            return ca

    def _serial_counter(self, directory: Path) -> SerialCounter:
        return SerialCounter(
            serial_path=directory / CA_SERIAL_FILENAME,
            lock_path=directory / SERIAL_LOCK_FILENAME,
        )

    def _load(self, directory: Path, key_pem: bytes, cert_pem: bytes) -> CertificateAuthority:
        try:
            private_key = deserialize_private_key(key_pem)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CaStoreCorrupt(f"CA key in {directory} cannot be parsed") from e
        try:
            certificate = deserialize_certificate(cert_pem)
        except ValueError as e:
            raise CaStoreCorrupt(f"CA certificate in {directory} cannot be parsed") from e

        if not key_matches_certificate(private_key, certificate):
            raise CaStoreCorrupt(f"CA key and certificate in {directory} do not match")

        return CertificateAuthority(
            private_key=private_key,
            certificate=certificate,
            storage_dir=directory,
            serial_counter=self._serial_counter(directory),
        )

    def _generate(self, directory: Path) -> CertificateAuthority:
        try:
            private_key = generate_private_key(
                key_type=self.config.key_type,
                key_size=self.config.key_size,
                ec_curve=self.config.ec_curve,
            )
            certificate = CertificateBuilder.build_root_ca(
                subject_dn=self.config.root_dn(),
                private_key=private_key,
                validity_days=self.config.root_validity_days,
                dns_name=self.config.zone,
            )
            key_pem = serialize_private_key(private_key)
            cert_pem = serialize_certificate(certificate)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            LOGGER.error("CA generation failed: %s", e)
            raise CaGenerationFailed(f"failed to generate CA: {e}") from e

        atomic_write_dir(
            directory / CA_DIR_NAME,
            {
                CA_KEY_FILENAME: (key_pem, 0o600),
                CA_CERT_FILENAME: (cert_pem, 0o644),
            },
        )

        return CertificateAuthority(
            private_key=private_key,
            certificate=certificate,
            storage_dir=directory,
            serial_counter=self._serial_counter(directory),
        )
