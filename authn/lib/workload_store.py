"""Persists issued workload identities as key, CSR, certificate, and metadata files."""

import json
from pathlib import Path

from .cert_utils import extract_certificate_metadata, serialize_csr, serialize_private_key
from .csr_issuer import canonical_workload_name
from .fs_io import atomic_write_dir, remove_stale_staging
from .locking import PathLock
from .models import WorkloadArtifacts, WorkloadIdentity

KEY_FILENAME = "server.key"
CSR_FILENAME = "server.csr"
CERT_FILENAME = "server.crt"
METADATA_FILENAME = "metadata.json"


class WorkloadStore:
    """Keeps one directory per workload under output_dir.

    Layout: <output_dir>/<name>/{server.key, server.csr, server.crt, metadata.json},
    where <name> is the lowercase workload label.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def directory_for(self, name: str) -> Path:
        """Return the directory holding a workload's files.

        Raises:
            InvalidWorkloadName: If name is not a valid DNS label
        """
        return self.output_dir / canonical_workload_name(name)

    def artifacts_for(self, name: str, serial_number: str = "") -> WorkloadArtifacts:
        """Return the file paths of a workload's persisted identity."""
        directory = self.directory_for(name)
        return WorkloadArtifacts(
            directory=directory,
            key_path=directory / KEY_FILENAME,
            csr_path=directory / CSR_FILENAME,
            cert_path=directory / CERT_FILENAME,
            metadata_path=directory / METADATA_FILENAME,
            serial_number=serial_number,
        )

    def save(self, identity: WorkloadIdentity) -> WorkloadArtifacts:
        """Persist an issued workload identity, replacing any earlier one.

        The four files are published together, so a reader never finds a key
        next to a certificate from a different issuance.

        Raises:
            StorageFailure: If the file set cannot be written; any earlier set is kept
        """
        name = identity.request.name
        certificate = identity.certificate.certificate
        metadata = extract_certificate_metadata(certificate, workload_name=name)
        artifacts = self.artifacts_for(name, serial_number=metadata["serialNumber"])

        with PathLock(self.output_dir / f".{name}.lock"):
            remove_stale_staging(artifacts.directory)
            atomic_write_dir(
                artifacts.directory,
                {
                    KEY_FILENAME: (serialize_private_key(identity.request.private_key), 0o600),
                    CSR_FILENAME: (serialize_csr(identity.request.csr), 0o644),
                    CERT_FILENAME: (identity.certificate.pem, 0o644),
                    METADATA_FILENAME: (json.dumps(metadata, indent=2).encode("utf-8"), 0o644),
                },
            )

        return artifacts
