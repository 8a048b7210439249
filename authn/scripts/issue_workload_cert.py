#!/usr/bin/env python3
"""Issue and persist a workload certificate signed by the local root CA."""

import argparse
import sys
from pathlib import Path

from authn.lib.authenticator import start
from authn.lib.cert_utils import get_certificate_serial_hex
from authn.lib.config import CAConfig
from authn.lib.errors import AuthnError, InvalidWorkloadName
from authn.lib.logging_config import LOGGER, set_log_level
from authn.lib.models import CertificateUsage
from authn.lib.workload_store import WorkloadStore


def main(argv: list[str] | None = None) -> int:
    """Issue a certificate for --name and write key, CSR and certificate to --output-dir.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Issue workload certificate")
    parser.add_argument(
        "--name",
        required=True,
        help="Workload name (a DNS label, becomes <name>.<zone>)",
    )
    parser.add_argument(
        "--root-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory owning the CA (default: cwd)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for workload artifacts (default: <root-dir>/pki/workloads)",
    )
    parser.add_argument(
        "--usage",
        choices=[usage.value for usage in CertificateUsage],
        default=CertificateUsage.MTLS.value,
        help="Extended key usage of the certificate (default: mtls)",
    )
    parser.add_argument(
        "--key-type",
        choices=["rsa", "ec"],
        default="rsa",
        help="Key algorithm: 4096-bit RSA or P-384 EC (default: rsa)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO)",
    )
    args = parser.parse_args(argv)
    set_log_level(args.log_level)

    output_dir = args.output_dir or args.root_dir / "pki" / "workloads"

    try:
        store = WorkloadStore(output_dir)
        authenticator = start(
            args.root_dir,
            config=CAConfig(key_type=args.key_type),
            workload_store=store,
        )

        LOGGER.info("Issuing certificate for: %s", args.name)
        identity = authenticator.issue_workload_identity(
            args.name, usage=CertificateUsage(args.usage)
        )
        artifacts = store.artifacts_for(identity.request.name)

        LOGGER.info("Workload certificate created:")
        LOGGER.info("  Key: %s", artifacts.key_path)
        LOGGER.info("  CSR: %s", artifacts.csr_path)
        LOGGER.info("  Cert: %s", artifacts.cert_path)
        LOGGER.info("  Serial: %s", get_certificate_serial_hex(identity.certificate.certificate))
        return 0

    except InvalidWorkloadName as e:
        LOGGER.error("Invalid workload name: %s", e)
        return 1
    except AuthnError as e:
        LOGGER.error("Issuance failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
