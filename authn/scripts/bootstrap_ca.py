#!/usr/bin/env python3
"""Bootstrap the local root CA, reusing it if one already exists."""

import argparse
import sys
from pathlib import Path

from authn.lib.ca_store import CAStore, pki_dir
from authn.lib.cert_utils import get_certificate_serial_hex
from authn.lib.config import CAConfig
from authn.lib.errors import AuthnError
from authn.lib.logging_config import LOGGER, set_log_level


def main(argv: list[str] | None = None) -> int:
    """Ensure the root CA exists under --root-dir.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Bootstrap the local root CA")
    parser.add_argument(
        "--root-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory owning the CA; material lives in <root-dir>/pki (default: cwd)",
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

    try:
        LOGGER.info("Bootstrapping CA...")
        ca = CAStore(CAConfig(key_type=args.key_type)).ensure_ca(args.root_dir)

        LOGGER.info("Root CA ready:")
        LOGGER.info("  Dir: %s", pki_dir(args.root_dir))
        LOGGER.info("  Subject: %s", ca.subject.rfc4514_string())
        LOGGER.info("  Serial: %s", get_certificate_serial_hex(ca.certificate))
        LOGGER.info("  Expiry: %s", ca.not_valid_after.isoformat())
        return 0

    except AuthnError as e:
        LOGGER.error("Bootstrap failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
