"""CLI entry point for keyring-scoped gpg operations."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from gpgscope.config import GPGConfig, GpgScopeConfig
from gpgscope.errors import GPGError
from gpgscope.gpg import GPG
from gpgscope.logging_config import setup_logging
from gpgscope.models import TrustModel

logger = logging.getLogger(__name__)

PASSPHRASE_ENV = "GPGSCOPE_PASSPHRASE"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpgscope",
        description="Run gpg key and encryption operations against isolated keyrings",
    )
    parser.add_argument("--mode", help="Deployment mode override (selects config/<mode>.yaml)")
    parser.add_argument("--config-dir", type=Path, help="Path to config directory")
    parser.add_argument("--public-keyring", type=Path, help="Public keyring file")
    parser.add_argument("--secret-keyring", type=Path, help="Secret keyring file")
    parser.add_argument(
        "--trust-model",
        choices=[m.value for m in TrustModel],
        help="gpg trust model",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("version", help="Print the gpg version line")

    fp_parser = subparsers.add_parser("fingerprint", help="Print the fingerprint of key material")
    fp_parser.add_argument("source", help="Key file, or - for stdin")

    have_parser = subparsers.add_parser("have-key", help="Exit 0 if the key is in the keyring, 1 if not")
    have_parser.add_argument("fingerprint")

    import_parser = subparsers.add_parser("import", help="Import key material (skipped if present)")
    import_parser.add_argument("source", help="Key file, or - for stdin")

    delete_parser = subparsers.add_parser("delete", help="Delete a key (no-op if absent)")
    delete_parser.add_argument("fingerprint")
    delete_parser.add_argument(
        "--secret",
        action="store_true",
        help="Delete the secret key instead of the public key",
    )

    encrypt_parser = subparsers.add_parser("encrypt", help="Encrypt to a recipient fingerprint")
    encrypt_parser.add_argument("source", help="Cleartext file, or - for stdin")
    encrypt_parser.add_argument("-r", "--recipient", required=True, help="Recipient fingerprint")
    encrypt_parser.add_argument("-o", "--output", type=Path, help="Ciphertext file (default: stdout)")

    decrypt_parser = subparsers.add_parser("decrypt", help="Decrypt with a secret key passphrase")
    decrypt_parser.add_argument("source", help="Ciphertext file, or - for stdin")
    decrypt_parser.add_argument("-o", "--output", type=Path, help="Cleartext file (default: stdout)")
    decrypt_parser.add_argument(
        "--passphrase",
        help=f"Secret key passphrase (default: ${PASSPHRASE_ENV})",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = GpgScopeConfig.load(deployment_mode=args.mode, config_dir=args.config_dir)
        setup_logging(
            level=config.deployment.log_level,
            log_format=config.deployment.log_format,
            log_dir=config.deployment.log_dir,
        )
        gpg = GPG(_with_overrides(config.gpg, args))
        return _dispatch(gpg, args)
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except GPGError as exc:
        logger.error("gpg failed: %s", str(exc).strip())
        return 2


def cli_entry() -> None:
    """CLI entry point for `gpgscope` command."""
    sys.exit(main())


def _with_overrides(base: GPGConfig, args: argparse.Namespace) -> GPGConfig:
    overrides = {
        "public_keyring": args.public_keyring,
        "secret_keyring": args.secret_keyring,
        "trust_model": args.trust_model,
    }
    settings = base.model_dump()
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return GPGConfig(**settings)


def _dispatch(gpg: GPG, args: argparse.Namespace) -> int:
    if args.command == "version":
        print(gpg.version)
    elif args.command == "fingerprint":
        print(gpg.get_fingerprint(_source(args.source)))
    elif args.command == "have-key":
        return 0 if gpg.have_key(args.fingerprint) else 1
    elif args.command == "import":
        gpg.import_key(_source(args.source))
    elif args.command == "delete":
        if args.secret:
            gpg.delete_secret_key(args.fingerprint)
        else:
            gpg.delete_public_key(args.fingerprint)
    elif args.command == "encrypt":
        _emit(gpg.encrypt(_source(args.source), args.recipient, output=args.output))
    elif args.command == "decrypt":
        passphrase = args.passphrase or os.environ.get(PASSPHRASE_ENV)
        if passphrase is None:
            logger.error("No passphrase given (use --passphrase or $%s)", PASSPHRASE_ENV)
            return 2
        _emit(gpg.decrypt(_source(args.source), passphrase, output=args.output))
    return 0


def _source(value: str):
    return sys.stdin.buffer if value == "-" else Path(value)


def _emit(data: Optional[bytes]) -> None:
    if data is not None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
