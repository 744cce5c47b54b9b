"""CLI de soporte: derivar claves de dispositivo, firmar payloads y crear el esquema."""

from __future__ import annotations

import argparse
import base64
import logging
import sys

from common.config import get_settings
from common.db import build_engine
from .auth import AuthenticatorConfig, RequestAuthenticator
from .identity import derive_device_key, parse_mac
from .infrastructure.persistence import ensure_schema

logger = logging.getLogger(__name__)


def _derive(args: argparse.Namespace) -> int:
    keys = derive_device_key(parse_mac(args.mac), get_settings().device_key_namespace)
    print(f"legacy_key={keys.legacy_key}")
    print(f"current_key={keys.current_key}")
    return 0


def _sign(args: argparse.Namespace) -> int:
    if args.file == "-":
        payload = sys.stdin.buffer.read()
    else:
        with open(args.file, "rb") as f:
            payload = f.read()
    authenticator = RequestAuthenticator(AuthenticatorConfig.from_settings(get_settings()))
    print(f"body={base64.b64encode(payload).decode('ascii')}")
    print(f"x-signature={authenticator.sign(payload)}")
    return 0


def _migrate(args: argparse.Namespace) -> int:
    ensure_schema(build_engine(get_settings().database_url))
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Device tracker tooling")
    sub = p.add_subparsers(dest="command", required=True)

    derive = sub.add_parser("derive-key", help="print legacy and current device keys for a MAC")
    derive.add_argument("mac", help="MAC address, e.g. AA:BB:CC:DD:EE:FF")
    derive.set_defaults(func=_derive)

    sign = sub.add_parser("sign", help="sign a payload with DEVICE_SIGNING_SECRET")
    sign.add_argument("file", help="payload file, or - for stdin")
    sign.set_defaults(func=_sign)

    migrate = sub.add_parser("migrate", help="create database tables")
    migrate.set_defaults(func=_migrate)

    args = p.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
