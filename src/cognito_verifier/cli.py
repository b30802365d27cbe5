from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import DEFAULT_ALG, DEFAULT_TOKEN_EXPIRATION_MS, TOKEN_USES, TrustConfiguration
from .errors import KeySetLoadError, TokenRejectedError
from .samples import DEFAULT_REGION, DEFAULT_USER_POOL_ID, generate_sample
from .tokens import extract_bearer_token, inspect_token
from .verifier import Verifier
from .version import __version__

EXIT_REJECTED = 1
EXIT_TRUST_FAILURE = 2


def _print_json(obj: object) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True))


def _load_token(token_arg: str) -> str:
    if token_arg == "-":
        token = sys.stdin.read().strip()
        if not token:
            raise ValueError("stdin is empty; expected JWT")
    else:
        token = token_arg.strip()
    # Accept a pasted Authorization header value as well as a bare token.
    return extract_bearer_token(token) or token


def _write_json(path: Path, obj: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _cmd_inspect(args: argparse.Namespace) -> int:
    view = inspect_token(_load_token(args.token))
    _print_json({"header": view.header, "payload": view.payload})
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    config = TrustConfiguration(
        region=args.region,
        user_pool_id=args.user_pool_id,
        token_use=args.token_use,
        alg=args.alg,
        token_expiration=args.token_expiration,
        filepath=args.jwks_file,
    )
    token = _load_token(args.token)
    verifier = Verifier(config)
    claims = asyncio.run(verifier.verify(token, at=args.at))
    _print_json({"issuer": config.issuer, "payload": claims})
    return 0


def _cmd_sample(args: argparse.Namespace) -> int:
    sample = generate_sample(
        args.token_use,
        region=args.region,
        user_pool_id=args.user_pool_id,
        kid=args.kid,
        exp_seconds=args.exp_seconds,
    )
    if args.jwks_out:
        _write_json(Path(args.jwks_out), sample["jwks"])
    if not args.include_private_key:
        sample.pop("private_pem")
    _print_json(sample)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cognito-verifier")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_inspect = sub.add_parser("inspect", help="Decode a token without verifying it")
    p_inspect.add_argument("--token", required=True, help="JWT string (use '-' to read from stdin)")
    p_inspect.set_defaults(func=_cmd_inspect)

    p_verify = sub.add_parser("verify", help="Verify a token issued by a Cognito user pool")
    p_verify.add_argument("--token", required=True, help="JWT string (use '-' to read from stdin)")
    p_verify.add_argument("--region", required=True, help="AWS region of the user pool")
    p_verify.add_argument("--user-pool-id", required=True, help="Cognito user pool id")
    p_verify.add_argument(
        "--token-use",
        required=True,
        choices=sorted(TOKEN_USES),
        help="Expected token_use claim",
    )
    p_verify.add_argument(
        "--alg", default=DEFAULT_ALG, help=f"Accepted algorithm (default: {DEFAULT_ALG})"
    )
    p_verify.add_argument(
        "--token-expiration",
        type=int,
        default=DEFAULT_TOKEN_EXPIRATION_MS,
        help=f"Maximum token age in milliseconds (default: {DEFAULT_TOKEN_EXPIRATION_MS})",
    )
    p_verify.add_argument(
        "--jwks-file", help="Read the key set from this JWKS file instead of downloading it"
    )
    p_verify.add_argument(
        "--at",
        type=int,
        help="Override current time as unix seconds for time-based checks (debugging)",
    )
    p_verify.set_defaults(func=_cmd_verify)

    p_sample = sub.add_parser("sample", help="Generate an offline key set and signed token")
    p_sample.add_argument(
        "--token-use", choices=sorted(TOKEN_USES), default="access", help="token_use claim"
    )
    p_sample.add_argument("--region", default=DEFAULT_REGION, help="AWS region")
    p_sample.add_argument("--user-pool-id", default=DEFAULT_USER_POOL_ID, help="User pool id")
    p_sample.add_argument("--kid", default="demo-k1", help="Key id of the signing key")
    p_sample.add_argument(
        "--exp-seconds",
        type=int,
        default=3600,
        help="Expiration seconds from now (default: 3600)",
    )
    p_sample.add_argument("--jwks-out", help="Also write the JWKS document to this path")
    p_sample.add_argument(
        "--include-private-key", action="store_true", help="Include the signing key PEM"
    )
    p_sample.set_defaults(func=_cmd_sample)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 130
    except TokenRejectedError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_REJECTED
    except (KeySetLoadError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_TRUST_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
