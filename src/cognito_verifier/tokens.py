from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt
from jwt import exceptions as jwt_exceptions

from .errors import MalformedTokenError

# Inspection only parses; every claim check happens during verification.
_NO_VALIDATION = {
    "verify_signature": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


@dataclass(frozen=True)
class UnverifiedTokenView:
    header: dict[str, Any]
    payload: dict[str, Any]

    @property
    def alg(self) -> Any:
        return self.header.get("alg")

    @property
    def kid(self) -> Any:
        return self.header.get("kid")

    @property
    def issuer(self) -> Any:
        return self.payload.get("iss")

    @property
    def token_use(self) -> Any:
        return self.payload.get("token_use")

    @property
    def issued_at(self) -> Any:
        return self.payload.get("iat")

    @property
    def expires_at(self) -> Any:
        return self.payload.get("exp")


def inspect_token(token: str) -> UnverifiedTokenView:
    """Parse a compact JWS without checking its signature or claims."""
    if not isinstance(token, str):
        raise MalformedTokenError("token must be a string")
    token = token.strip()
    if token.count(".") != 2:
        raise MalformedTokenError("not a valid JWT: expected three dot-separated parts")
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options=_NO_VALIDATION)
    except jwt_exceptions.PyJWTError as exc:
        raise MalformedTokenError(f"not a valid JWT: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedTokenError("not a valid JWT: payload must be a JSON object")
    return UnverifiedTokenView(header=dict(header), payload=payload)


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None
