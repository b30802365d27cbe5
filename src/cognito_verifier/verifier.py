from __future__ import annotations

import time
from typing import Any, Mapping

import httpx
import jwt
from jwt import exceptions as jwt_exceptions

from .config import TrustConfiguration
from .errors import (
    ConfigurationError,
    IssuerMismatchError,
    MalformedTokenError,
    PurposeMismatchError,
    SignatureOrClaimError,
    UnknownKeyError,
)
from .jwks import KeySet, KeySetCache
from .keys import PublicKey, key_matches_alg
from .tokens import extract_bearer_token, inspect_token


class Verifier:
    """Verifies Cognito user pool tokens for a single trust configuration.

    The pool's key set is loaded on first use and kept for the lifetime of the
    instance. Keys rotated by the pool afterwards are unknown to this verifier;
    create a new one to pick them up.
    """

    def __init__(
        self,
        config: TrustConfiguration | Mapping[str, Any] | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        **options: Any,
    ) -> None:
        if config is None:
            config = TrustConfiguration.from_mapping(options)
        elif options:
            raise ConfigurationError("pass either a configuration or keyword options, not both")
        elif isinstance(config, Mapping):
            config = TrustConfiguration.from_mapping(config)
        elif not isinstance(config, TrustConfiguration):
            raise ConfigurationError("config must be a TrustConfiguration or a mapping")
        self.config = config
        self._key_sets = KeySetCache(config, http_client=http_client)

    @property
    def issuer(self) -> str:
        return self.config.issuer

    async def ready(self) -> KeySet:
        return await self._key_sets.load()

    async def verify(self, token: str, *, at: int | None = None) -> dict[str, Any]:
        if at is not None and (isinstance(at, bool) or not isinstance(at, int) or at < 0):
            raise ValueError("at must be a non-negative integer")
        key_set = await self._key_sets.load()

        view = inspect_token(token)
        if view.issuer != self.config.issuer:
            raise IssuerMismatchError(expected=self.config.issuer, actual=view.issuer)
        if view.token_use != self.config.token_use:
            raise PurposeMismatchError(expected=self.config.token_use, actual=view.token_use)

        key = key_set.get(view.kid) if key_set.issuer == self.config.issuer else None
        if key is None:
            raise UnknownKeyError(kid=view.kid)

        return self._check_signature(token.strip(), key, at=at)

    async def authenticate(
        self, authorization: str | None, *, at: int | None = None
    ) -> dict[str, Any]:
        token = extract_bearer_token(authorization)
        if token is None:
            raise MalformedTokenError("missing bearer token")
        return await self.verify(token, at=at)

    def _check_signature(self, token: str, key: PublicKey, *, at: int | None) -> dict[str, Any]:
        alg = self.config.alg
        if not key_matches_alg(key, alg):
            raise SignatureOrClaimError(f"signing key type does not match algorithm {alg}")

        # PyJWT checks signature, algorithm and issuer; time claims are checked against `now`.
        options: dict[str, Any] = {
            "verify_aud": False,
            "verify_iss": True,
            "verify_exp": False,
            "verify_nbf": False,
            "verify_iat": False,
        }
        try:
            payload = jwt.decode(
                token,
                key=key,
                algorithms=[alg],
                issuer=self.config.issuer,
                options=options,
            )
            now = time.time() if at is None else float(at)
            _check_time_claims(payload, now=now, max_age=self.config.max_age_seconds)
        except jwt_exceptions.PyJWTError as exc:
            raise SignatureOrClaimError(format_jwt_error(exc), cause=exc) from exc
        return payload


class MaxAgeExceededError(jwt_exceptions.ExpiredSignatureError):
    pass


_NOT_AN_INTEGER = {
    "exp": lambda: jwt_exceptions.DecodeError("Expiration Time claim (exp) must be an integer."),
    "nbf": lambda: jwt_exceptions.DecodeError("Not Before claim (nbf) must be an integer."),
    "iat": lambda: jwt_exceptions.InvalidIssuedAtError("Issued At claim (iat) must be an integer."),
}


def _time_claim(payload: dict[str, Any], name: str) -> int | None:
    if name not in payload:
        return None
    try:
        return int(payload[name])
    except (TypeError, ValueError):
        raise _NOT_AN_INTEGER[name]() from None


def _check_time_claims(payload: dict[str, Any], *, now: float, max_age: float) -> None:
    exp = _time_claim(payload, "exp")
    nbf = _time_claim(payload, "nbf")
    iat = _time_claim(payload, "iat")

    if exp is None and iat is None:
        raise jwt_exceptions.MissingRequiredClaimError("iat")
    if exp is not None and exp <= now:
        raise jwt_exceptions.ExpiredSignatureError("Signature has expired")
    if nbf is not None and nbf > now:
        raise jwt_exceptions.ImmatureSignatureError("The token is not yet valid (nbf)")
    # Without iat the exp check stands in for the age limit.
    if iat is not None:
        if iat > now:
            raise jwt_exceptions.ImmatureSignatureError("The token is not yet valid (iat)")
        if now - iat > max_age:
            raise MaxAgeExceededError("maxAge exceeded")


def format_jwt_error(exc: jwt_exceptions.PyJWTError) -> str:
    if isinstance(exc, MaxAgeExceededError):
        return "token is older than the maximum allowed age"
    if isinstance(exc, jwt_exceptions.ExpiredSignatureError):
        return "token is expired"
    if isinstance(exc, jwt_exceptions.ImmatureSignatureError):
        if "iat" in str(exc).lower():
            return "iat is in the future"
        return "token is not valid yet (nbf in the future)"
    if isinstance(exc, jwt_exceptions.InvalidIssuedAtError):
        return "iat claim is not an integer"
    if isinstance(exc, jwt_exceptions.InvalidIssuerError):
        return "iss claim mismatch"
    if isinstance(exc, jwt_exceptions.MissingRequiredClaimError):
        claim = getattr(exc, "claim", None)
        if isinstance(claim, str) and claim:
            return f"missing required claim: {claim}"
        return "missing required claim"
    if isinstance(exc, jwt_exceptions.InvalidAlgorithmError):
        return "token algorithm is not allowed"
    if isinstance(exc, jwt_exceptions.InvalidSignatureError):
        return "signature verification failed"
    if isinstance(exc, jwt_exceptions.DecodeError):
        msg = str(exc).lower()
        if "expiration time claim" in msg or "(exp)" in msg:
            return "exp claim is not an integer"
        if "not before claim" in msg or "(nbf)" in msg:
            return "nbf claim is not an integer"
        return "invalid token format"
    return str(exc)
