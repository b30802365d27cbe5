from __future__ import annotations

import json
from typing import Any, Mapping, cast

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_pem_public_key,
)
from jwt import algorithms
from jwt import exceptions as jwt_exceptions

from .errors import MalformedKeyError

PublicKey = Any

# Only the key-material members are handed to the converter.
_KEY_MEMBERS = {
    "RSA": ("n", "e"),
    "EC": ("crv", "x", "y"),
}


def expected_kty_for_alg(alg: str) -> str | None:
    if alg.startswith(("RS", "PS")):
        return "RSA"
    if alg.startswith("ES"):
        return "EC"
    return None


def key_matches_alg(key: PublicKey, alg: str) -> bool:
    expected = expected_kty_for_alg(alg)
    if expected == "RSA":
        return isinstance(key, rsa.RSAPublicKey)
    if expected == "EC":
        return isinstance(key, ec.EllipticCurvePublicKey)
    return False


def decode_key(descriptor: Mapping[str, Any]) -> PublicKey:
    if not isinstance(descriptor, Mapping):
        raise MalformedKeyError("key descriptor must be an object")
    raw_kid = descriptor.get("kid")
    kid = raw_kid if isinstance(raw_kid, str) else None

    kty = descriptor.get("kty")
    if not isinstance(kty, str) or not kty.strip():
        raise MalformedKeyError("JWK missing kty", kid=kid)
    members = _KEY_MEMBERS.get(kty)
    if members is None:
        raise MalformedKeyError(f"unsupported JWK kty: {kty}", kid=kid)

    jwk: dict[str, Any] = {"kty": kty}
    for name in members:
        value = descriptor.get(name)
        if not isinstance(value, str) or not value:
            raise MalformedKeyError(f"{kty} JWK missing {name}", kid=kid)
        jwk[name] = value

    try:
        if kty == "RSA":
            return algorithms.RSAAlgorithm.from_jwk(jwk)
        return algorithms.ECAlgorithm.from_jwk(jwk)
    except (jwt_exceptions.InvalidKeyError, KeyError, TypeError, ValueError) as exc:
        raise MalformedKeyError(f"invalid {kty} key material: {exc}", kid=kid) from exc


def jwk_from_pem(pem_text: str, kid: str | None = None) -> dict[str, Any]:
    data = pem_text.encode("utf-8")
    try:
        key_any: Any = load_pem_public_key(data)
    except ValueError:
        key_any = load_pem_private_key(data, password=None)

    key = key_any.public_key() if hasattr(key_any, "public_key") else key_any

    if isinstance(key, rsa.RSAPublicKey):
        jwk_any = json.loads(algorithms.RSAAlgorithm.to_jwk(key))
    elif isinstance(key, ec.EllipticCurvePublicKey):
        jwk_any = json.loads(algorithms.ECAlgorithm.to_jwk(key))
    else:
        raise ValueError("unsupported key type for JWK conversion")

    jwk = cast(dict[str, Any], jwk_any)
    if kid:
        jwk["kid"] = kid
    return jwk


def jwks_from_pem(pem_text: str, kid: str | None = None) -> dict[str, Any]:
    return {"keys": [jwk_from_pem(pem_text, kid=kid)]}
