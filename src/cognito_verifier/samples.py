from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .config import TOKEN_USES, issuer_url
from .keys import jwk_from_pem, jwks_from_pem

DEFAULT_REGION = "us-east-1"
DEFAULT_USER_POOL_ID = "us-east-1_Example1"
DEFAULT_CLIENT_ID = "demo-client"


def _private_pem(private_key: Any) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def _public_pem(private_key: Any) -> str:
    return (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )


def rsa_keypair() -> tuple[str, str]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _private_pem(private_key), _public_pem(private_key)


def ec_p256_keypair() -> tuple[str, str]:
    private_key = ec.generate_private_key(ec.SECP256R1())
    return _private_pem(private_key), _public_pem(private_key)


def sign_claims(
    payload: dict[str, Any],
    private_pem: str,
    *,
    kid: str | None,
    alg: str = "RS256",
    headers: dict[str, Any] | None = None,
) -> str:
    merged_headers: dict[str, Any] = dict(headers or {})
    if kid:
        merged_headers["kid"] = kid
    return jwt.encode(payload, key=private_pem, algorithm=alg, headers=merged_headers or None)


def cognito_claims(
    token_use: str,
    *,
    region: str = DEFAULT_REGION,
    user_pool_id: str = DEFAULT_USER_POOL_ID,
    client_id: str = DEFAULT_CLIENT_ID,
    issued_at: int | None = None,
    exp_seconds: int = 3600,
) -> dict[str, Any]:
    """Claims shaped like the ones a Cognito user pool puts in its tokens."""
    if token_use not in TOKEN_USES:
        raise ValueError("token_use must be 'access' or 'id'")
    now = int(time.time()) if issued_at is None else int(issued_at)
    claims: dict[str, Any] = {
        "sub": "2f3c9a4e-0000-4000-8000-00000000demo",
        "iss": issuer_url(region, user_pool_id),
        "token_use": token_use,
        "auth_time": now,
        "iat": now,
        "exp": now + int(exp_seconds),
        "jti": str(uuid.uuid4()),
    }
    if token_use == "access":
        claims["client_id"] = client_id
        claims["scope"] = "aws.cognito.signin.user.admin"
        claims["username"] = "demo-user"
    else:
        claims["aud"] = client_id
        claims["cognito:username"] = "demo-user"
        claims["email"] = "demo-user@example.com"
    return claims


def generate_sample(
    token_use: str = "access",
    *,
    region: str = DEFAULT_REGION,
    user_pool_id: str = DEFAULT_USER_POOL_ID,
    kid: str = "demo-k1",
    exp_seconds: int = 3600,
) -> dict[str, Any]:
    private_pem, public_pem = rsa_keypair()
    payload = cognito_claims(
        token_use, region=region, user_pool_id=user_pool_id, exp_seconds=exp_seconds
    )
    token = sign_claims(payload, private_pem, kid=kid)

    # A second key mirrors the two signing keys a user pool publishes.
    _, other_public_pem = rsa_keypair()
    jwks = jwks_from_pem(public_pem, kid=kid)
    jwks["keys"].append(jwk_from_pem(other_public_pem, kid=f"{kid}-next"))
    return {
        "region": region,
        "user_pool_id": user_pool_id,
        "token_use": token_use,
        "issuer": payload["iss"],
        "kid": kid,
        "token": token,
        "payload": payload,
        "jwks": jwks,
        "private_pem": private_pem,
        "public_pem": public_pem,
    }
