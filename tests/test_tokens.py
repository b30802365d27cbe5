from __future__ import annotations

import base64
import json

import pytest

from cognito_verifier.errors import MalformedTokenError
from cognito_verifier.samples import cognito_claims, rsa_keypair, sign_claims
from cognito_verifier.tokens import extract_bearer_token, inspect_token


def _b64(obj: object) -> str:
    raw = json.dumps(obj).encode("utf-8") if not isinstance(obj, bytes) else obj
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def test_inspect_exposes_header_and_payload() -> None:
    private_pem, _ = rsa_keypair()
    claims = cognito_claims("access")
    token = sign_claims(claims, private_pem, kid="k1")

    view = inspect_token(token)
    assert view.alg == "RS256"
    assert view.kid == "k1"
    assert view.issuer == claims["iss"]
    assert view.token_use == "access"
    assert view.issued_at == claims["iat"]
    assert view.expires_at == claims["exp"]
    assert view.payload == claims


def test_inspect_does_not_validate_time_claims() -> None:
    private_pem, _ = rsa_keypair()
    claims = cognito_claims("id", issued_at=1_000_000, exp_seconds=10)
    view = inspect_token(sign_claims(claims, private_pem, kid="k1"))
    assert view.payload["exp"] == 1_000_010


def test_inspect_strips_whitespace() -> None:
    private_pem, _ = rsa_keypair()
    token = sign_claims(cognito_claims("id"), private_pem, kid="k1")
    assert inspect_token(f"  {token}\n").kid == "k1"


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not-a-jwt",
        "a.b",
        "a.b.c.d",
        f"{_b64({'alg': 'RS256'})}.%%%.sig",
        f"{_b64(b'not json')}.{_b64({'iss': 'x'})}.c2ln",
        f"{_b64({'alg': 'RS256'})}.{_b64([1, 2, 3])}.c2ln",
        f"{_b64(['alg'])}.{_b64({'iss': 'x'})}.c2ln",
    ],
)
def test_inspect_rejects_malformed_tokens(token: str) -> None:
    with pytest.raises(MalformedTokenError):
        inspect_token(token)


def test_inspect_rejects_non_strings() -> None:
    with pytest.raises(MalformedTokenError):
        inspect_token(None)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc.def.ghi", "abc.def.ghi"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer", None),
        ("Bearer a b", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header: str | None, expected: str | None) -> None:
    assert extract_bearer_token(header) == expected
