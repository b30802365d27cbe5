from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ConfigurationError

TOKEN_USES = frozenset({"access", "id"})
DEFAULT_ALG = "RS256"
SUPPORTED_ALGS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512"}
)
DEFAULT_TOKEN_EXPIRATION_MS = 3_600_000

_CAMEL_CASE_OPTIONS = {
    "cognitoUserPoolId": "user_pool_id",
    "userPoolId": "user_pool_id",
    "tokenUse": "token_use",
    "tokenExpiration": "token_expiration",
}
_FIELDS = frozenset({"region", "user_pool_id", "token_use", "alg", "token_expiration", "filepath"})

# Region and pool id are interpolated into the issuer URL.
_REGION_RE = re.compile(r"[a-z]{2}(-[a-z]+)+-\d+")
_USER_POOL_ID_RE = re.compile(r"[\w-]+_[0-9A-Za-z]+", re.ASCII)


def issuer_url(region: str, user_pool_id: str) -> str:
    return f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"


@dataclass(frozen=True)
class TrustConfiguration:
    """Trust parameters for one Cognito user pool.

    ``token_expiration`` is the maximum token age in milliseconds. When ``filepath``
    is set the key set is read from that JWKS file instead of being downloaded.
    """

    region: str
    user_pool_id: str
    token_use: str
    alg: str = DEFAULT_ALG
    token_expiration: int = DEFAULT_TOKEN_EXPIRATION_MS
    filepath: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.region, str) or not self.region.strip():
            raise ConfigurationError("AWS region not specified")
        if not _REGION_RE.fullmatch(self.region):
            raise ConfigurationError(f"invalid AWS region: {self.region!r}")
        if not isinstance(self.user_pool_id, str) or not self.user_pool_id.strip():
            raise ConfigurationError("Cognito user pool id not specified")
        if not _USER_POOL_ID_RE.fullmatch(self.user_pool_id):
            raise ConfigurationError(f"invalid Cognito user pool id: {self.user_pool_id!r}")
        if not self.token_use:
            raise ConfigurationError("token use not specified; possible values: 'access' | 'id'")
        if not isinstance(self.token_use, str) or self.token_use not in TOKEN_USES:
            raise ConfigurationError(
                f"invalid token use: {self.token_use!r}; possible values: 'access' | 'id'"
            )
        if not isinstance(self.alg, str) or not self.alg.strip():
            raise ConfigurationError("alg must be a non-empty algorithm name")
        if self.alg == "none":
            raise ConfigurationError("refusing to verify alg=none")
        if self.alg not in SUPPORTED_ALGS:
            supported = ", ".join(sorted(SUPPORTED_ALGS))
            raise ConfigurationError(f"unsupported alg: {self.alg} (supported: {supported})")
        if (
            isinstance(self.token_expiration, bool)
            or not isinstance(self.token_expiration, int)
            or self.token_expiration <= 0
        ):
            raise ConfigurationError("token expiration must be a positive number of milliseconds")
        if self.filepath is not None and not str(self.filepath).strip():
            raise ConfigurationError("filepath must not be empty")

    @property
    def issuer(self) -> str:
        return issuer_url(self.region, self.user_pool_id)

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"

    @property
    def max_age_seconds(self) -> float:
        return self.token_expiration / 1000.0

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> TrustConfiguration:
        if not isinstance(options, Mapping):
            raise ConfigurationError("options must be a mapping")
        kwargs: dict[str, Any] = {}
        for name, value in options.items():
            field = _CAMEL_CASE_OPTIONS.get(name, name)
            if field not in _FIELDS:
                raise ConfigurationError(f"unknown option: {name}")
            # Unset, empty or zero alg and expiration fall back to the defaults.
            if not value and field in {"alg", "token_expiration"}:
                continue
            kwargs[field] = value
        kwargs.setdefault("region", "")
        kwargs.setdefault("user_pool_id", "")
        kwargs.setdefault("token_use", "")
        return cls(**kwargs)
