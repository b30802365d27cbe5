from __future__ import annotations

from .config import TrustConfiguration
from .errors import (
    ConfigurationError,
    IssuerMismatchError,
    KeySetFormatError,
    KeySetLoadError,
    KeySourceUnavailableError,
    MalformedKeyError,
    MalformedTokenError,
    PurposeMismatchError,
    SignatureOrClaimError,
    TokenRejectedError,
    UnknownKeyError,
    VerifierError,
)
from .jwks import KeySet, KeySetCache, fetch_key_set, parse_key_set
from .keys import decode_key
from .tokens import UnverifiedTokenView, extract_bearer_token, inspect_token
from .verifier import Verifier
from .version import __version__

__all__ = [
    "ConfigurationError",
    "IssuerMismatchError",
    "KeySet",
    "KeySetCache",
    "KeySetFormatError",
    "KeySetLoadError",
    "KeySourceUnavailableError",
    "MalformedKeyError",
    "MalformedTokenError",
    "PurposeMismatchError",
    "SignatureOrClaimError",
    "TokenRejectedError",
    "TrustConfiguration",
    "UnknownKeyError",
    "UnverifiedTokenView",
    "Verifier",
    "VerifierError",
    "__version__",
    "decode_key",
    "extract_bearer_token",
    "fetch_key_set",
    "inspect_token",
    "parse_key_set",
]
