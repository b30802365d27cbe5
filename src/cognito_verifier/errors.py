from __future__ import annotations

from typing import Any


class VerifierError(Exception):
    """Base class for every error raised by cognito_verifier."""


class ConfigurationError(VerifierError, ValueError):
    pass


class KeySetLoadError(VerifierError):
    """The trust material (the issuer's key set) could not be loaded."""


class KeySourceUnavailableError(KeySetLoadError):
    def __init__(self, message: str, *, source: str) -> None:
        super().__init__(message)
        self.source = source


class KeySetFormatError(KeySetLoadError):
    pass


class MalformedKeyError(KeySetLoadError):
    def __init__(self, message: str, *, kid: str | None = None) -> None:
        super().__init__(message)
        self.kid = kid


class TokenRejectedError(VerifierError):
    """The presented token is invalid; the trust material itself is fine."""


class MalformedTokenError(TokenRejectedError):
    pass


class IssuerMismatchError(TokenRejectedError):
    def __init__(self, *, expected: str, actual: Any) -> None:
        super().__init__("token is not from the configured user pool")
        self.expected = expected
        self.actual = actual


class PurposeMismatchError(TokenRejectedError):
    def __init__(self, *, expected: str, actual: Any) -> None:
        article = "an" if expected[:1] in "aeiou" else "a"
        super().__init__(f"not {article} {expected} token")
        self.expected = expected
        self.actual = actual


class UnknownKeyError(TokenRejectedError):
    def __init__(self, *, kid: Any) -> None:
        super().__init__(f"signing key not found in key set: {kid}")
        self.kid = kid


class SignatureOrClaimError(TokenRejectedError):
    def __init__(self, reason: str, *, cause: Exception | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.cause = cause
