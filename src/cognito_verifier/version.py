from __future__ import annotations

from importlib import metadata


def get_version() -> str:
    try:
        return metadata.version("cognito-verifier")
    except metadata.PackageNotFoundError:
        # Running from a source checkout.
        return "0.0.0"


__version__ = get_version()
