from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest

from cognito_verifier.cli import main


def _sample(tmp_path: Path, capsys: pytest.CaptureFixture[str], *extra: str) -> dict[str, Any]:
    jwks_path = tmp_path / "jwks.json"
    assert main(["sample", "--jwks-out", str(jwks_path), *extra]) == 0
    sample = json.loads(capsys.readouterr().out)
    assert json.loads(jwks_path.read_text(encoding="utf-8")) == sample["jwks"]
    return sample


def test_help() -> None:
    proc = subprocess.run([sys.executable, "-m", "cognito_verifier", "--help"], check=False)
    assert proc.returncode == 0


def test_verify_help() -> None:
    proc = subprocess.run(
        [sys.executable, "-m", "cognito_verifier", "verify", "--help"], check=False
    )
    assert proc.returncode == 0


def test_sample_omits_private_key_by_default(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    sample = _sample(tmp_path, capsys)
    assert "private_pem" not in sample
    assert [key["kid"] for key in sample["jwks"]["keys"]] == ["demo-k1", "demo-k1-next"]
    assert sample["token_use"] == "access"
    assert sample["issuer"] == "https://cognito-idp.us-east-1.amazonaws.com/us-east-1_Example1"

    sample = _sample(tmp_path, capsys, "--include-private-key")
    assert "BEGIN PRIVATE KEY" in str(sample["private_pem"])


def test_inspect(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    sample = _sample(tmp_path, capsys, "--token-use", "id")
    assert main(["inspect", "--token", str(sample["token"])]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["header"]["kid"] == "demo-k1"
    assert out["payload"]["token_use"] == "id"


def test_verify_with_jwks_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    sample = _sample(tmp_path, capsys)
    code = main(
        [
            "verify",
            "--token",
            f"Bearer {sample['token']}",
            "--region",
            "us-east-1",
            "--user-pool-id",
            "us-east-1_Example1",
            "--token-use",
            "access",
            "--jwks-file",
            str(tmp_path / "jwks.json"),
        ]
    )
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["payload"] == sample["payload"]


def test_verify_rejected_token_exit_code(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    sample = _sample(tmp_path, capsys)
    code = main(
        [
            "verify",
            "--token",
            str(sample["token"]),
            "--region",
            "us-east-1",
            "--user-pool-id",
            "us-east-1_Example1",
            "--token-use",
            "id",
            "--jwks-file",
            str(tmp_path / "jwks.json"),
        ]
    )
    assert code == 1
    assert "error: not an id token" in capsys.readouterr().err


@pytest.mark.parametrize(
    ("region", "jwks_name"),
    [("us-east-1", "missing.json"), ("", "jwks.json")],
)
def test_verify_trust_failure_exit_code(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], region: str, jwks_name: str
) -> None:
    sample = _sample(tmp_path, capsys)
    code = main(
        [
            "verify",
            "--token",
            str(sample["token"]),
            "--region",
            region,
            "--user-pool-id",
            "us-east-1_Example1",
            "--token-use",
            "access",
            "--jwks-file",
            str(tmp_path / jwks_name),
        ]
    )
    assert code == 2
    assert capsys.readouterr().err.startswith("error: ")
