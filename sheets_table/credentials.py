"""Helpers for validating and normalising Google service account credentials."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Mapping, Union

from google.oauth2 import service_account

from sheets_table.errors import CredentialsError

__all__ = [
    "REQUIRED_FIELDS",
    "SCOPES",
    "load_credentials",
    "load_service_account_data",
    "validate_service_account_info",
]

SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)

REQUIRED_FIELDS: Iterable[str] = (
    "type",
    "private_key",
    "client_email",
    "token_uri",
)


def _private_key_with_newlines(key: str) -> str:
    lines = key.replace("\\n", "\n").splitlines()
    return "\n".join(lines) + "\n"


def validate_service_account_info(payload: Mapping[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with the private key normalised.

    Environment variables and copy/pasted JSON often carry literal ``\\n``
    sequences in the private key; those are turned into real newlines.
    """

    data: Dict[str, object] = dict(payload)
    data.setdefault("type", "service_account")
    data.setdefault("token_uri", "https://oauth2.googleapis.com/token")
    missing: list[str] = []

    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            missing.append(field)

    if data.get("type") != "service_account":
        missing.append("type")

    if missing:
        ordered = ", ".join(sorted(dict.fromkeys(missing)))
        raise CredentialsError(f"Service account JSON missing fields: {ordered}")

    data["private_key"] = _private_key_with_newlines(str(data["private_key"]))
    return data


def load_service_account_data(path: Path) -> Dict[str, object]:
    """Return validated service account data read from ``path``.

    The ``utf-8-sig`` codec drops the byte order mark some editors add.
    """

    try:
        text = path.read_text(encoding="utf-8-sig").strip()
    except OSError as exc:
        raise CredentialsError(f"Cannot read service account file {path}: {exc}") from exc
    if not text:
        raise CredentialsError(f"Service account file {path} is empty")
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise CredentialsError(f"Service account file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise CredentialsError(f"Service account file {path} must hold a JSON object")
    return validate_service_account_info(payload)


def load_credentials(
    credentials: Union[Mapping[str, object], str, Path, service_account.Credentials],
) -> service_account.Credentials:
    """Build scoped service account credentials.

    ``credentials`` may be a service account mapping, a path to a service
    account JSON file or an already constructed credentials object.
    """

    if isinstance(credentials, service_account.Credentials):
        return credentials.with_scopes(SCOPES)
    if isinstance(credentials, (str, Path)):
        payload = load_service_account_data(Path(credentials).expanduser())
    else:
        payload = validate_service_account_info(credentials)
    try:
        return service_account.Credentials.from_service_account_info(payload, scopes=SCOPES)
    except ValueError as exc:
        raise CredentialsError(str(exc)) from exc
