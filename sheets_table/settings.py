"""Configuration helpers for sheets_table."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS_PATH = os.getenv("SHEETS_TABLE_SETTINGS_PATH", "sheets_table.json")
DEFAULT_SPREADSHEET_ID = os.getenv("SHEETS_TABLE_SPREADSHEET_ID", "")
DEFAULT_SHEET_NAME = os.getenv("SHEETS_TABLE_SHEET_NAME", "Sheet1")
DEFAULT_CREDENTIALS_PATH = os.getenv("SHEETS_TABLE_CREDENTIALS_PATH", "service_account.json")


@dataclass
class TableSettings:
    spreadsheet_id: str = DEFAULT_SPREADSHEET_ID
    sheet_name: str = DEFAULT_SHEET_NAME
    credential_path: str = DEFAULT_CREDENTIALS_PATH
    uniques: List[str] = field(default_factory=list)
    lock_timeout: Optional[float] = None

    def column_constraints(self) -> Dict[str, List[str]]:
        return {"uniques": list(self.uniques)}

    def to_json(self) -> Dict[str, object]:
        return {
            "spreadsheet_id": self.spreadsheet_id,
            "sheet_name": self.sheet_name,
            "credential_path": self.credential_path,
            "uniques": list(self.uniques),
            "lock_timeout": self.lock_timeout,
        }


def _extract_title(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _coerce_uniques(value: object) -> List[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(entry) for entry in value if isinstance(entry, (str, int))]
    return []


def _coerce_timeout(value: object) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid lock_timeout %r", value)
        return None
    return timeout if timeout > 0 else None


def settings_from_mapping(data: Mapping[str, object]) -> TableSettings:
    """Build :class:`TableSettings` from a JSON-like mapping, filling defaults."""

    return TableSettings(
        spreadsheet_id=str(data.get("spreadsheet_id") or DEFAULT_SPREADSHEET_ID),
        sheet_name=_extract_title(data.get("sheet_name")) or DEFAULT_SHEET_NAME,
        credential_path=str(data.get("credential_path") or DEFAULT_CREDENTIALS_PATH),
        uniques=_coerce_uniques(data.get("uniques", [])),
        lock_timeout=_coerce_timeout(data.get("lock_timeout")),
    )


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> TableSettings:
    """Load settings from ``path``; a missing file yields the defaults."""

    if not os.path.exists(path):
        logger.debug("Settings file %s not found, using defaults", path)
        return settings_from_mapping({})

    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, Mapping):
        logger.warning("Settings file %s does not contain an object, using defaults", path)
        data = {}
    return settings_from_mapping(data)


def save_settings(settings: TableSettings, path: str = DEFAULT_SETTINGS_PATH) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as handle:
        json.dump(settings.to_json(), handle, indent=2)


__all__ = [
    "DEFAULT_CREDENTIALS_PATH",
    "DEFAULT_SETTINGS_PATH",
    "DEFAULT_SHEET_NAME",
    "DEFAULT_SPREADSHEET_ID",
    "TableSettings",
    "load_settings",
    "save_settings",
    "settings_from_mapping",
]
