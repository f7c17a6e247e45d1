"""Async access to the Google Sheets v4 API.

:class:`SheetsRemote` is the only place this package talks to Google.  It
exposes the five calls the table layer needs (read, append, update, metadata
and batch update) as coroutines.  The discovery client is synchronous, so each
request is executed on a worker thread with :func:`asyncio.to_thread`; every
remote call is therefore a point where other table operations can run.

Errors raised by the API client (:class:`googleapiclient.errors.HttpError`,
network errors, auth errors) are propagated unmodified.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from googleapiclient.discovery import build

from sheets_table.credentials import load_credentials

logger = logging.getLogger(__name__)

CredentialsSource = Union[Mapping[str, object], str, Path, service_account.Credentials]


def build_service(credentials: service_account.Credentials):
    """Return a Sheets v4 discovery service authorised with ``credentials``."""

    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


class SheetsRemote:
    """Coroutine wrapper around a Sheets v4 discovery service."""

    def __init__(self, service, *, credentials: Optional[service_account.Credentials] = None) -> None:
        self._service = service
        self._credentials = credentials

    @classmethod
    def from_credentials(cls, credentials: CredentialsSource) -> "SheetsRemote":
        scoped = load_credentials(credentials)
        return cls(build_service(scoped), credentials=scoped)

    @property
    def service(self):
        return self._service

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _execute(self, request) -> Dict[str, Any]:
        if self._credentials is None:
            return request.execute()
        # httplib2 connections are not thread-safe; give every call its own
        http = google_auth_httplib2.AuthorizedHttp(self._credentials, http=httplib2.Http())
        return request.execute(http=http)

    async def _call(self, description: str, request) -> Dict[str, Any]:
        logger.debug("Sheets API call: %s", description)
        result = await asyncio.to_thread(self._execute, request)
        return result or {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def read_values(
        self,
        spreadsheet_id: str,
        range: str,
        *,
        value_render_option: Optional[str] = None,
        date_time_render_option: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"spreadsheetId": spreadsheet_id, "range": range}
        if value_render_option is not None:
            params["valueRenderOption"] = value_render_option
        if date_time_render_option is not None:
            params["dateTimeRenderOption"] = date_time_render_option
        request = self._service.spreadsheets().values().get(**params)
        return await self._call(f"values.get {range}", request)

    async def append_values(
        self,
        spreadsheet_id: str,
        range: str,
        values: Sequence[Sequence[Any]],
        **options: Any,
    ) -> Dict[str, Any]:
        request = (
            self._service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=range,
                body={"values": [list(row) for row in values]},
                **options,
            )
        )
        return await self._call(f"values.append {range}", request)

    async def update_values(
        self,
        spreadsheet_id: str,
        range: str,
        values: Sequence[Sequence[Any]],
        **options: Any,
    ) -> Dict[str, Any]:
        request = (
            self._service.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=range,
                body={"values": [list(row) for row in values]},
                **options,
            )
        )
        return await self._call(f"values.update {range}", request)

    async def get_spreadsheet_metadata(self, spreadsheet_id: str) -> Dict[str, Any]:
        request = self._service.spreadsheets().get(
            spreadsheetId=spreadsheet_id,
            includeGridData=False,
            fields="sheets.properties(title,sheetId)",
        )
        return await self._call(f"spreadsheets.get {spreadsheet_id}", request)

    async def batch_update(
        self, spreadsheet_id: str, requests: List[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        request = self._service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": list(requests)},
        )
        return await self._call(f"spreadsheets.batchUpdate {spreadsheet_id}", request)


__all__ = ["SheetsRemote", "build_service"]
