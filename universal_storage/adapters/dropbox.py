"""Dropbox remote capability implementation."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from ..errors import (
    BackoffRequested,
    OffsetMismatch,
    RemoteApplicationError,
    StorageError,
    TransientNetworkError,
)
from .base import CommitInfo, RemoteStorage, WriteMode


LOGGER = logging.getLogger(__name__)

API_URL = "https://api.dropboxapi.com/2"
CONTENT_URL = "https://content.dropboxapi.com/2"
DEFAULT_RETRY_AFTER = 1.0


def _format_client_modified(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _retry_after(response: httpx.Response) -> float:
    raw = response.headers.get("Retry-After")
    if not raw:
        return DEFAULT_RETRY_AFTER
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_RETRY_AFTER


def _incorrect_offset(error: Dict[str, Any]) -> Optional[int]:
    """Extract ``correct_offset`` from an append or finish error body."""

    if error.get(".tag") == "lookup_failed":
        error = error.get("lookup_failed") or {}
    if error.get(".tag") == "incorrect_offset" and "correct_offset" in error:
        return int(error["correct_offset"])
    return None


class DropboxRemoteStorage(RemoteStorage):
    """Interact with the Dropbox HTTP API v2 using an access token."""

    def __init__(
        self,
        *,
        access_token: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not access_token:
            raise StorageError("DROPBOX_ACCESS_TOKEN is not configured")

        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # RemoteStorage interface
    # ------------------------------------------------------------------
    def session_start(self, data: bytes) -> str:
        response = self._content_call("upload_session/start", {"close": False}, data)
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteApplicationError(f"upload_session/start returned a non-JSON body: {response.text[:200]}") from exc
        session_id = body.get("session_id") if isinstance(body, dict) else None
        if not session_id:
            raise RemoteApplicationError("upload_session/start returned no session_id")
        return session_id

    def session_append(self, session_id: str, offset: int, data: bytes) -> None:
        arg = {"cursor": {"session_id": session_id, "offset": offset}, "close": False}
        self._content_call("upload_session/append_v2", arg, data)

    def session_finish(self, session_id: str, offset: int, data: bytes, commit: CommitInfo) -> None:
        arg = {
            "cursor": {"session_id": session_id, "offset": offset},
            "commit": self._commit_arg(commit.path, commit.mode, commit.client_modified),
        }
        self._content_call("upload_session/finish", arg, data)

    def upload(
        self,
        path: str,
        data: bytes,
        mode: WriteMode = WriteMode.OVERWRITE,
        client_modified: Optional[datetime] = None,
    ) -> None:
        self._content_call("upload", self._commit_arg(path, mode, client_modified), data)

    def delete(self, path: str) -> None:
        self._rpc_call("files/delete_v2", {"path": path})

    def create_folder(self, path: str) -> None:
        self._rpc_call("files/create_folder_v2", {"path": path, "autorename": False})

    def download_to_path(self, path: str, destination: Path) -> None:
        headers = {"Dropbox-API-Arg": json.dumps({"path": path})}
        writing = False
        try:
            with self._client.stream("POST", f"{CONTENT_URL}/files/download", headers=headers) as response:
                if response.status_code >= 400:
                    response.read()
                    self._raise_for_status(response, f"download '{path}'")
                destination.parent.mkdir(parents=True, exist_ok=True)
                writing = True
                with destination.open("wb") as handle:
                    for chunk in response.iter_bytes():
                        handle.write(chunk)
        except httpx.TransportError as exc:
            if writing and destination.exists():
                LOGGER.debug("Discarding partial download %s", destination)
                destination.unlink()
            raise TransientNetworkError(f"Network failure while downloading '{path}': {exc}") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _commit_arg(path: str, mode: WriteMode, client_modified: Optional[datetime]) -> Dict[str, Any]:
        arg: Dict[str, Any] = {
            "path": path,
            "mode": WriteMode(mode).value,
            "autorename": False,
            "mute": False,
        }
        formatted = _format_client_modified(client_modified)
        if formatted:
            arg["client_modified"] = formatted
        return arg

    def _content_call(self, endpoint: str, arg: Dict[str, Any], data: bytes) -> httpx.Response:
        headers = {
            "Dropbox-API-Arg": json.dumps(arg),
            "Content-Type": "application/octet-stream",
        }
        return self._post(f"{CONTENT_URL}/files/{endpoint}", endpoint, headers=headers, content=data)

    def _rpc_call(self, endpoint: str, payload: Dict[str, Any]) -> httpx.Response:
        return self._post(f"{API_URL}/{endpoint}", endpoint, json=payload)

    def _post(self, url: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.post(url, **kwargs)
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"Network failure during {action}: {exc}") from exc
        self._raise_for_status(response, action)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status in (429, 503):
            raise BackoffRequested(_retry_after(response), f"{action} rate limited ({status})")

        summary = response.text
        if status == 409:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            summary = body.get("error_summary") or summary
            offset = _incorrect_offset(body.get("error") or {})
            if offset is not None:
                LOGGER.debug("%s reported incorrect offset, backend has %d bytes", action, offset)
                raise OffsetMismatch(offset, f"{action} failed: {summary}")
        raise RemoteApplicationError(f"Failed to {action}: {status} {summary}")
