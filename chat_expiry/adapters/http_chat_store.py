"""HTTP adapter for the host chat server.

Implements ChatStoreProtocol on top of a ``requests.Session``. The session
keeps the host's session cookie, and a CSRF token is fetched once and sent
with every POST. All calls are sequential and unretried, apart from a single
CSRF refresh when the host rejects a stale token.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from chat_expiry.core.errors import TransportError
from chat_expiry.core.models import Owner

logger = logging.getLogger(__name__)

CSRF_ENDPOINT = "/csrf-token"
CHARACTERS_ENDPOINT = "/api/characters/all"
GROUPS_ENDPOINT = "/api/groups/all"
SEARCH_CHATS_ENDPOINT = "/api/chats/search"
DELETE_CHAT_ENDPOINT = "/api/chats/delete"
DELETE_GROUP_CHAT_ENDPOINT = "/api/chats/group/delete"
MAINTENANCE_REPORT_ENDPOINT = "/api/data-maid/report"
MAINTENANCE_DELETE_ENDPOINT = "/api/data-maid/delete"
MAINTENANCE_FINALIZE_ENDPOINT = "/api/data-maid/finalize"

ERROR_MESSAGE_MAX_LEN = 240


class HttpChatStore:
    """Chat store backed by the host server's JSON API."""

    def __init__(
        self,
        base_url: str,
        timeout: tuple[float, float] = (10.0, 120.0),
        csrf_enabled: bool = True,
        auth: tuple[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            base_url: Host base URL, e.g. ``http://127.0.0.1:8000``.
            timeout: (connect, read) timeout applied to every request.
            csrf_enabled: Fetch and send a CSRF token.
            auth: Optional HTTP basic auth credentials.
            session: Optional session override for testing.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._csrf_enabled = csrf_enabled
        self._session = session or requests.Session()
        if auth is not None:
            self._session.auth = auth
        self._csrf_token: str | None = None

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _get_csrf_token(self) -> str:
        if self._csrf_token:
            return self._csrf_token
        try:
            response = self._session.get(self._url(CSRF_ENDPOINT), timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError("csrf", str(exc)) from exc
        if not response.ok:
            raise TransportError("csrf", self._describe(response), response.status_code)
        try:
            token = response.json().get("token")
        except (ValueError, AttributeError) as exc:
            raise TransportError("csrf", "response is not valid JSON") from exc
        if not isinstance(token, str) or not token:
            raise TransportError("csrf", "response did not include a token")
        self._csrf_token = token
        return token

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._csrf_enabled:
            headers["X-CSRF-Token"] = self._get_csrf_token()
        return headers

    def _post(self, operation: str, path: str, payload: dict[str, Any] | None = None) -> requests.Response:
        """POST a JSON body and return the 2xx response.

        Raises:
            TransportError: On network failure or a non-2xx status.
        """
        refreshed = False
        while True:
            headers = self._headers()
            try:
                response = self._session.post(
                    self._url(path),
                    json=payload if payload is not None else {},
                    headers=headers,
                    timeout=self._timeout,
                )
            except requests.RequestException as exc:
                raise TransportError(operation, str(exc)) from exc

            if response.status_code == 403 and self._csrf_enabled and not refreshed:
                logger.debug(f"{operation}: host rejected CSRF token, refreshing once")
                self._csrf_token = None
                refreshed = True
                continue
            if not response.ok:
                raise TransportError(operation, self._describe(response), response.status_code)
            return response

    def _post_json(self, operation: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        response = self._post(operation, path, payload)
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(operation, "response is not valid JSON") from exc

    @staticmethod
    def _describe(response: requests.Response) -> str:
        text = (response.text or response.reason or f"HTTP {response.status_code}")
        text = text.replace("\n", " ").replace("\r", " ")
        return text[:ERROR_MESSAGE_MAX_LEN]

    @staticmethod
    def _expect_list(operation: str, data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, list):
            raise TransportError(operation, f"expected a list, got {type(data).__name__}")
        return [item for item in data if isinstance(item, dict)]

    # -------------------------------------------------------------------------
    # ChatStoreProtocol
    # -------------------------------------------------------------------------

    def list_characters(self) -> list[dict[str, Any]]:
        data = self._post_json("list_characters", CHARACTERS_ENDPOINT)
        return self._expect_list("list_characters", data)

    def list_groups(self) -> list[dict[str, Any]]:
        data = self._post_json("list_groups", GROUPS_ENDPOINT)
        return self._expect_list("list_groups", data)

    def search_conversations(self, owner: Owner) -> list[dict[str, Any]]:
        payload = {
            "query": "",
            "avatar_url": None if owner.is_group else owner.ref,
            "group_id": owner.ref if owner.is_group else None,
        }
        data = self._post_json("search_conversations", SEARCH_CHATS_ENDPOINT, payload)
        return self._expect_list("search_conversations", data)

    def delete_conversation(self, owner: Owner, file_id: str) -> bool:
        if owner.is_group:
            path = DELETE_GROUP_CHAT_ENDPOINT
            payload: dict[str, Any] = {"id": file_id}
        else:
            path = DELETE_CHAT_ENDPOINT
            payload = {"chatfile": file_id, "avatar_url": owner.ref}
        try:
            self._post("delete_conversation", path, payload)
        except TransportError as e:
            logger.error(f"Failed to delete chat {file_id}: {e}")
            return False
        return True

    def fetch_maintenance_report(self) -> dict[str, Any]:
        data = self._post_json("fetch_maintenance_report", MAINTENANCE_REPORT_ENDPOINT)
        if not isinstance(data, dict):
            raise TransportError("fetch_maintenance_report", "expected an object")
        report = data.get("report")
        backups = (report.get("chatBackups") if isinstance(report, dict) else None) or []
        token = data.get("token")
        return {
            "backups": [item for item in backups if isinstance(item, dict)],
            "token": token if isinstance(token, str) and token else None,
        }

    def delete_backups(self, hashes: list[str], token: str) -> bool:
        try:
            self._post(
                "delete_backups",
                MAINTENANCE_DELETE_ENDPOINT,
                {"hashes": hashes, "token": token},
            )
        except TransportError as e:
            logger.error(f"Failed to delete backups: {e}")
            return False
        return True

    def finalize_maintenance(self, token: str) -> None:
        try:
            self._post("finalize_maintenance", MAINTENANCE_FINALIZE_ENDPOINT, {"token": token})
        except TransportError as e:
            logger.error(f"Failed to finalize maintenance: {e}")

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()
