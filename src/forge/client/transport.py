"""HTTP client for the Forge API.

``open_stream`` posts the transcript to the generation backend and hands back
an iterator over decoded text chunks. It raises ``TransportError`` before
returning when the backend refuses the request, so callers can tell a rejected
submit apart from a stream that breaks after it started.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

import requests
from requests.adapters import HTTPAdapter

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://127.0.0.1:8000"


def stream_timeout() -> Tuple[float, float]:
    """(connect, read) seconds from FORGE_CONNECT_TIMEOUT / FORGE_READ_TIMEOUT."""
    return (
        float(os.getenv("FORGE_CONNECT_TIMEOUT", "5")),
        float(os.getenv("FORGE_READ_TIMEOUT", "120")),
    )


class TransportError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamTransport(Protocol):
    def open_stream(self, messages: List[Dict[str, Any]], model_id: str) -> Iterator[str]: ...


def _build_session() -> requests.Session:
    # Submits are never retried behind the user's back.
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=0, pool_connections=4, pool_maxsize=4)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _error_detail(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        return str(data.get("detail") or data.get("error") or data)
    return str(data)


class ForgeApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[Tuple[float, float]] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("FORGE_API_URL") or DEFAULT_API_URL).rstrip("/")
        self._session = session or _build_session()
        self._timeout = timeout or stream_timeout()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api{path}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = self._session.request(method, self._url(path), timeout=self._timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise TransportError(_error_detail(resp), status_code=resp.status_code)
        return resp.json() if resp.content else {}

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def open_stream(self, messages: List[Dict[str, Any]], model_id: str) -> Iterator[str]:
        payload = {"messages": messages, "modelId": model_id}
        try:
            resp = self._session.post(self._url("/chat"), json=payload, timeout=self._timeout, stream=True)
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Generation request failed: {exc}") from exc
        if resp.status_code >= 400:
            detail = _error_detail(resp)
            resp.close()
            logger.warning("Generation request rejected status=%s detail=%s", resp.status_code, detail)
            raise TransportError(detail, status_code=resp.status_code)
        if not resp.encoding:
            resp.encoding = "utf-8"
        return self._iter_chunks(resp)

    @staticmethod
    def _iter_chunks(resp: requests.Response) -> Iterator[str]:
        with resp:
            try:
                for chunk in resp.iter_content(chunk_size=None, decode_unicode=True):
                    if chunk:
                        yield chunk
            except requests.exceptions.RequestException as exc:
                raise TransportError(f"Stream interrupted: {exc}") from exc

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def signup(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/auth/signup", json={"email": email, "password": password, "name": name})["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})["user"]

    def logout(self) -> None:
        self._request("POST", "/auth/logout")

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------
    def list_chats(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/chats")["chats"]

    def create_chat(self, title: Optional[str] = None, model_id: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/chats", json={"title": title, "modelId": model_id})["chat"]

    def get_chat(self, chat_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/chats/{chat_id}")

    def add_message(self, chat_id: int, role: str, content: str) -> Dict[str, Any]:
        return self._request("POST", f"/chats/{chat_id}/messages", json={"role": role, "content": content})["message"]
