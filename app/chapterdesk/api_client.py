from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests

from app.chapterdesk.cancellation import CancellationToken
from app.chapterdesk.errors import ApiError, NetworkError, error_from_response

logger = logging.getLogger(__name__)


@dataclass
class ApiClient:
    """
    Thin client for the chapter backend. One instance per app; the bearer token
    is passed per call because it belongs to the browser session, not the app.
    """

    base_url: str
    timeout_seconds: float = 15.0
    read_retries: int = 1
    session: requests.Session = field(default_factory=requests.Session)

    def _url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        cancel: CancellationToken | None = None,
        raw: bool = False,
    ) -> Any:
        url = self._url(path)
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}
        # Reads are safe to repeat; mutations go out exactly once.
        attempts = 1 + (max(self.read_retries, 0) if method == "GET" else 0)

        last_err: Exception | None = None
        for attempt in range(attempts):
            if cancel is not None:
                cancel.raise_if_cancelled()
            try:
                resp = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    data=data,
                    files=files,
                    headers=self._headers(token),
                    timeout=self.timeout_seconds,
                )
            except requests.RequestException as e:
                last_err = e
                logger.warning("Backend %s %s failed (attempt %s/%s): %s", method, path, attempt + 1, attempts, e)
                if attempt + 1 < attempts:
                    time.sleep(min(0.5 * (attempt + 1), 2))
                continue

            # The caller lost interest while we were waiting.
            if cancel is not None:
                cancel.raise_if_cancelled()

            if resp.status_code >= 500 and attempt + 1 < attempts:
                last_err = ApiError(f"HTTP {resp.status_code} from backend", status=resp.status_code)
                logger.warning("Backend %s %s returned %s; retrying", method, path, resp.status_code)
                continue

            if resp.status_code >= 400:
                try:
                    body = resp.json()
                except ValueError:
                    body = {"message": (resp.text or "")[:300]}
                err = error_from_response(resp.status_code, body)
                logger.info("Backend %s %s -> %s (%s)", method, path, resp.status_code, err.message)
                raise err

            if raw:
                return resp
            if not resp.content:
                return {}
            try:
                return resp.json()
            except ValueError as e:
                raise ApiError(f"Invalid JSON from backend ({path})", status=resp.status_code) from e

        if isinstance(last_err, ApiError):
            raise last_err
        raise NetworkError(f"Backend unreachable: {last_err}")

    def get(self, path: str, *, params: dict[str, Any] | None = None, **kw: Any) -> Any:
        return self._send("GET", path, params=params, **kw)

    def post(self, path: str, body: dict[str, Any] | None = None, **kw: Any) -> Any:
        return self._send("POST", path, json=body or {}, **kw)

    def put(self, path: str, body: dict[str, Any] | None = None, **kw: Any) -> Any:
        return self._send("PUT", path, json=body or {}, **kw)

    def patch(self, path: str, body: dict[str, Any] | None = None, **kw: Any) -> Any:
        return self._send("PATCH", path, json=body or {}, **kw)

    def delete(self, path: str, **kw: Any) -> Any:
        return self._send("DELETE", path, **kw)

    def post_multipart(self, path: str, fields: dict[str, Any], files: dict[str, Any], **kw: Any) -> Any:
        return self._send("POST", path, data=_form_fields(fields), files=files, **kw)

    def put_multipart(self, path: str, fields: dict[str, Any], files: dict[str, Any], **kw: Any) -> Any:
        return self._send("PUT", path, data=_form_fields(fields), files=files, **kw)

    def download(self, path: str, *, params: dict[str, Any] | None = None, **kw: Any) -> tuple[bytes, str]:
        """Fetch a binary payload (reports). Returns (content, content_type)."""
        resp = self._send("GET", path, params=params, raw=True, **kw)
        return resp.content, resp.headers.get("Content-Type", "application/octet-stream")


def _form_fields(fields: dict[str, Any]) -> dict[str, str]:
    """Multipart bodies carry strings only; drop empties, stringify the rest."""
    out: dict[str, str] = {}
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, bool):
            out[k] = "true" if v else "false"
        elif isinstance(v, (list, tuple)):
            out[k] = ",".join(str(x) for x in v)
        else:
            out[k] = str(v)
    return out


def client_from_config(config: dict) -> ApiClient:
    return ApiClient(
        base_url=config["API_BASE_URL"],
        timeout_seconds=float(config.get("API_TIMEOUT_SECONDS") or 15.0),
        read_retries=int(config.get("API_READ_RETRIES") or 0),
    )
