"""
Upstream draw-history API client.

Issues one POST per poll cycle and returns whatever came back, without ever
raising to the caller: transport failures and timeouts are folded into a
sentinel status so the poller can treat them like any other bad cycle.
"""

import json
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

# Returned instead of raising on timeout / connection failure
NETWORK_ERROR_STATUS = 599

DEFAULT_TIMEOUT = 10.0

BROWSER_HEADERS = {
    "Content-Type": "application/json;charset=UTF-8",
    "Accept": "application/json, text/plain, */*",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
}


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one upstream call.

    body is decoded JSON when the upstream sent JSON, the raw text otherwise,
    and None when the request never produced a response.
    """
    status: int
    body: Any
    error: Optional[str]
    elapsed_ms: int
    fetched_at_ms: int

    @property
    def ok(self) -> bool:
        return self.status == 200

    def preview(self, limit: int) -> str:
        """Truncated text rendering of the body for the debug endpoint."""
        if self.body is None:
            return ""
        if isinstance(self.body, str):
            text = self.body
        else:
            text = json.dumps(self.body, ensure_ascii=False)
        return text if len(text) <= limit else text[:limit] + "..."


def _origin_of(url: str) -> str:
    try:
        u = httpx.URL(url)
    except Exception:
        return ""
    if not u.scheme or not u.host:
        return ""
    port = f":{u.port}" if u.port else ""
    return f"{u.scheme}://{u.host}{port}"


def _decode_body(resp: httpx.Response) -> Any:
    """
    JSON if the content type says so or the text happens to parse, else text.
    """
    text = resp.text
    ctype = resp.headers.get("content-type", "").lower()
    if "json" in ctype or text.lstrip().startswith(("{", "[")):
        try:
            return json.loads(text)
        except (ValueError, RecursionError):
            return text
    return text


class UpstreamClient:
    """
    Thin wrapper around the draw-history endpoint.

    Responsibilities:
    - Build the request payload (paging, type/language ids, nonce, timestamp)
    - POST it with browser-like headers and a bounded timeout
    - Decode the body tolerantly and remember the last result

    Non-responsibilities:
    - Locating records inside the body (see upstream.extract)
    - Computing request signatures; a static one may be configured
    """

    def __init__(
        self,
        url: str,
        *,
        page_size: int = 10,
        type_id: int = 1,
        language: int = 0,
        signature: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        extra_headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.page_size = page_size
        self.type_id = type_id
        self.language = language
        self.signature = signature

        headers = dict(BROWSER_HEADERS)
        origin = _origin_of(url)
        if origin:
            headers["Origin"] = origin
            headers["Referer"] = origin + "/"
        headers.update(extra_headers or {})
        self._headers = headers

        self.http = httpx.Client(timeout=timeout, transport=transport)
        self.last_result: Optional[FetchResult] = None

    # ---------- Request ----------
    def build_payload(self, page_no: int = 1) -> Dict[str, Any]:
        return {
            "pageSize": self.page_size,
            "pageNo": page_no,
            "typeId": self.type_id,
            "language": self.language,
            "random": uuid.uuid4().hex,
            "signature": self.signature,
            "timestamp": int(time.time()),
        }

    def fetch(self, page_no: int = 1) -> FetchResult:
        """
        POST one page request. Never raises.
        """
        started = time.monotonic()
        fetched_at_ms = int(time.time() * 1000)

        try:
            resp = self.http.post(self.url, json=self.build_payload(page_no), headers=self._headers)
            result = FetchResult(
                status=resp.status_code,
                body=_decode_body(resp),
                error=None if resp.status_code == 200 else f"HTTP {resp.status_code}",
                elapsed_ms=int((time.monotonic() - started) * 1000),
                fetched_at_ms=fetched_at_ms,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            result = FetchResult(
                status=NETWORK_ERROR_STATUS,
                body=None,
                error=f"{type(exc).__name__}: {exc}",
                elapsed_ms=int((time.monotonic() - started) * 1000),
                fetched_at_ms=fetched_at_ms,
            )
            print(f"[UPSTREAM][WARN] request failed url={self.url} err={result.error}")

        self.last_result = result
        return result

    # ---------- Cleanup ----------
    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
