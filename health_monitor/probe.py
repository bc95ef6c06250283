from __future__ import annotations

import time
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

import httpx


@dataclass(frozen=True)
class ProbeOutcome:
    url: str
    ok: bool
    status_code: int | None
    error: str | None
    elapsed_ms: float

    @property
    def reason(self) -> str:
        if self.ok:
            return "ok"
        if self.status_code is None:
            return "transport_error"
        return "unexpected_status"


def safe_url(url: str) -> str:
    """
    Strip query and fragment so tokens in the URL do not end up in logs or alerts.
    """
    s = (url or "").strip()
    if not s:
        return s
    try:
        parts = urlsplit(s)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    except ValueError:
        return s[:500]


async def probe_target(
    client: httpx.AsyncClient,
    url: str,
    *,
    user_agent: str | None = None,
) -> ProbeOutcome:
    headers = {"User-Agent": user_agent} if user_agent else None
    started = time.perf_counter()
    try:
        resp = await client.get(url, headers=headers, follow_redirects=True)
    except httpx.RequestError as e:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        return ProbeOutcome(
            url=url,
            ok=False,
            status_code=None,
            error=f"http_error: {type(e).__name__}: {e}",
            elapsed_ms=round(elapsed_ms, 3),
        )

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    ok = resp.status_code == 200
    return ProbeOutcome(
        url=url,
        ok=ok,
        status_code=resp.status_code,
        error=None if ok else f"status {resp.status_code} {resp.reason_phrase}".strip(),
        elapsed_ms=round(elapsed_ms, 3),
    )
