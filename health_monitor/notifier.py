from __future__ import annotations

import json
from dataclasses import dataclass

import httpx

from .probe import safe_url


@dataclass(frozen=True)
class AlertMessage:
    failures: int
    url: str

    def text(self) -> str:
        return (
            f"🚨 Health check failed {self.failures} times in a row for URL {safe_url(self.url)}! "
            "Please check the service."
        )

    def payload(self, text_field: str = "text") -> dict:
        return {text_field or "text": self.text()}


async def send_webhook_alert(
    client: httpx.AsyncClient,
    webhook_url: str,
    message: AlertMessage,
    *,
    text_field: str = "text",
) -> tuple[bool, dict]:
    """POST the alert once; returns (ok, details) and never raises on transport errors."""
    try:
        resp = await client.post(webhook_url, json=message.payload(text_field))
    except Exception as e:
        msg = f"{type(e).__name__}: {e}"
        # Slack webhook URLs are bearer secrets.
        msg = msg.replace(webhook_url, "<redacted>")
        return False, {"ok": False, "error": msg}

    ok = 200 <= resp.status_code < 300
    details: dict = {"ok": ok, "status_code": resp.status_code}
    if not ok:
        details["error"] = f"status {resp.status_code} {resp.reason_phrase}".strip()
    return ok, details


def redact_webhook_response(data: dict) -> str:
    safe = {"ok": data.get("ok")}
    if data.get("status_code") is not None:
        safe["status_code"] = data.get("status_code")
    if data.get("error"):
        safe["error"] = data.get("error")
    return json.dumps(safe, ensure_ascii=False)
