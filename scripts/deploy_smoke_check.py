"""Post-deploy smoke checks executed from the app container."""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request

BASE_URL = os.environ.get("SMOKE_BASE_URL", "http://localhost:8000")
API_PREFIX = "/api/v1"


def request(
    path: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    expected: int = 200,
) -> bytes:
    req_headers = {"Accept": "application/json"}
    if headers:
        req_headers.update(headers)

    request_obj = urllib.request.Request(
        f"{BASE_URL}{path}",
        method=method,
        headers=req_headers,
    )
    try:
        with urllib.request.urlopen(request_obj, timeout=30) as response:
            content = response.read()
            status = response.getcode()
    except urllib.error.HTTPError as exc:  # pragma: no cover - runtime smoke script
        if exc.code == expected:
            return exc.read()
        body_text = exc.read().decode("utf-8", errors="ignore")
        raise RuntimeError(f"{method} {path} -> {exc.code}: {body_text}") from exc

    if status != expected:
        raise RuntimeError(f"{method} {path} -> {status}, expected {expected}")
    return content


def main() -> None:
    for endpoint in ["/health", "/ready", "/docs", "/metrics"]:
        request(endpoint, expected=200)

    # Protected endpoints must reject anonymous callers.
    request(f"{API_PREFIX}/schedule/policy/window", expected=401)

    token = os.environ.get("SMOKE_ACCESS_TOKEN")
    if token:
        auth = {"Authorization": f"Bearer {token}"}
        request(f"{API_PREFIX}/identity/users/me", headers=auth, expected=200)
        window = json.loads(request(f"{API_PREFIX}/schedule/policy/window", headers=auth).decode("utf-8"))
        print(f"Current week starts {window['currentWeekStart']}, next week open: {window['nextWeekOpen']}")

    print("Smoke checks passed.")


if __name__ == "__main__":
    main()
