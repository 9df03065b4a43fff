#!/usr/bin/env python3
"""Post-deploy checks for the Service Connect backend."""

from __future__ import annotations

import os
import time
from typing import Any, Callable

import httpx


def fail(message: str) -> None:
    print(f"ERROR: {message}")
    raise SystemExit(1)


def normalize_base_url(base_url: str) -> str:
    url = (base_url or "").strip().rstrip("/")
    # Accept accidental values like ".../api" or ".../api/v1" in secrets.
    for suffix in ("/api/v1", "/api"):
        if url.endswith(suffix):
            return url[: -len(suffix)]
    return url


def expect_status(expected: str) -> Callable[[Any], None]:
    def check(data: Any) -> None:
        actual = data.get("status") if isinstance(data, dict) else None
        if actual != expected:
            raise RuntimeError(f"status mismatch: expected '{expected}', got '{actual}'.")

    return check


def expect_list(data: Any) -> None:
    if not isinstance(data, list):
        raise RuntimeError("expected a JSON list.")


def check_endpoint(
    client: httpx.Client,
    path: str,
    check: Callable[[Any], None],
    *,
    retries: int,
    retry_delay: float,
) -> None:
    last_error = None

    for attempt in range(retries + 1):
        try:
            res = client.get(path)
            if res.status_code != 200:
                raise RuntimeError(f"HTTP {res.status_code}, expected 200. Body: {res.text[:300]}")
            check(res.json())
            print(f"OK: {path}")
            return
        except (httpx.HTTPError, ValueError, RuntimeError) as exc:
            last_error = f"{path}: {exc}"

        if attempt < retries:
            wait = retry_delay * (attempt + 1)
            print(f"WARN: {last_error} (retry {attempt + 1}/{retries} in {wait:.1f}s)")
            time.sleep(wait)

    fail(last_error or f"{path} failed")


def main() -> None:
    base_url = normalize_base_url(os.getenv("BACKEND_BASE_URL", ""))
    if not base_url:
        fail("Missing BACKEND_BASE_URL environment variable.")

    timeout = float(os.getenv("HEALTHCHECK_TIMEOUT_SECONDS", "25"))
    retries = int(os.getenv("HEALTHCHECK_RETRIES", "4"))
    retry_delay = float(os.getenv("HEALTHCHECK_RETRY_DELAY_SECONDS", "4"))

    print(f"Healthcheck config: base_url={base_url} timeout={timeout}s retries={retries} retry_delay={retry_delay}s")

    with httpx.Client(base_url=base_url, timeout=timeout, headers={"User-Agent": "serviceconnect-healthcheck/1.0"}) as client:
        check_endpoint(client, "/healthz", expect_status("ok"), retries=retries, retry_delay=retry_delay)
        check_endpoint(client, "/readyz", expect_status("ready"), retries=retries, retry_delay=retry_delay)
        check_endpoint(client, "/api/v1/services", expect_list, retries=retries, retry_delay=retry_delay)
    print("SUCCESS: all health checks passed.")


if __name__ == "__main__":
    main()
