#!/usr/bin/env python3
"""
Smoke test for secret relay deployments.

Flow:
1. Health check
2. Store a secret (POST /v1/secret)
3. Redeem it (GET /v1/secret/{key}) and compare the payload
4. Redeem again and expect 404
5. Invalid expiration is rejected with 400

Usage:
    ./scripts/smoke-test.py https://relay.example.com
    ./scripts/smoke-test.py https://relay.example.com --health-only
"""

import argparse
import json
import secrets
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

DEFAULT_TIMEOUT_SECONDS = 10.0
HEALTH_SLEEP_SECONDS = 2
BODY_PREVIEW_CHARS = 200


def log(msg: str) -> None:
    """Print timestamped log message."""
    print(f"[{datetime.now().strftime('%H:%M:%S')}] {msg}", flush=True)


@dataclass
class HttpClient:
    base_url: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def request_json(
        self, method: str, path: str, data: dict[str, Any] | None = None
    ) -> tuple[int, dict[str, Any]]:
        body = json.dumps(data).encode() if data is not None else None
        request = Request(
            f"{self.base_url}{path}",
            data=body,
            headers={"Content-Type": "application/json"},
            method=method,
        )
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                status, raw = response.getcode(), response.read()
        except HTTPError as e:
            status, raw = e.code, e.read() if e.fp else b""
        try:
            return status, json.loads(raw.decode() or "{}")
        except json.JSONDecodeError as e:
            preview = raw.decode("utf-8", errors="replace")[:BODY_PREVIEW_CHARS]
            raise RuntimeError(f"Invalid JSON from {method} {path}: {preview!r}") from e


@dataclass
class SmokeContext:
    client: HttpClient
    max_health_attempts: int
    payload: str = ""
    key: str | None = None

    def require_key(self) -> str:
        if not self.key:
            raise RuntimeError("Missing key (step ordering bug)")
        return self.key


@dataclass(frozen=True)
class Step:
    name: str
    run: Callable[[SmokeContext], None]


def expect(status: int, body: dict[str, Any], want_status: int, want_message: str) -> None:
    if status != want_status or body.get("message") != want_message:
        raise RuntimeError(
            f"Expected {want_status} {want_message!r}, got {status} {body.get('message')!r}"
        )


def step_health(ctx: SmokeContext) -> None:
    for attempt in range(1, ctx.max_health_attempts + 1):
        try:
            status, body = ctx.client.request_json("GET", "/health")
            if status == 200 and body.get("status") == "healthy":
                return
        except (URLError, TimeoutError) as e:
            log(f"Health attempt {attempt} failed: {e}")
        time.sleep(HEALTH_SLEEP_SECONDS)
    raise RuntimeError("Health check failed")


def step_store(ctx: SmokeContext) -> None:
    ctx.payload = f"smoke-{secrets.token_hex(8)}"
    status, body = ctx.client.request_json(
        "POST", "/v1/secret", {"secret": ctx.payload, "expiration": 3600}
    )
    expect(status, body, 200, "secret stored")
    ctx.key = body["key"]


def step_redeem(ctx: SmokeContext) -> None:
    status, body = ctx.client.request_json("GET", f"/v1/secret/{ctx.require_key()}")
    expect(status, body, 200, "OK")
    if body.get("secret") != ctx.payload:
        raise RuntimeError("Redeemed payload does not match what was stored")


def step_redeem_again(ctx: SmokeContext) -> None:
    status, body = ctx.client.request_json("GET", f"/v1/secret/{ctx.require_key()}")
    expect(status, body, 404, "Secret not found")


def step_invalid_expiration(ctx: SmokeContext) -> None:
    status, body = ctx.client.request_json(
        "POST", "/v1/secret", {"secret": "x", "expiration": 60}
    )
    expect(status, body, 400, "Invalid expiration specified")


def run_steps(ctx: SmokeContext, steps: list[Step]) -> bool:
    for step in steps:
        log(f"STEP: {step.name}")
        start = time.time()
        try:
            step.run(ctx)
        except Exception as e:
            log(f"FAILED: {step.name} ({time.time() - start:.2f}s) - {e}")
            return False
        log(f"PASSED: {step.name} ({time.time() - start:.2f}s)")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Secret relay smoke test")
    parser.add_argument("base_url", help="Base URL (e.g., https://relay.example.com)")
    parser.add_argument(
        "--health-only",
        action="store_true",
        help="Only run health check, skip full flow",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"HTTP timeout seconds (default: {DEFAULT_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--max-health-attempts",
        type=int,
        default=30,
        help="Max health check attempts (default: 30)",
    )
    args = parser.parse_args()

    client = HttpClient(base_url=args.base_url.rstrip("/"), timeout_seconds=args.timeout)
    ctx = SmokeContext(client=client, max_health_attempts=args.max_health_attempts)

    steps = [Step("health", step_health)]
    if args.health_only:
        log("Health-only mode: skipping full flow")
    else:
        steps.extend(
            [
                Step("store secret", step_store),
                Step("redeem secret", step_redeem),
                Step("second redeem is gone", step_redeem_again),
                Step("invalid expiration", step_invalid_expiration),
            ]
        )

    return 0 if run_steps(ctx, steps) else 1


if __name__ == "__main__":
    sys.exit(main())
