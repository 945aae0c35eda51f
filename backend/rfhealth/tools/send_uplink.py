"""Send a test uplink to a running rfhealth instance.

Usage::

    python -m rfhealth.tools.send_uplink [payload.json] --url http://localhost:8090
"""
import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx


def sample_payload() -> dict:
    """Two-gateway uplink in the network server's JSON shape."""
    now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return {
        "deviceInfo": {"devEui": "0011223344556677", "deviceName": "test-device"},
        "fCnt": 1,
        "rxInfo": [
            {"gatewayId": "aa555a0000000001", "rssi": -72, "snr": 9.5, "time": now},
            {"gatewayId": "aa555a0000000002", "rssi": -101, "snr": 2.0, "time": now},
        ],
    }


async def send_uplink(url: str, payload: dict, timeout: float = 10,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.Response:
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        return await client.post(url, params={"event": "up"}, json=payload)


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Send a test uplink to the webhook endpoint")
    parser.add_argument("payload", nargs="?", help="JSON payload file (default: built-in sample)")
    parser.add_argument("--url", default="http://localhost:8090/", help="Webhook URL")
    args = parser.parse_args(argv)

    if args.payload:
        path = Path(args.payload)
        if not path.is_file():
            print(f"Error: payload file not found: {path}", file=sys.stderr)
            return 1
        payload = json.loads(path.read_text())
    else:
        payload = sample_payload()

    try:
        response = asyncio.run(send_uplink(args.url, payload))
    except httpx.HTTPError as e:
        print(f"Uplink failed: {e}", file=sys.stderr)
        return 1

    for header in ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"):
        if header in response.headers:
            print(f"{header}: {response.headers[header]}")

    if response.status_code != 200:
        print(f"Uplink failed (HTTP {response.status_code}): {response.text}", file=sys.stderr)
        return 1
    print(f"Uplink sent (HTTP {response.status_code})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
