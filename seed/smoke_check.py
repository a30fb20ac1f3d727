#!/usr/bin/env python3
"""
Probe a running deployment: health, an upload/delete round trip and a list
query, each repeated a few times to report latency.

Run:
    python seed/smoke_check.py --base-url http://localhost:8080 --requests 20
"""

import argparse
import statistics
import sys
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from aws_lambda_powertools import Logger
import requests

from common import IMAGES_PATH, SAMPLE_PNG, auth_headers, resolve_base_url

logger = Logger(service="smoke-check")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke check an Image Storage API")
    parser.add_argument("--base-url", default=None, help="API root URL")
    parser.add_argument("--api-id", default=None, help="LocalStack API Gateway ID")
    parser.add_argument("--api-key", default=None, help="API key for x-api-key header")
    parser.add_argument("--requests", type=int, default=10, help="Requests per probe")
    parser.add_argument("--concurrency", type=int, default=4, help="Parallel requests")
    return parser.parse_args()


class Prober:
    def __init__(self, base_url: str, headers: dict[str, str]) -> None:
        self.base_url = base_url
        self.session = requests.Session()
        self.session.headers.update(headers)

    def health(self) -> None:
        response = self.session.get(f"{self.base_url}/health", timeout=10)
        response.raise_for_status()

    def upload_round_trip(self) -> None:
        response = self.session.post(
            f"{self.base_url}{IMAGES_PATH}/upload",
            files={"file": ("probe.png", SAMPLE_PNG, "image/png")},
            data={"is_public": "false", "folder": "smoke-check"},
            timeout=30,
        )
        response.raise_for_status()

        image_id = response.json()["image_id"]
        self.session.delete(f"{self.base_url}{IMAGES_PATH}/{image_id}", timeout=30).raise_for_status()

    def list_images(self) -> None:
        response = self.session.get(
            f"{self.base_url}{IMAGES_PATH}/",
            params={"limit": 10},
            timeout=30,
        )
        response.raise_for_status()


def run_probe(
    name: str,
    probe: Callable[[], None],
    *,
    total: int,
    concurrency: int,
) -> bool:
    def timed() -> float | None:
        started = time.perf_counter()
        try:
            probe()
        except requests.RequestException as exc:
            logger.warning("Probe request failed", extra={"probe": name, "error": str(exc)})
            return None
        return time.perf_counter() - started

    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        results = list(pool.map(lambda _: timed(), range(total)))

    latencies = [latency for latency in results if latency is not None]
    failed = total - len(latencies)

    logger.info(
        "Probe finished",
        extra={
            "probe": name,
            "total": total,
            "failed": failed,
            "error_rate": failed / total if total else 0.0,
            "avg_ms": round(statistics.mean(latencies) * 1000, 1) if latencies else None,
            "max_ms": round(max(latencies) * 1000, 1) if latencies else None,
        },
    )
    return failed == 0


def main() -> None:
    args = parse_args()
    prober = Prober(
        resolve_base_url(base_url=args.base_url, api_id=args.api_id),
        auth_headers(args.api_key),
    )

    probes: dict[str, Callable[[], None]] = {
        "health": prober.health,
        "upload": prober.upload_round_trip,
        "list": prober.list_images,
    }

    ok = all(
        [
            run_probe(name, probe, total=args.requests, concurrency=args.concurrency)
            for name, probe in probes.items()
        ]
    )
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
