#!/usr/bin/env python3
"""
Seed script to populate the system via API endpoints.

Run:
    python seed/seed_images.py --api-id <API-ID> [--api-key <API-KEY>]
    python seed/seed_images.py --base-url https://example.com --count 10 --public

Remove the seeded images again with ``--cleanup``.
"""

import argparse
import sys
from typing import Any, cast

from aws_lambda_powertools import Logger
import requests

from common import IMAGES_PATH, SAMPLE_PNG, auth_headers, resolve_base_url

logger = Logger(service="seed")

SEED_FOLDER = "seed"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed images via Image Storage API")

    parser.add_argument("--base-url", default=None, help="API root URL")
    parser.add_argument(
        "--api-id",
        default=None,
        help="LocalStack API Gateway ID (used when --base-url is not given)",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key for x-api-key header (optional for local)",
    )
    parser.add_argument("--count", type=int, default=4, help="Number of images to seed")
    parser.add_argument("--public", action="store_true", help="Upload the images as public")
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete every image in the seed folder instead of uploading",
    )

    return parser.parse_args()


def upload_images(images_url: str, headers: dict[str, str], *, count: int, public: bool) -> None:
    for index in range(count):
        file_name = f"seed-{index}.png"

        response = requests.post(
            f"{images_url}/upload",
            headers=headers,
            files={"file": (file_name, SAMPLE_PNG, "image/png")},
            data={"is_public": str(public).lower(), "folder": SEED_FOLDER},
            timeout=30,
        )
        response_json = cast(dict[str, Any], response.json())

        if response.status_code == 201:
            logger.info(
                "Seeded image",
                extra={"image": file_name, "image_id": response_json.get("image_id")},
            )
        else:
            logger.error(
                "Failed to seed image",
                extra={
                    "image": file_name,
                    "status": response.status_code,
                    "response": response_json,
                },
            )


def cleanup_images(images_url: str, headers: dict[str, str]) -> None:
    image_ids: list[str] = []
    cursor: str | None = None

    while True:
        params: dict[str, Any] = {"folder": SEED_FOLDER, "limit": 100}
        if cursor:
            params["cursor"] = cursor

        response = requests.get(f"{images_url}/", headers=headers, params=params, timeout=30)
        if not response.ok:
            logger.error(
                "Failed to list images",
                extra={"status": response.status_code, "response": response.text},
            )
            sys.exit(1)

        page = cast(dict[str, Any], response.json())
        image_ids.extend(image["image_id"] for image in page.get("images", []))

        cursor = page.get("pagination", {}).get("next_cursor")
        if not cursor:
            break

    if not image_ids:
        logger.info("No images found for cleanup")
        return

    for start in range(0, len(image_ids), 100):
        batch = image_ids[start : start + 100]
        response = requests.post(
            f"{images_url}/batch-delete",
            headers=headers,
            json={"image_ids": batch},
            timeout=30,
        )
        result = cast(dict[str, Any], response.json())
        logger.info(
            "Deleted seeded images",
            extra={"deleted": result.get("deleted_count"), "failed": result.get("failed")},
        )


def seed_images() -> None:
    try:
        args = parse_args()
        images_url = resolve_base_url(base_url=args.base_url, api_id=args.api_id) + IMAGES_PATH
        headers = auth_headers(args.api_key)

        logger.info("Starting seeding process", extra={"api_base_url": images_url})

        if args.cleanup:
            cleanup_images(images_url, headers)
        else:
            upload_images(images_url, headers, count=args.count, public=args.public)

        logger.info("Seeding completed")

    except requests.RequestException as exc:
        logger.exception("Seeding failed", exc_info=exc)
        sys.exit(1)


if __name__ == "__main__":
    seed_images()
