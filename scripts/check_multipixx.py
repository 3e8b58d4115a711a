"""Smoke-check that multipixx webcam pages still embed the markers the viewer relies on."""

import logging
import sys

import httpx

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

USER_AGENT = "WebcamSun/1.0"

CHECKS = [
    {
        "name": "inubis",
        "target": "https://inubis.multipixx.net/cam/17",
        "markers": ["app.init(17)", "/currentPixx/17"],
    },
    {
        "name": "balmberg",
        "target": "https://seilpark-balmberg.multipixx.net/",
        "markers": ["app.init(19)", "/currentPixx/19"],
    },
]


def run_check(client: httpx.Client, check: dict) -> None:
    response = client.get(check["target"])
    if not response.is_success:
        raise RuntimeError(f"{check['name']} check failed: {response.status_code} {response.reason_phrase}")

    missing = [marker for marker in check["markers"] if marker not in response.text]
    if missing:
        raise RuntimeError(f"{check['name']} check failed: missing {', '.join(missing)}")
    logger.info("%s ok", check["name"])


def main() -> int:
    with httpx.Client(headers={"User-Agent": USER_AGENT}, timeout=20.0, follow_redirects=True) as client:
        for check in CHECKS:
            try:
                run_check(client, check)
            except (RuntimeError, httpx.HTTPError) as exc:
                logger.error(str(exc))
                return 1
    logger.info("multipixx checks ok")
    return 0


if __name__ == "__main__":
    sys.exit(main())
