#!/usr/bin/env python3
# ============================================================================
# CLI JOB SUBMISSION TOOL
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Tool - Submit jobs over HTTP
# PURPOSE: Exercise the scheduler from a terminal
# CREATED: 19 OCT 2026
# ============================================================================
"""
Submit one or more Drive video ids to a running vidscribe instance.

All ids are submitted at once, so this also shows the concurrency
ceiling and duplicate rejection at work.

Usage:
    # One video
    python tools/submit_job.py 1AbCdEfGhIjKlMnOpQrStUvWxYz

    # Several at once, against another host
    python tools/submit_job.py id1 id2 id3 --url http://localhost:8000

    # Queue snapshot only
    python tools/submit_job.py --status
"""

import argparse
import asyncio
import json
import os
import sys
import time
from typing import List

import httpx


async def submit_one(client: httpx.AsyncClient, base_url: str, job_id: str) -> int:
    """Submit a job and print its delivered result. Returns the HTTP status."""
    start = time.monotonic()
    try:
        resp = await client.post(f"{base_url}/api/v1/jobs", json={"job_id": job_id})
    except httpx.HTTPError as e:
        print(f"[{job_id}] request failed: {e}", file=sys.stderr)
        return 0

    elapsed = time.monotonic() - start
    print(f"\n--- {job_id} -> HTTP {resp.status_code} ({elapsed:.1f}s) ---")
    try:
        print(json.dumps(resp.json(), indent=2, ensure_ascii=False))
    except ValueError:
        print(resp.text)
    return resp.status_code


async def submit_all(base_url: str, job_ids: List[str], timeout: float) -> List[int]:
    async with httpx.AsyncClient(timeout=timeout) as client:
        return await asyncio.gather(*(submit_one(client, base_url, j) for j in job_ids))


def show_status(base_url: str) -> None:
    with httpx.Client(timeout=10.0) as client:
        resp = client.get(f"{base_url}/api/v1/scheduler/status")
        resp.raise_for_status()
        print(json.dumps(resp.json(), indent=2))


def main():
    parser = argparse.ArgumentParser(
        description="Submit Drive video ids to vidscribe",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 1AbCdEfGhIjKlMnOpQrStUvWxYz
  %(prog)s id1 id2 id3 --url http://localhost:8000
  %(prog)s --status
        """,
    )
    parser.add_argument("job_ids", nargs="*", help="Google Drive file ids")
    parser.add_argument(
        "--url", "-u",
        default=os.environ.get("VIDSCRIBE_URL", "http://localhost:8000"),
        help="Service base URL (default: $VIDSCRIBE_URL or http://localhost:8000)",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=660.0,
        help="Per-request timeout in seconds (default: 660)",
    )
    parser.add_argument(
        "--status", "-s",
        action="store_true",
        help="Print the scheduler status and exit",
    )

    args = parser.parse_args()
    base_url = args.url.rstrip("/")

    if args.status:
        try:
            show_status(base_url)
        except httpx.HTTPError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(1)
        return

    if not args.job_ids:
        parser.error("at least one job id is required (or --status)")

    print(f"Submitting {len(args.job_ids)} job(s) to {base_url}")
    codes = asyncio.run(submit_all(base_url, args.job_ids, args.timeout))

    failed = [j for j, code in zip(args.job_ids, codes) if code != 200]
    if failed:
        print(f"\n{len(failed)} job(s) did not complete: {', '.join(failed)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
