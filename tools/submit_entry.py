#!/usr/bin/env python3
# ============================================================================
# CLI JOURNAL ENTRY SUBMISSION TOOL
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tool - Submit journal entries via the HTTP API
# PURPOSE: Exercise both journal agents end to end against a running server
# CREATED: 19 OCT 2026
# ============================================================================
"""
Submit a journal entry to POST /api/v1/journal/entries.

The server enqueues one Entry Classifier job and one Commitment Detector
job for the entry. With --poll, each job is polled until it reaches a
terminal status and its final state is printed.

Usage:
    python tools/submit_entry.py u-1 "I will run the Marathon in April."

    # With explicit tags and polling
    python tools/submit_entry.py u-1 "Long run today." --tag HEALTH:fitness:0.8 --poll

Requires:
    A running server (ORCHESTRATOR_URL, default http://localhost:8000)
"""

import argparse
import json
import os
import sys
import time
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

TERMINAL_STATUSES = ("completed", "dead", "cancelled")


def parse_tag(value: str) -> Dict[str, Any]:
    """AREA[:DIMENSION[:STRENGTH]]"""
    parts = value.split(":")
    tag: Dict[str, Any] = {"area_code": parts[0]}
    if len(parts) > 1 and parts[1]:
        tag["dimension_code"] = parts[1]
    if len(parts) > 2 and parts[2]:
        tag["strength"] = float(parts[2])
    return tag


def submit_entry(
    client: httpx.Client,
    orchestrator_url: str,
    user_id: str,
    content: str,
    entry_id: Optional[str] = None,
    entry_date: Optional[str] = None,
    tags: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Post the entry and return {entry_id, jobs}."""
    body = {
        "entry_id": entry_id or f"cli-{uuid.uuid4().hex[:12]}",
        "user_id": user_id,
        "content": content,
        "date": entry_date or date.today().isoformat(),
        "tags": tags or [],
    }
    resp = client.post(f"{orchestrator_url}/api/v1/journal/entries", json=body)
    resp.raise_for_status()
    return resp.json()


def poll_jobs(
    client: httpx.Client,
    orchestrator_url: str,
    jobs: Dict[str, str],
    timeout: int = 120,
    interval: float = 2.0,
) -> Dict[str, Dict[str, Any]]:
    """Poll each job until terminal or timeout. Returns the last seen state per agent."""
    print(f"\nPolling {len(jobs)} jobs (timeout {timeout}s)...\n")

    start = time.time()
    final: Dict[str, Dict[str, Any]] = {}

    while time.time() - start < timeout and len(final) < len(jobs):
        for agent_type, message_id in jobs.items():
            if agent_type in final:
                continue
            try:
                resp = client.get(f"{orchestrator_url}/api/v1/jobs/{message_id}")
            except httpx.HTTPError as e:
                print(f"  [{int(time.time() - start):3d}s] Poll error: {e}")
                continue
            if resp.status_code != 200:
                continue

            data = resp.json()
            status = data.get("status", "unknown")
            print(f"  [{int(time.time() - start):3d}s] {agent_type:<20} {message_id[:12]}... status={status}")
            if status in TERMINAL_STATUSES:
                final[agent_type] = data

        if len(final) < len(jobs):
            time.sleep(interval)

    if len(final) < len(jobs):
        print(f"\nTimeout after {timeout}s")
    return final


def main():
    parser = argparse.ArgumentParser(
        description="Submit a journal entry to the agent orchestrator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s u-1 "I will finish the Report by Friday."
  %(prog)s u-1 "Long run today." --tag HEALTH:fitness:0.8 --poll
        """,
    )
    parser.add_argument("user_id", help="Owner of the entry")
    parser.add_argument("content", help="Entry text")
    parser.add_argument("--entry-id", "-e", help="Entry ID (auto-generated if not set)")
    parser.add_argument("--date", "-d", help="Entry date, YYYY-MM-DD (default: today)")
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Explicit classification AREA[:DIMENSION[:STRENGTH]] (repeatable)",
    )
    parser.add_argument(
        "--poll", "-p",
        action="store_true",
        help="Poll until both jobs are terminal",
    )
    parser.add_argument(
        "--orchestrator-url", "-u",
        default=os.environ.get("ORCHESTRATOR_URL", "http://localhost:8000"),
        help="Orchestrator base URL",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=int,
        default=120,
        help="Poll timeout in seconds (default: 120)",
    )

    args = parser.parse_args()

    try:
        tags = [parse_tag(t) for t in args.tag]
    except ValueError as e:
        print(f"ERROR: Invalid --tag: {e}", file=sys.stderr)
        sys.exit(1)

    url = args.orchestrator_url.rstrip("/")
    with httpx.Client(timeout=10.0) as client:
        try:
            accepted = submit_entry(
                client, url, args.user_id, args.content,
                entry_id=args.entry_id, entry_date=args.date, tags=tags,
            )
        except httpx.HTTPStatusError as e:
            print(f"ERROR: {e.response.status_code} {e.response.text}", file=sys.stderr)
            sys.exit(1)
        except httpx.HTTPError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"Submitted entry {accepted['entry_id']}")
        for agent_type, message_id in accepted["jobs"].items():
            print(f"  {agent_type:<20} {message_id}")

        if args.poll:
            final = poll_jobs(client, url, accepted["jobs"], timeout=args.timeout)
            print("\n--- FINAL RESULT ---")
            print(json.dumps(final, indent=2, default=str))
            if any(job.get("status") != "completed" for job in final.values()):
                sys.exit(1)


if __name__ == "__main__":
    main()
