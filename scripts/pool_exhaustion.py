#!/usr/bin/env python3
"""
Pool exhaustion scenario driver.

Fires enough /test/hold-conn (or /test/hold-tx) requests to occupy every pool
slot, then calls /test/ping repeatedly while they are in flight. Each ping
should either wait until a holder lets go or fail with PoolTimeoutError; a
ping that returns instantly while every slot is held means acquisition is
not really bounded.

Usage:
    python scripts/pool_exhaustion.py

    # Custom options:
    python scripts/pool_exhaustion.py --holders 10 --hold-sec 10 --mode tx --observe-db
"""

import sys
import os
import time
import argparse
import statistics
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import requests

# Add src directory to path so we can import our modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from logger import get_logger
from config import settings
from db.connection import get_db_connection, fetch_session_states
from tracking import correlation_context

logger = get_logger(__name__)


def call_probe(method: str, url: str, params: Optional[Dict] = None,
               timeout: float = 600) -> Dict:
    """
    Call one probe endpoint and time it from the client side.

    Returns:
        Dict with client_ms, status_code and the decoded JSON body
        (or an "error" key if the HTTP call itself failed)
    """
    with correlation_context() as correlation_id:
        start_time = time.monotonic()
        try:
            response = requests.request(
                method,
                url,
                params=params,
                headers={"X-Correlation-ID": correlation_id},
                timeout=timeout,
            )
            client_ms = (time.monotonic() - start_time) * 1000
            return {
                "client_ms": client_ms,
                "status_code": response.status_code,
                "body": response.json(),
            }
        except (requests.exceptions.RequestException, ValueError) as e:
            client_ms = (time.monotonic() - start_time) * 1000
            return {"client_ms": client_ms, "status_code": 0, "error": str(e)}


def observe_sessions() -> Optional[Dict[str, int]]:
    """
    Snapshot pg_stat_activity for the probe service's sessions.

    Uses a direct connection so it works while the pool is exhausted.
    """
    try:
        conn = get_db_connection()
    except Exception as e:
        logger.warning(f"Could not open observer connection: {e}")
        return None
    try:
        return fetch_session_states(conn)
    finally:
        conn.close()


def run_scenario(api_url: str, holders: int, hold_sec: int, mode: str, commit: bool,
                 pings: int, ping_interval: float, warmup: float, observe_db: bool) -> Dict:
    """
    Start the holders, ping while they hold, and collect everything.
    """
    hold_path = "/test/hold-tx" if mode == "tx" else "/test/hold-conn"
    hold_params = {"holdSec": hold_sec}
    if mode == "tx":
        hold_params["commit"] = str(commit).lower()

    logger.info("Starting pool exhaustion scenario:")
    logger.info(f"  API URL: {api_url}")
    logger.info(f"  Holders: {holders} x POST {hold_path} holdSec={hold_sec}")
    logger.info(f"  Pings: {pings} every {ping_interval}s after {warmup}s warmup")

    results = {"holders": [], "pings": [], "sessions": None}

    with ThreadPoolExecutor(max_workers=holders) as executor:
        holder_futures = [
            executor.submit(call_probe, "POST", api_url + hold_path, hold_params)
            for _ in range(holders)
        ]

        # Give the holders time to check their connections out
        time.sleep(warmup)

        if observe_db:
            results["sessions"] = observe_sessions()

        for i in range(pings):
            ping = call_probe("GET", api_url + "/test/ping")
            results["pings"].append(ping)
            body = ping.get("body", {})
            logger.info(
                f"Ping {i + 1}/{pings}: client={ping['client_ms']:.0f}ms "
                f"server={body.get('acquire_and_query_ms')} error={body.get('error') or ping.get('error')}"
            )
            time.sleep(ping_interval)

        results["holders"] = [future.result() for future in holder_futures]

    return results


def _ok(result: Dict) -> bool:
    return result.get("status_code") == 200 and result.get("body", {}).get("ok") is True


def print_results(results: Dict):
    """
    Print the scenario summary.
    """
    holders: List[Dict] = results["holders"]
    pings: List[Dict] = results["pings"]

    print("\n" + "=" * 70)
    print("POOL EXHAUSTION RESULTS")
    print("=" * 70)

    print("\nHolders:")
    print(f"  Total:      {len(holders)}")
    print(f"  Succeeded:  {sum(1 for h in holders if _ok(h))}")
    print(f"  Failed:     {sum(1 for h in holders if not _ok(h))}")

    ok_pings = [p for p in pings if _ok(p)]
    print("\nPings while held:")
    print(f"  Total:      {len(pings)}")
    print(f"  Succeeded:  {len(ok_pings)}")
    print(f"  Failed:     {len(pings) - len(ok_pings)}")

    if ok_pings:
        server_ms = [p["body"]["acquire_and_query_ms"] for p in ok_pings]
        print(f"  Acquire+query avg:    {statistics.mean(server_ms):.1f} ms")
        print(f"  Acquire+query median: {statistics.median(server_ms):.1f} ms")
        print(f"  Acquire+query max:    {max(server_ms)} ms")

    errors = [p["body"]["error"] for p in pings if "body" in p and not p["body"].get("ok")]
    errors += [p["error"] for p in pings if "error" in p]
    if errors:
        print("\nPing errors (showing first 5):")
        for error in errors[:5]:
            print(f"  {error}")

    if results.get("sessions") is not None:
        print("\nServer sessions during hold (pg_stat_activity):")
        for state, count in sorted(results["sessions"].items()):
            print(f"  {state:24s} {count}")

    print("\n" + "=" * 70 + "\n")


def main():
    """Parse arguments and run the scenario."""
    parser = argparse.ArgumentParser(
        description="Exhaust the probe service's connection pool and ping it meanwhile",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One holder per pool slot, 10 second holds
  python scripts/pool_exhaustion.py --holders 10 --hold-sec 10

  # Hold open transactions instead and show pg_stat_activity
  python scripts/pool_exhaustion.py --mode tx --observe-db
        """
    )

    parser.add_argument(
        "--api-url",
        type=str,
        default=f"http://localhost:{settings.app.api_port}",
        help=f"Base URL of the API (default: http://localhost:{settings.app.api_port})"
    )
    parser.add_argument(
        "--holders",
        type=int,
        default=settings.db.max_connections,
        help=f"Concurrent hold requests (default: DB_POOL_MAX={settings.db.max_connections})"
    )
    parser.add_argument(
        "--hold-sec",
        type=int,
        default=10,
        help="Seconds each holder keeps its connection (default: 10)"
    )
    parser.add_argument(
        "--mode",
        choices=["conn", "tx"],
        default="conn",
        help="Hold a bare connection (conn) or an open transaction (tx)"
    )
    parser.add_argument(
        "--commit",
        action="store_true",
        help="With --mode tx, commit instead of rolling back"
    )
    parser.add_argument(
        "--pings",
        type=int,
        default=3,
        help="Number of /test/ping calls while holders are active (default: 3)"
    )
    parser.add_argument(
        "--ping-interval",
        type=float,
        default=1.0,
        help="Seconds between pings (default: 1.0)"
    )
    parser.add_argument(
        "--warmup",
        type=float,
        default=1.0,
        help="Seconds to wait after starting holders before the first ping (default: 1.0)"
    )
    parser.add_argument(
        "--observe-db",
        action="store_true",
        help="Open a direct connection and report pg_stat_activity states"
    )

    args = parser.parse_args()

    if args.holders < 1:
        parser.error("--holders must be >= 1")

    try:
        results = run_scenario(
            api_url=args.api_url.rstrip("/"),
            holders=args.holders,
            hold_sec=args.hold_sec,
            mode=args.mode,
            commit=args.commit,
            pings=args.pings,
            ping_interval=args.ping_interval,
            warmup=args.warmup,
            observe_db=args.observe_db,
        )
        print_results(results)

        if not all(_ok(h) for h in results["holders"]):
            logger.warning("Some holders failed; the pool may be smaller than --holders")
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("\nScenario interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
