"""Concurrent purchase load against a running Flash Sale API.

Fires N simultaneous purchases of one product, each from a distinct user and
a distinct forwarded address (so the per-user and per-IP tiers do not mask
the stock contention), then checks that nothing was oversold.

    python scripts/stress_purchase.py --product-id 1 --buyers 500
"""

from __future__ import annotations

import argparse
import asyncio
import time
from collections import Counter

import httpx


async def _purchase(client: httpx.AsyncClient, product_id: int, buyer: int) -> str:
    headers = {"X-Forwarded-For": f"10.{buyer // 65536 % 256}.{buyer // 256 % 256}.{buyer % 256}"}
    try:
        resp = await client.post(
            "/api/purchase",
            json={"productId": product_id, "userId": f"stress-{buyer}", "quantity": 1},
            headers=headers,
        )
    except httpx.HTTPError:
        return "transport_error"

    if resp.status_code == 200:
        return "sold" if resp.json().get("success") else "out_of_stock"
    if resp.status_code == 429:
        return "rate_limited"
    return f"http_{resp.status_code}"


async def run(base_url: str, product_id: int, buyers: int) -> int:
    limits = httpx.Limits(max_connections=buyers, max_keepalive_connections=buyers)
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0, limits=limits) as client:
        before = (await client.get(f"/api/stock/{product_id}")).json()["stock"]

        start = time.perf_counter()
        outcomes = Counter(
            await asyncio.gather(*(_purchase(client, product_id, i) for i in range(buyers)))
        )
        duration = time.perf_counter() - start

        after = (await client.get(f"/api/stock/{product_id}")).json()["stock"]

    sold = outcomes["sold"]
    print(f"buyers={buyers} duration={duration:.3f}s stock_before={before} stock_after={after}")
    for outcome, count in sorted(outcomes.items()):
        print(f"  {outcome:<16} {count}")

    if sold > before or before - after != sold or after < 0:
        print(f"OVERSOLD: {sold} sales against {before} units, stock now {after}")
        return 1
    print("OK: stock accounting is consistent")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--product-id", type=int, default=1)
    parser.add_argument("--buyers", type=int, default=200)
    args = parser.parse_args()
    raise SystemExit(asyncio.run(run(args.base_url, args.product_id, args.buyers)))


if __name__ == "__main__":
    main()
