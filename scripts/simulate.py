"""
Rush-Hour Simulation Script

Fires concurrent order submissions at a running portal to check the queue
invariants under load:
    - every device ends up with exactly one order today
    - re-submissions return the original queue number
    - today's queue numbers are unique and contiguous from 1

Each simulated device gets its own address through the X-Real-IP header,
the same way the reverse proxy forwards customer traffic. With the default
development settings the address is the device identity.

Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from collections import defaultdict
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:5000"
TOTAL_DEVICES = 40
SUBMITS_PER_DEVICE = 3

MENU_FALLBACK = ["Margherita Pizza", "Caesar Salad", "French Fries", "Lemonade", "Tiramisu"]


def generate_random_items(menu: list[str]) -> list[dict]:
    """Generate random order items."""
    names = random.sample(menu, k=random.randint(1, min(3, len(menu))))
    return [{"name": name, "quantity": random.randint(1, 3)} for name in names]


def device_address(device_num: int) -> str:
    return f"10.99.{device_num // 250}.{device_num % 250 + 1}"


async def send_order(
    client: httpx.AsyncClient,
    device_num: int,
    attempt: int,
    menu: list[str],
) -> dict[str, Any]:
    """Submit one order for a simulated device."""
    address = device_address(device_num)
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/order",
            json={"items": generate_random_items(menu), "notes": f"sim attempt {attempt}"},
            headers={"X-Real-IP": address},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            data = response.json()
            return {
                "address": address,
                "success": True,
                "queue_number": data["queue_number"],
                "already_ordered": data["already_ordered"],
                "time": elapsed,
            }
        return {
            "address": address,
            "success": False,
            "error": f"{response.status_code}: {response.text[:100]}",
            "time": elapsed,
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "address": address,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def fetch_menu(client: httpx.AsyncClient) -> list[str]:
    response = await client.get(f"{API_BASE_URL}/api/menu")
    if response.status_code != 200:
        return MENU_FALLBACK
    return [item["name"] for item in response.json()] or MENU_FALLBACK


def verify(results: list[dict], orders: list[dict]) -> list[str]:
    """
    Check the queue invariants.

    Returns:
        List of problems found (empty when everything holds)
    """
    problems = []

    numbers_by_device = defaultdict(set)
    for r in results:
        if r["success"]:
            numbers_by_device[r["address"]].add(r["queue_number"])
    for address, numbers in numbers_by_device.items():
        if len(numbers) > 1:
            problems.append(f"{address} received several queue numbers: {sorted(numbers)}")

    devices = [o["device_id"] for o in orders]
    duplicates = {d for d in devices if devices.count(d) > 1}
    if duplicates:
        problems.append(f"Devices with more than one order today: {sorted(duplicates)}")

    numbers = sorted(o["queue_number"] for o in orders)
    if len(numbers) != len(set(numbers)):
        problems.append("Duplicate queue numbers today")
    elif numbers != list(range(1, len(numbers) + 1)):
        # Orders cleared earlier today leave legitimate gaps
        problems.append(f"Queue numbers not contiguous from 1: {numbers[:10]}...")

    return problems


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_devices: int = TOTAL_DEVICES,
    submits_per_device: int = SUBMITS_PER_DEVICE,
) -> bool:
    """
    Run the rush-hour simulation.

    Args:
        num_devices: Number of simulated phones
        submits_per_device: Concurrent submissions per phone
    """
    total = num_devices * submits_per_device
    print("=" * 70)
    print("🔥 RUSH-HOUR SIMULATION - CONCURRENT SUBMISSIONS")
    print("=" * 70)
    print(f"📱 Devices: {num_devices}")
    print(f"📋 Submissions: {total}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        menu = await fetch_menu(client)

        tasks = [
            send_order(client, device, attempt, menu)
            for attempt in range(submits_per_device)
            for device in range(num_devices)
        ]
        random.shuffle(tasks)
        results = await asyncio.gather(*tasks)

        response = await client.get(f"{API_BASE_URL}/api/admin/orders")
        response.raise_for_status()
        orders = response.json()

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    new_orders = [r for r in successful if not r["already_ordered"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Submissions: {len(successful)}/{total}")
    print(f"🆕 New Orders: {len(new_orders)}")
    print(f"🔁 Already Ordered: {len(successful) - len(new_orders)}")
    print(f"❌ Failed Submissions: {len(failed)}/{total}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")

    if failed:
        print("\n⚠️  Failed Submission Details (showing first 5):")
        for f in failed[:5]:
            print(f"   {f['address']}: {f.get('error', 'Unknown error')}")

    problems = verify(results, orders)

    print("\n" + "=" * 70)
    print("🔍 INVARIANT CHECK")
    print("=" * 70)
    if problems:
        for problem in problems:
            print(f"❌ {problem}")
    else:
        print(f"✅ {len(orders)} orders today, one per device, queue 1..{len(orders)}")
    print("=" * 70)

    return not problems


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush-Hour Simulation Script")
    parser.add_argument("--devices", type=int, default=TOTAL_DEVICES, help="Number of devices")
    parser.add_argument("--submits", type=int, default=SUBMITS_PER_DEVICE, help="Submissions per device")
    parser.add_argument("--url", default=API_BASE_URL, help="Portal base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    ok = asyncio.run(run_simulation(args.devices, args.submits))
    sys.exit(0 if ok else 1)
