"""
Performance script for the /v1/quotes endpoint.

Sends synthetic applicant profiles to a running server and reports
p50, p95 and p99 latencies against a 250ms p50 target.
"""

import httpx
import time
import statistics
from typing import List

from premium_engine.data.generate_applicants import generate_applicants

API_URL = "http://localhost:8000"
TARGET_P50_MS = 250.0


def send_quote_request(client, payload):
    """Send a single request and return timing + response."""
    start = time.perf_counter()
    try:
        response = client.post(f"{API_URL}/v1/quotes", json=payload, timeout=10.0)
        elapsed_ms = (time.perf_counter() - start) * 1000
        return {
            "success": response.status_code == 200,
            "status_code": response.status_code,
            "elapsed_ms": elapsed_ms,
            "server_time": response.headers.get("X-Response-Time-Ms"),
            "response_data": response.json() if response.status_code == 200 else None,
            "error": response.text if response.status_code != 200 else None
        }
    except httpx.HTTPError as e:
        elapsed_ms = (time.perf_counter() - start) * 1000
        return {
            "success": False,
            "status_code": None,
            "elapsed_ms": elapsed_ms,
            "server_time": None,
            "response_data": None,
            "error": str(e)
        }


def run_quote_benchmark(num_requests: int = 100) -> List[float]:
    """
    Send `num_requests` synthetic quotes.

    Returns:
        List of response times in milliseconds for successful requests
    """
    times = []
    failures = []

    print(f"Running {num_requests} requests to /v1/quotes...")
    print("=" * 60)

    with httpx.Client() as client:
        for i, payload in enumerate(generate_applicants(num_requests)):
            result = send_quote_request(client, payload)

            if result["success"]:
                times.append(result["elapsed_ms"])
                if i % 10 == 0:
                    pricing = result["response_data"]["pricing"]
                    print(f"Request {i+1}: {result['elapsed_ms']:.2f}ms "
                          f"(server: {result['server_time']}ms) "
                          f"final_premium={pricing['final_premium']:.2f}")
            else:
                failures.append({
                    "request_num": i + 1,
                    "status": result["status_code"],
                    "error": result["error"]
                })

    if failures:
        first_failure = failures[0]
        print()
        print(f"WARNING: {len(failures)} requests failed!")
        print(f"Request {first_failure['request_num']}: Status {first_failure['status']}")
        print(f"Error: {first_failure['error'][:300] if first_failure['error'] else 'Unknown'}")

    return times


def calculate_percentiles(times: List[float]) -> dict:
    """Calculate performance percentiles."""
    if not times:
        return {}

    sorted_times = sorted(times)

    return {
        "count": len(times),
        "min": min(times),
        "max": max(times),
        "mean": statistics.mean(times),
        "median": statistics.median(times),
        "p50": sorted_times[int(len(sorted_times) * 0.50)],
        "p95": sorted_times[int(len(sorted_times) * 0.95)],
        "p99": sorted_times[int(len(sorted_times) * 0.99)],
    }


def main(num_requests: int = 100):
    """Run the benchmark."""
    print("Dynamic Premium Engine - Quote Benchmark")
    print("=" * 60)

    print("Waiting for server to be ready...")
    for i in range(10):
        try:
            if httpx.get(f"{API_URL}/health", timeout=2.0).status_code == 200:
                print("Server is ready")
                break
        except httpx.HTTPError:
            time.sleep(1)
    else:
        print("Server not responding after 10 seconds")
        return

    times = run_quote_benchmark(num_requests)
    if not times:
        print("No successful requests")
        return

    stats = calculate_percentiles(times)

    print()
    print("=" * 60)
    print(f"Requests completed: {stats['count']}/{num_requests}")
    print(f"Mean:   {stats['mean']:.2f} ms")
    print(f"p50:    {stats['p50']:.2f} ms")
    print(f"p95:    {stats['p95']:.2f} ms")
    print(f"p99:    {stats['p99']:.2f} ms")
    print(f"Max:    {stats['max']:.2f} ms")

    if stats['p50'] < TARGET_P50_MS:
        print(f"PASS: p50 ({stats['p50']:.2f}ms) < {TARGET_P50_MS}ms target")
    else:
        print(f"FAIL: p50 ({stats['p50']:.2f}ms) >= {TARGET_P50_MS}ms target")


if __name__ == "__main__":
    main()
