"""
Pre-Deploy and Smoke Test Script.

Runs the application in-process with the mock provider enabled and checks:
1. Health Check
2. Provider status report
3. Tracking a demo container end to end
4. Input validation (empty tracking number → 400)
"""

import os
import sys

os.environ.setdefault("MOCK_PROVIDER_ENABLED", "true")
os.environ.setdefault("SCRAPING_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402
from shipment_tracker.app.main import app  # noqa: E402


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"✅ {msg}")


def main():
    print("🚀 Starting Deployment Validation...")

    with TestClient(app) as client:
        # 1. Health Check
        print_step("PRE-DEPLOY", "Checking /health...")
        response = client.get("/health")
        if response.status_code != 200 or response.json().get("status") != "healthy":
            fail(f"Health check failed: {response.status_code} {response.text}")
        success("Health check passed")

        # 2. Providers
        print_step("SMOKE", "Checking provider status...")
        response = client.get("/v1/tracking/providers")
        if response.status_code != 200:
            fail(f"Provider status failed: {response.status_code}")
        providers = response.json()
        if "mock" not in [p["name"] for p in providers["providers"]]:
            fail("Mock provider is not registered")
        success(f"{providers['availableProviders']}/{providers['totalProviders']} providers available")

        # 3. Track demo shipment
        print_step("SMOKE", "Tracking MAEU1234567...")
        response = client.post("/v1/tracking", json={"trackingNumber": "MAEU1234567"})
        body = response.json()
        if response.status_code != 200 or not body.get("success"):
            fail(f"Tracking failed: {response.status_code} {body}")
        if body["data"]["status"] != "in-transit":
            fail(f"Unexpected status: {body['data']['status']}")
        success(f"Tracked via {body['source']} ({body['data']['origin']} → {body['data']['destination']})")

        # 4. Validation
        print_step("SMOKE", "Checking empty tracking number is rejected...")
        response = client.post("/v1/tracking", json={"trackingNumber": "  "})
        if response.status_code != 400:
            fail(f"Expected 400 for empty input, got {response.status_code}")
        success("Input validation passed")

    print("🎉 Deployment validation complete")


if __name__ == "__main__":
    main()
