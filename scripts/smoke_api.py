"""
Quick API smoke test against a running service
"""

import asyncio
import sys

import httpx


async def smoke_test(base_url: str = "http://localhost:8787"):
    """Exercise the FactTrace endpoints"""

    print("Testing FactTrace API...")
    print("=" * 50)

    async with httpx.AsyncClient(timeout=90.0) as client:
        print("\n1. Health check...")
        response = await client.get(f"{base_url}/health")
        print(f"Status: {response.status_code}")
        print(f"Response: {response.json()}")

        print("\n2. Metrics...")
        response = await client.get(f"{base_url}/metrics")
        print(f"Status: {response.status_code}")
        print(f"Response: {response.json()}")

        print("\n3. Rejected query (direct link)...")
        response = await client.post(f"{base_url}/api/analyze", json={"query": "see https://example.com"})
        print(f"Status: {response.status_code} (expected 400)")
        print(f"Response: {response.json()}")

        print("\n4. Analyze claim...")
        response = await client.post(
            f"{base_url}/api/analyze",
            json={"query": "Is it true that the James Webb telescope launched in 2021?"}
        )
        print(f"Status: {response.status_code}")
        data = response.json()
        if response.status_code == 200:
            analysis = data["analysis"]
            print(f"Article: {data['article']['title']} ({data['article']['url']})")
            print(f"Factual: {analysis['factualPercentage']}%  Misinformation: {analysis['misinformationPercentage']}%")
            print(f"Summary: {analysis['summary']}")
        else:
            print(f"Error: {data.get('error')}")

    print("\n" + "=" * 50)
    print("Test completed")


if __name__ == "__main__":
    asyncio.run(smoke_test(*sys.argv[1:2]))
