"""
Probe a running instance — signs up a throwaway user and walks the
category / expense lifecycle, printing every status code.
Usage: python probe_api.py [base_url]
"""
import sys
import time

import httpx

BASE = sys.argv[1].rstrip("/") if len(sys.argv) > 1 else "http://127.0.0.1:5000"


def step(client: httpx.Client, label: str, method: str, path: str, expect: int, **kwargs) -> dict:
    r = client.request(method, path, **kwargs)
    try:
        body = r.json()
    except ValueError:
        body = {"raw": r.text[:200]}
    mark = "✅" if r.status_code == expect else "❌"
    print(f"{mark} {label}: {r.status_code} (expected {expect}) {body.get('message', '')}")
    if r.status_code >= 500:
        print(f"   Response body: {body}")
    return body


def main():
    stamp = int(time.time())
    print(f"🔍 Probing {BASE}")
    print("=" * 60)

    with httpx.Client(base_url=BASE, timeout=30) as client:
        step(client, "Health", "GET", "/", 200)

        body = step(
            client, "Signup", "POST", "/auth/signup", 201,
            json={"name": f"Probe{stamp}", "email": f"probe{stamp}@example.com", "password": "Probe12345"},
        )
        token = (body.get("data") or {}).get("token")
        if not token:
            print("❌ No token returned — stopping")
            return
        client.headers["Authorization"] = f"Bearer {token}"

        step(client, "Profile", "GET", "/users/me", 200)

        body = step(client, "Create category", "POST", "/categories", 201, json={"name": "Food"})
        category_id = (body.get("data") or {}).get("id")
        step(client, "Duplicate category (case-insensitive)", "POST", "/categories", 400, json={"name": "food"})

        body = step(
            client, "Create expense", "POST", "/expenses", 201,
            json={"category_id": category_id, "amount": 12.5, "date": "2024-01-01", "description": "probe"},
        )
        expense_id = (body.get("data") or {}).get("id")
        step(client, "Non-positive amount", "POST", "/expenses", 400,
             json={"category_id": category_id, "amount": 0, "date": "2024-01-01"})
        step(client, "List expenses", "GET", "/expenses", 200)

        step(client, "Delete category in use", "DELETE", f"/categories/{category_id}", 400)
        step(client, "Delete expense", "DELETE", f"/expenses/{expense_id}", 200)
        step(client, "Delete category", "DELETE", f"/categories/{category_id}", 200)
        step(client, "Delete account", "DELETE", "/users/me", 200)

        del client.headers["Authorization"]
        step(client, "No auth header", "GET", "/categories", 401)

    print("=" * 60)
    print("Done.")


if __name__ == "__main__":
    main()
