# scripts/test/triage_reservation.py
"""
Confirm or reject a reservation through the running backend.
Usage:
  python scripts/test/triage_reservation.py <id> confirmed --token s3cret
  python scripts/test/triage_reservation.py <id> rejected --reason "Ausgebucht" --token s3cret
"""

import argparse
import requests

BACKEND_URL = "http://localhost:8080/api/v1"


def triage(reservation_id, status, reason, token, base_url):
    resp = requests.post(
        f"{base_url}/reservations/{reservation_id}/transition",
        json={"status": status, "reason": reason},
        headers={"Authorization": f"Bearer {token}"},
        timeout=30,
    )
    body = resp.json()
    if resp.status_code != 200:
        print(f"❌ HTTP {resp.status_code}: {body.get('error')} — {body.get('detail')}")
    elif body.get("warning"):
        print(f"⚠️  {status}, guest NOT emailed: {body['warning']}")
    else:
        print(f"✅ {status}, guest emailed")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Triage a pending reservation")
    parser.add_argument("reservation_id")
    parser.add_argument("status", choices=["confirmed", "rejected"])
    parser.add_argument("--reason", default=None)
    parser.add_argument("--token", required=True)
    parser.add_argument("--url", default=BACKEND_URL)
    args = parser.parse_args()

    triage(args.reservation_id, args.status, args.reason, args.token, args.url)
