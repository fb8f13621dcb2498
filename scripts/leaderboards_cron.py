"""
Triggers the clan leaderboard recalculation endpoint.

Env vars:
  CRON_SECRET   (required) - must match the web service's CRON_SECRET
  APP_BASE_URL  (optional) - defaults to the production URL
  PERIODS       (optional) - comma list, e.g. "week" (default: week,month)
"""
import os
import sys

import requests


def main() -> int:
    token = os.environ.get("CRON_SECRET")
    if not token:
        print("CRON_SECRET is not set", file=sys.stderr)
        return 2

    base_url = os.getenv("APP_BASE_URL", "https://demostats.onrender.com")
    params = {}
    if os.getenv("PERIODS"):
        params["periods"] = os.environ["PERIODS"]

    url = f"{base_url}/admin/internal/cron/leaderboards"
    try:
        resp = requests.post(url, headers={"X-CRON-TOKEN": token}, params=params, timeout=300)
    except requests.RequestException as e:
        print("Request failed:", e, file=sys.stderr)
        return 1

    print("Status:", resp.status_code)
    print(resp.text)
    return 0 if resp.ok else 1


if __name__ == "__main__":
    sys.exit(main())
