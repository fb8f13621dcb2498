import os
import sys

import requests

BASE_URL = os.getenv("APP_BASE_URL", "https://demostats.onrender.com")
TOKEN = os.getenv("CRON_SECRET")


def main(argv) -> int:
    if len(argv) < 2:
        print("usage: invalidate_stats_cron.py STEAM_ID", file=sys.stderr)
        return 2

    url = f"{BASE_URL}/admin/internal/stats-cache/invalidate"
    resp = requests.post(url, headers={"X-CRON-TOKEN": TOKEN or ""}, json={"steam_id": argv[1]}, timeout=30)

    print("Status:", resp.status_code)
    print(resp.text)
    return 0 if resp.ok else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
