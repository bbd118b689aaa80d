#!/usr/bin/env python3
"""
Wage Recalculation Script

Asks the running timesheet server to recalculate morning/night hours and card
amounts for an organization, then prints the run summary.

Usage:
    python recalculate_wages.py

Requirements:
    - requests library: pip install requests
    - Server running at TIMESHEET_BASE_URL (default http://localhost:8000)
    - Admin secret in TIMESHEET_ADMIN_SECRET
"""

import os
import requests
import urllib3
from dotenv import load_dotenv

load_dotenv()

BASE_URL = os.getenv("TIMESHEET_BASE_URL", "http://localhost:8000")
ADMIN_SECRET = os.getenv("TIMESHEET_ADMIN_SECRET", "your-secret-key-here")
VERIFY_SSL = os.getenv("TIMESHEET_VERIFY_SSL", "false").lower() in ("true", "1", "yes", "on")

if not VERIFY_SSL:
    # Self-signed certificates on localhost
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

HEADERS = {
    "Content-Type": "application/json",
    "X-Admin-Secret": ADMIN_SECRET
}

def get_user_inputs():
    """Get organization and force flag from user input"""
    print("💰 Wage Recalculation Tool")
    print("=" * 50)

    organization_id = input("\n🏢 Organization ID (blank for global settings): ").strip() or None

    force_answer = input("\n🔁 Recalculate entries that were already processed? (y/N): ").strip().lower()
    force = force_answer in ['y', 'yes']

    return organization_id, force

def request_recalculation(organization_id=None, force=False, base_url=BASE_URL, timeout=600):
    """Run a batch recalculation. Returns (success, summary dict or error text)."""
    url = f"{base_url}/admin/wages/recalculate"

    try:
        response = requests.post(
            url,
            headers=HEADERS,
            json={"organization_id": organization_id, "force": force},
            verify=VERIFY_SSL,
            timeout=timeout
        )
    except requests.RequestException as e:
        return False, f"Request error: {e}"

    if response.status_code == 200:
        return True, response.json()
    return False, f"HTTP {response.status_code}: {response.text}"

def format_summary(summary):
    """Human readable lines for a RunSummary payload"""
    lines = [
        "📊 Recalculation Summary:",
        f"   Processed: {summary.get('processed', 0)}",
        f"   Succeeded: {summary.get('succeeded', 0)}",
        f"   Failed: {summary.get('failed', 0)}",
        f"   Skipped (already processed): {summary.get('skipped', 0)}",
        f"   Unassigned hours: {summary.get('unassigned_hours_total', 0.0):.2f}",
    ]
    if summary.get("cancelled"):
        lines.append("   ⚠️  Run was cancelled before finishing")

    for failure in summary.get("failures", []):
        lines.append(f"   ❌ Entry {failure['record_id']}: {failure['error_kind']} - {failure['message']}")

    for mismatch in summary.get("mismatches", []):
        lines.append(f"   ⚠️  Entry {mismatch['record_id']}: stored {mismatch['stored_hours']}h, "
                     f"clock times give {mismatch['computed_hours']}h")

    if summary.get("unassigned_hours_total", 0) > 0:
        lines.append("   ⚠️  Some worked time falls outside the configured wage windows - check wage settings")
    return lines

def main():
    organization_id, force = get_user_inputs()

    print(f"\n⏳ Recalculating for {organization_id or 'global settings'} (force={force})...")
    success, result = request_recalculation(organization_id, force)

    print("\n" + "=" * 50)
    if not success:
        print(f"❌ Recalculation failed: {result}")
        return 1

    for line in format_summary(result):
        print(line)

    if result.get("failed", 0) == 0:
        print("🎉 All entries recalculated successfully!")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
