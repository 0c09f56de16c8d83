#!/usr/bin/env python3
"""
SMS Backend Debug Script

Shows which tier answers each resource, with detailed logging of every
attempt. Useful to see whether the dashboard is running on live or mock data.

Usage:
    python3 debug_backend.py

Settings are read from a .env file in the current directory, e.g.:
    SMS_API_BASE_URL=http://localhost:3000/api
    SMS_DIRECT_API_BASE_URL=http://localhost:5000/api
    SMS_USERNAME=admin
    SMS_PASSWORD=your_password_here

Without SMS_USERNAME/SMS_PASSWORD only the anonymous tiers are tried.
"""

import asyncio
import getpass
import json
import logging
import os
import sys

from sms_dashboard import SMSDashboard
from sms_dashboard.config import load_config
from sms_dashboard.smsapi.exceptions import AuthenticationError, SMSError

# Set up detailed logging
logging.basicConfig(
	level=logging.DEBUG,
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


async def debug_login(dashboard: SMSDashboard, username: str, password: str) -> bool:
	print("🔐 Testing login")
	print("=" * 50)
	try:
		await dashboard.auth.login(username, password)
	except AuthenticationError as e:
		print(f"   ❌ Login rejected: {e}")
		return False
	except SMSError as e:
		print(f"   ❌ Login failed: {e}")
		return False
	user = dashboard.auth.current_user() or {}
	print(f"   ✅ Logged in as {user.get('username', username)}")
	return True


async def debug_resources(dashboard: SMSDashboard) -> None:
	print("\n📚 Fetching every resource")
	print("=" * 50)
	for name, service in dashboard.services.items():
		try:
			result = await service.get_all(page=1, limit=5)
		except SMSError as e:
			print(f"   ❌ {name}: {e}")
			continue
		marker = "⚠️ mock" if result.is_mock else "✅"
		print(f"   {marker} {name}: {len(result.rows)} of {result.count} rows (source: {result.source})")


async def debug_dashboard(dashboard: SMSDashboard) -> None:
	print("\n📊 Dashboard statistics")
	print("=" * 50)
	stats = await dashboard.dashboard.get_stats()
	print(f"   Source: {stats.source}")
	if stats.is_estimated:
		print(f"   ⚠️ Estimated fields: {', '.join(stats.estimated_fields)}")
	if stats.is_mock:
		print("   ⚠️ Synthetic figures, backend unavailable")
	print(json.dumps(stats.data, indent=2, default=str))


async def main():
	"""Main debug function."""
	print("SMS Backend Debug Script")
	print("This will probe every tier with detailed logging.\n")

	config = load_config()
	username = os.getenv("SMS_USERNAME")
	password = os.getenv("SMS_PASSWORD")
	if username and not password:
		password = getpass.getpass("SMS Password: ").strip()

	async with SMSDashboard(config) as dashboard:
		online = await dashboard.client.check_backend_status()
		print(f"Backend at {config.api_base_url}: {'✅ online' if online else '❌ offline'}\n")

		if username and password:
			await debug_login(dashboard, username, password)

		await debug_resources(dashboard)
		await debug_dashboard(dashboard)

	print("\n✅ Debug complete! Check the output above for any issues.")


if __name__ == "__main__":
	try:
		asyncio.run(main())
	except KeyboardInterrupt:
		print("\n\n⚠️ Debug interrupted by user.")
		sys.exit(1)
	except SMSError as e:
		print(f"\n\n❌ Error: {e}")
		sys.exit(1)
