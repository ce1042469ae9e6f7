"""Apply one SQL file from backend/migrations inside a single transaction.

Usage: python scripts/apply_migration.py 0001_campus_core.sql
"""

import asyncio
import logging
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from campushub.infra.postgres import close_pool, get_pool  # noqa: E402
from campushub.obs.logging import configure_logging  # noqa: E402

MIGRATIONS_DIR = BACKEND_ROOT / "migrations"


async def apply_migration(filename: str) -> None:
	logger = logging.getLogger("campushub.migrations")
	migration_path = MIGRATIONS_DIR / filename
	if not migration_path.exists():
		raise SystemExit(f"Migration file not found: {migration_path}")

	logger.info("applying_migration", extra={"file": filename})
	sql = migration_path.read_text(encoding="utf-8")
	pool = await get_pool()
	try:
		async with pool.acquire() as conn:
			async with conn.transaction():
				await conn.execute(sql)
	finally:
		await close_pool()
	logger.info("migration_applied", extra={"file": filename})


if __name__ == "__main__":
	if len(sys.argv) < 2:
		print("Usage: python scripts/apply_migration.py <migration_filename>")
		sys.exit(1)
	configure_logging()
	asyncio.run(apply_migration(sys.argv[1]))
