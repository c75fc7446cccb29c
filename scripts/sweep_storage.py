#!/usr/bin/env python3
"""
Storage maintenance for the upload directory.

Deletes posts older than the retention window together with their images,
and optionally removes files no post references. Meant for cron:

    0 4 * * * /opt/academy/venv/bin/python scripts/sweep_storage.py --confirm --orphans

Usage:
    python scripts/sweep_storage.py --dry-run             # Show what would be removed
    python scripts/sweep_storage.py --confirm             # Delete expired posts
    python scripts/sweep_storage.py --confirm --orphans   # ...and orphaned files
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.core.config import settings
from src.core.database.session import async_session
from src.core.storage import get_file_store
from src.modules.maintenance.service import MaintenanceService


async def main() -> int:
    parser = argparse.ArgumentParser(description="Sweep expired posts and orphaned upload files")
    parser.add_argument("--dry-run", action="store_true", help="Report only, change nothing")
    parser.add_argument("--confirm", action="store_true", help="Actually delete")
    parser.add_argument("--orphans", action="store_true", help="Also delete unreferenced files")
    args = parser.parse_args()

    if not args.dry_run and not args.confirm:
        print("ERROR: pass --dry-run or --confirm")
        return 1

    store = get_file_store()
    print(f"Environment: {settings.app_env}")
    print(f"Upload directory: {store.root.resolve()}")
    print(f"Retention: {settings.post_retention_days} day(s)")

    async with async_session() as session:
        service = MaintenanceService(session, store)

        if args.dry_run:
            expired = await service.sweeper.find_expired()
            stats = await service.storage_stats()
            print(f"Expired posts: {len(expired)}")
            for post in expired:
                print(f"  post {post.id} ({post.created_at:%Y-%m-%d %H:%M}): {len(post.image_urls or [])} image(s)")
            print(f"Files: {stats.file_count} ({stats.total_bytes} bytes), temp: {stats.temp_files}")
            print(f"Unreferenced files: {stats.unreferenced_files}")
            print(f"Missing referenced files: {stats.missing_files}")
            return 0

        try:
            deleted_posts = await service.sweep_expired_posts()
            print(f"Deleted {deleted_posts} expired post(s)")
            if args.orphans:
                # Referenced set is read after the expiry sweep so files of deleted posts count as orphans too
                deleted_files = await service.sweep_orphan_files()
                print(f"Deleted {deleted_files} orphaned file(s)")
            await session.commit()
        except Exception as e:
            await session.rollback()
            print(f"Sweep failed: {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
