"""
MEDS Backend — Backup Service
===============================

What:  Copies the SQLite database and the data directory into a timestamped
       folder, e.g. ./meds_backups/meds-backup-20260105-140211/.
How:   Checkpoints the SQLite write-ahead log so the main database file is
       complete, then streams every file across with aiofiles in 1 MiB chunks.
Who:   `meds backup` (cli.py). Meant for the end of each clinic day, before
       the laptop is packed up.

PostgreSQL deployments back up with pg_dump; asking for a file backup there
raises ConfigurationError.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import aiofiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from meds.config import settings
from meds.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

# Recreated by SQLite on open; copied contents would be stale after checkpoint
SKIPPED_SUFFIXES = ("-wal", "-shm", "-journal")


async def copy_file(source: Path, destination: Path) -> int:
    """Copy one file without blocking the event loop. Returns bytes written."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    async with aiofiles.open(source, "rb") as src, aiofiles.open(destination, "wb") as dst:
        while True:
            chunk = await src.read(CHUNK_SIZE)
            if not chunk:
                break
            await dst.write(chunk)
            written += len(chunk)
    return written


class BackupService:
    def _files_to_copy(self, database_file: Path, data_dir: Path) -> List[tuple]:
        """(source, path relative to the backup folder) pairs."""
        files = [(database_file, Path(database_file.name))]
        if data_dir.is_dir():
            for path in sorted(data_dir.rglob("*")):
                if not path.is_file() or path.name.endswith(SKIPPED_SUFFIXES):
                    continue
                if path.resolve() == database_file.resolve():
                    continue
                files.append((path, Path("data") / path.relative_to(data_dir)))
        return files

    async def create_backup(
        self,
        db_engine: Optional[AsyncEngine] = None,
        data_dir: Optional[str] = None,
        backup_dir: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Returns:
            The backup folder that was created.

        Raises:
            ConfigurationError: The database is not a SQLite file (→ 500)
        """
        if db_engine is None:
            from meds.database import engine as db_engine

        url = db_engine.url
        if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
            raise ConfigurationError(
                message="File backups are only available for SQLite databases; use pg_dump for PostgreSQL.",
                context={"database": url.get_backend_name()},
            )

        database_file = Path(url.database)
        if not database_file.is_file():
            raise ConfigurationError(
                message=f"Database file {database_file} does not exist.",
                context={"path": str(database_file)},
            )

        async with db_engine.connect() as conn:
            await conn.execute(text("PRAGMA wal_checkpoint(TRUNCATE)"))

        stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d-%H%M%S")
        target = Path(backup_dir or settings.backup_dir) / f"meds-backup-{stamp}"
        target.mkdir(parents=True, exist_ok=False)

        total = 0
        files = self._files_to_copy(database_file, Path(data_dir or settings.data_dir))
        for source, relative in files:
            total += await copy_file(source, target / relative)

        logger.info("Backup written to %s (%d files, %d bytes)", target, len(files), total)
        return target


# ── Singleton Instance ────────────────────────────────────────────────────
backup_service = BackupService()
