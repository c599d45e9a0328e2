"""
MEDS Backend — Command Line Interface
=======================================

What:  The `meds` console script.

    meds serve [--host H] [--port P] [--reload]   run the API + frontend with uvicorn
    meds migrate [upgrade|downgrade] [REVISION]    apply / revert Alembic migrations
    meds backup [--dest DIR]                       copy the SQLite database + data dir
    meds release-editors                           clear abandoned encounter locks
    meds stats                                     patient / encounter / queue counts

Database URL and paths come from the same MEDS_* settings as the server.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from meds import __version__
from meds.config import settings
from meds.database import async_session_factory, dispose_engine
from meds.exceptions import MedsError
from meds.models import Encounter, Patient, QueueEntry
from meds.models.base import utcnow
from meds.seed_data import DEFAULT_PASSWORD, DEFAULT_USERS
from meds.services.backup_service import backup_service
from meds.services.encounter_service import encounter_service
from meds.services.queue_service import utc_day_bounds

logger = logging.getLogger("meds.cli")

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def alembic_config(database_url: Optional[str] = None) -> Config:
    """Alembic config for this checkout, pointed at `database_url` (default: settings)."""
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    # ConfigParser interpolation: a literal % must be doubled
    url = database_url or settings.database_url
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


# ── Commands ──────────────────────────────────────────────────────────────

def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    print(f"MEDS {__version__} on http://{args.host}:{args.port}")
    print("Default accounts (change these before going live):")
    for email, _, _, role, is_superuser in DEFAULT_USERS[:3]:
        label = "superuser" if is_superuser else role
        print(f"  {email:<28} {DEFAULT_PASSWORD}  ({label})")
    uvicorn.run(
        "meds.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    config = alembic_config()
    if args.direction == "upgrade":
        command.upgrade(config, args.revision or "head")
    else:
        command.downgrade(config, args.revision or "-1")
    return 0


async def _backup(dest: Optional[str]) -> Path:
    try:
        return await backup_service.create_backup(backup_dir=dest)
    finally:
        await dispose_engine()


def cmd_backup(args: argparse.Namespace) -> int:
    target = asyncio.run(_backup(args.dest))
    print(f"Backup written to {target}")
    return 0


async def _release_editors() -> int:
    try:
        async with async_session_factory() as session:
            released = await encounter_service.release_stale_editors(session)
            await session.commit()
            return released
    finally:
        await dispose_engine()


def cmd_release_editors(args: argparse.Namespace) -> int:
    released = asyncio.run(_release_editors())
    print(f"Released {released} stale encounter lock(s)")
    return 0


async def _stats() -> dict:
    start, end = utc_day_bounds(utcnow())
    try:
        async with async_session_factory() as session:
            patients = (await session.execute(select(func.count(Patient.id)))).scalar_one()
            encounters = (await session.execute(select(func.count(Encounter.id)))).scalar_one()
            queue_today = (
                await session.execute(
                    select(func.count(QueueEntry.id)).where(
                        QueueEntry.created >= start, QueueEntry.created < end
                    )
                )
            ).scalar_one()
            return {"patients": patients, "encounters": encounters, "queue_today": queue_today}
    finally:
        await dispose_engine()


def cmd_stats(args: argparse.Namespace) -> int:
    for key, value in asyncio.run(_stats()).items():
        print(f"{key:<12} {value}")
    return 0


# ── Entry Point ───────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meds", description="MEDS clinic backend")
    parser.add_argument("--version", action="version", version=f"meds {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=settings.backend_host)
    serve.add_argument("--port", type=int, default=settings.backend_port)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes")
    serve.set_defaults(func=cmd_serve)

    migrate = sub.add_parser("migrate", help="Apply or revert database migrations")
    migrate.add_argument("direction", nargs="?", choices=("upgrade", "downgrade"), default="upgrade")
    migrate.add_argument("revision", nargs="?", help="Target revision (default: head / -1)")
    migrate.set_defaults(func=cmd_migrate)

    backup = sub.add_parser("backup", help="Copy the SQLite database and data directory")
    backup.add_argument("--dest", help=f"Backup root (default: {settings.backup_dir})")
    backup.set_defaults(func=cmd_backup)

    release = sub.add_parser("release-editors", help="Clear abandoned encounter edit locks")
    release.set_defaults(func=cmd_release_editors)

    stats = sub.add_parser("stats", help="Print record counts")
    stats.set_defaults(func=cmd_stats)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except MedsError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
