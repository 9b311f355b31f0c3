"""Command-line entry point.

Administrative commands for the Course Share service:

- ``serve``: run the API server.
- ``init-db``: create missing tables.
- ``check-stats``: report profiles whose counters disagree with the live
  counts (exit status 1 when any are found).
- ``recompute-stats``: recompute counters for one user or for every profile.
"""

import argparse
import logging
import sys
from typing import List, Optional

from config import API_HOST, API_PORT
from core.database import SessionLocal, init_db
from core.logging_config import setup_logging
from core.stats import check_stats, recompute_all, recompute_stats

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    server_url = f"http://{args.host}:{args.port}"
    print(f"🌐 Serving on {server_url}")
    print(f"📚 API docs: {server_url}/docs")
    uvicorn.run("app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    init_db()
    print("✓ Database tables created")
    return 0


def cmd_check_stats(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        drifts = check_stats(db, user_ids=args.user_id or None)

    if not drifts:
        print("✓ All profile stats are consistent")
        return 0

    print(f"✗ {len(drifts)} profile(s) with stale stats:")
    for drift in drifts:
        print(f"  {drift.user_id}: stored={drift.stored} actual={drift.actual}")
    return 1


def cmd_recompute_stats(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        try:
            if args.user_id:
                updated = sum(recompute_stats(db, user_id) for user_id in args.user_id)
            else:
                updated = recompute_all(db)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Stats recompute failed")
            raise
    print(f"✓ Recomputed stats for {updated} profile(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="course-share",
        description="Course Share administration commands.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=API_HOST)
    serve.add_argument("--port", type=int, default=API_PORT)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    init = subparsers.add_parser("init-db", help="Create missing tables")
    init.set_defaults(func=cmd_init_db)

    check = subparsers.add_parser("check-stats", help="Report stale profile stats")
    check.add_argument("--user-id", action="append", help="Limit to this user (repeatable)")
    check.set_defaults(func=cmd_check_stats)

    recompute = subparsers.add_parser("recompute-stats", help="Recompute profile stats")
    recompute.add_argument(
        "--user-id", action="append", help="Limit to this user (repeatable)"
    )
    recompute.set_defaults(func=cmd_recompute_stats)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
