# backend/app/cli/__main__.py
from __future__ import annotations

import argparse
import json
from typing import Optional, Sequence

from app.config import settings
from app.db import Database
from app.cli.seed_demo import seed_demo


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="transaction-portal")
    p.add_argument("--database-url", default=None, help="defaults to DATABASE_URL / settings")
    sub = p.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed-demo", help="create a demo agent, admin and one draft transaction")
    seed.add_argument("--agent-id", default="demo-agent")
    seed.add_argument("--agent-email", default="agent@demo.local")
    seed.add_argument("--admin-id", default="demo-admin")
    seed.add_argument("--admin-email", default="admin@demo.local")
    seed.add_argument("--no-sample-transaction", action="store_true")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    database = Database(args.database_url or settings.database_url)
    try:
        database.create_all()
        if args.command == "seed-demo":
            out = seed_demo(
                database,
                agent_id=args.agent_id,
                agent_email=args.agent_email,
                admin_id=args.admin_id,
                admin_email=args.admin_email,
                create_sample_transaction=(not args.no_sample_transaction),
            )
            print(
                json.dumps(
                    {
                        "ok": True,
                        "agent_id": out.agent_id,
                        "admin_id": out.admin_id,
                        "sample_transaction_id": out.transaction_id,
                    }
                )
            )
    finally:
        database.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
