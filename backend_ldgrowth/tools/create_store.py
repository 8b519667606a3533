"""
Register a new store and its Director.

Prints the Director's API token; use it as the Bearer token for the API.

Usage:
  python -m backend_ldgrowth.tools.create_store --name "Main St" --number 01234 \
      --director-name "Pat Lee" --director-email pat@example.com
"""

from __future__ import annotations

import argparse
import sys

from backend_ldgrowth.core.exceptions import LDGrowthError
from backend_ldgrowth.database import init_db
from backend_ldgrowth.ldgrowth_logging import bind_store, get_logger
from backend_ldgrowth.users.service import create_store

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Create a store and its Director account")
    ap.add_argument("--name", required=True, help="Store display name")
    ap.add_argument("--number", required=True, help="Store number (unique)")
    ap.add_argument("--director-name", required=True)
    ap.add_argument("--director-email", required=True)
    args = ap.parse_args(argv)

    init_db()
    try:
        result = create_store(args.name, args.number, args.director_name, args.director_email)
    except LDGrowthError as e:
        logger.error("create_store_failed", error=e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    store = result["store"]
    director = result["director"]
    bind_store(store["id"], director["id"]).info("store_bootstrapped", store_number=store["store_number"])
    print(f"Store {store['store_number']} created (id={store['id']})")
    print(f"Director: {director['name']} <{director['email']}>")
    print(f"API token: {director['api_token']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
