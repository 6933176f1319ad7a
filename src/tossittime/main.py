#!/usr/bin/env python3
"""
Command-line entry point for TossItTime kitchen services.

Commands:
- serve: run the Flask API (with the cooking reminder scheduler)
- import: import a recipe from a URL and print it as JSON
- parse: AI-parse ingredient lines
- shelf-life: look up how long a food keeps
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import Settings
from .errors import TossItTimeError

logger = logging.getLogger(__name__)


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="TossItTime kitchen services")
    parser.add_argument(
        "command",
        choices=["serve", "import", "parse", "shelf-life"],
        help="Command to run",
    )
    parser.add_argument(
        "args",
        nargs="*",
        help="URL for import, ingredient lines for parse, food name for shelf-life",
    )
    parser.add_argument(
        "--premium",
        action="store_true",
        help="Use premium ingredient parsing (strip cooking descriptors)",
    )
    parser.add_argument(
        "--storage",
        type=str,
        default="refrigerator",
        choices=["refrigerator", "freezer", "pantry"],
        help="Storage type for shelf-life (default: refrigerator)",
    )
    parser.add_argument(
        "--db-dir",
        type=str,
        default=None,
        help="Database directory (default: DB_DIR or data)",
    )

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.db_dir:
        settings.db_dir = args.db_dir

    from .web.app import build_services, configure_logging, create_app

    configure_logging(settings)

    if args.command == "serve":
        app = create_app(settings)
        reminders = app.extensions["tossittime"].reminders
        reminders.start()
        try:
            app.run(host=settings.host, port=settings.port)
        finally:
            reminders.shutdown()
        return 0

    services = build_services(settings)

    try:
        if args.command == "import":
            if len(args.args) != 1:
                print("❌ Error: import takes exactly one URL")
                return 2
            result = services.importer.import_recipe(args.args[0], is_premium=args.premium)
            _print_json(result.to_dict())

        elif args.command == "parse":
            result = services.ingredient_parser.parse(args.args, is_premium=args.premium)
            _print_json(result.to_dict())

        elif args.command == "shelf-life":
            food_name = " ".join(args.args)
            result = services.shelf_life.lookup(food_name, args.storage)
            if result is None:
                print(f"No {args.storage} shelf life found for {food_name!r}")
                return 1
            _print_json(result.to_dict())

    except TossItTimeError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"❌ Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
