# Path: scripts/match_products.py
# Purpose: Simple CLI to match a JSON list of products against the repository rules.
# Layer: scripts.
# Details: Reads products in the catalog's camelCase shape and prints MatchResult dicts as JSON.

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings, configure_logging
from core.matching import RuleMatcher
from core.models.domain import Product
from core.repository import RuleStore


def main() -> None:
    """Execute a batch match from the command line."""

    parser = argparse.ArgumentParser(description="Match products against repository image rules")
    parser.add_argument("products", type=Path, help="JSON file holding a list of products")
    parser.add_argument("--unmatched-only", action="store_true", help="Only print products without a match")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    configure_logging(settings.log_level)

    payload = json.loads(args.products.read_text(encoding="utf-8"))
    products = [Product.from_dict(item) for item in payload]

    matcher = RuleMatcher(RuleStore.from_settings(settings))
    results = matcher.match(products)
    if args.unmatched_only:
        results = [result for result in results if not result.matched]

    print(json.dumps([result.to_dict() for result in results], indent=2))


if __name__ == "__main__":
    main()
