import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stockledger.container import build_services
from stockledger.core.constants import DEFAULT_PRODUCTS_FILE
from stockledger.core.exceptions import InventoryError
from stockledger.core.logging import setup_logging
from stockledger.services.product_store import load_seed_file


def parse_args():
    parser = argparse.ArgumentParser(
        description="Replace every product with the contents of a JSON seed file."
    )
    parser.add_argument(
        "--path",
        default=str(DEFAULT_PRODUCTS_FILE),
        help="JSON array of products. Default: the packaged initial products.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    path = Path(args.path)
    if not path.exists():
        raise SystemExit(f"Seed file not found: {path}")

    services = build_services()
    try:
        result = services.backups.replace_with_seed(load_seed_file(path))
    except InventoryError as exc:
        raise SystemExit(f"Seed failed: {exc.message}") from exc
    finally:
        services.close()

    print(f"{result.deleted} old products deleted, {result.inserted} products added.")


if __name__ == "__main__":
    main()
