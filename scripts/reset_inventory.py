import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stockledger.container import build_services
from stockledger.core.exceptions import InventoryError
from stockledger.core.logging import setup_logging


def parse_args():
    parser = argparse.ArgumentParser(
        description="Set every quantity to 0, clear every history and delete all jobs."
    )
    parser.add_argument("--yes", action="store_true", help="Confirm the reset.")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    if not args.yes:
        raise SystemExit("Refusing to reset without --yes.")

    services = build_services()
    try:
        result = services.backups.reset_inventory()
    except InventoryError as exc:
        raise SystemExit(f"Reset failed: {exc.message}") from exc
    finally:
        services.close()

    print(f"{result.products_reset} products reset, {result.jobs_deleted} jobs deleted.")


if __name__ == "__main__":
    main()
