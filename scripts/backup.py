import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stockledger.container import build_services
from stockledger.core.exceptions import InventoryError, RestoreFailedError
from stockledger.core.logging import setup_logging
from stockledger.services.backup_service import snapshot_filename


def parse_args():
    parser = argparse.ArgumentParser(description="Export or restore the product collection.")
    commands = parser.add_subparsers(dest="command", required=True)

    export = commands.add_parser("export", help="Write every product to a JSON file.")
    export.add_argument("--output-dir", default=".", help="Directory for the backup file.")

    restore = commands.add_parser("restore", help="Replace every product with a backup file.")
    restore.add_argument("path", help="Backup JSON file.")
    restore.add_argument("--yes", action="store_true", help="Confirm the destructive restore.")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    services = build_services()
    try:
        if args.command == "export":
            target = Path(args.output_dir) / snapshot_filename()
            target.write_text(services.backups.export_json(), encoding="utf-8")
            print(f"Backup written to {target}")
            return

        if not args.yes:
            raise SystemExit("Restore deletes the current inventory; rerun with --yes.")
        text = Path(args.path).read_text(encoding="utf-8")
        result = services.backups.restore_json(text)
        print(f"{result.deleted} products deleted, {result.inserted} products restored.")
    except RestoreFailedError as exc:
        raise SystemExit(
            f"Restore failed during {exc.phase}: {exc.deleted} deleted, {exc.inserted} inserted. {exc.message}"
        ) from exc
    except (OSError, InventoryError) as exc:
        raise SystemExit(f"Backup failed: {exc}") from exc
    finally:
        services.close()


if __name__ == "__main__":
    main()
