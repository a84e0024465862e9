"""Command line client for day-to-day stock operations."""

import argparse
from typing import Optional

from stockledger.config import get_settings
from stockledger.container import Services, build_services
from stockledger.core.exceptions import InventoryError
from stockledger.core.logging import setup_logging
from stockledger.core.session_store import FileSessionStore, SessionStore
from stockledger.services.auth_service import require_admin, require_user
from stockledger.services.ledger import format_quantity


def parse_args(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(prog="stockledger", description="Inventory ledger client.")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and remember the user.")
    login.add_argument("username")
    login.add_argument("password")

    commands.add_parser("logout", help="Forget the logged-in user.")
    commands.add_parser("whoami", help="Show the logged-in user.")

    products = commands.add_parser("products", help="List products.")
    products.add_argument("--inactive", action="store_true", help="List deactivated products instead.")

    restock = commands.add_parser("restock", help="Add units to a product.")
    restock.add_argument("product_id")
    restock.add_argument("amount")

    adjust = commands.add_parser("adjust", help="Set the exact quantity of a product.")
    adjust.add_argument("product_id")
    adjust.add_argument("quantity")

    commands.add_parser("last-job", help="Show the most recent job.")

    rollback = commands.add_parser("rollback", help="Revert the most recent job.")
    rollback.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")
    return parser.parse_args(argv)


def _print_job(job) -> None:
    print(f"Job {job.id} by {job.user} ({job.role or '-'}), session {job.session_id}")
    for line in job.summary:
        print(f"  {line}")


def run(args, services: Services, store: SessionStore) -> int:
    auth = services.auth

    if args.command == "login":
        user = auth.login(args.username, args.password, store)
        print(f"Logged in as {user.name} ({user.role})")
        return 0
    if args.command == "logout":
        auth.logout(store)
        print("Logged out.")
        return 0

    user = auth.current_user(store)
    if args.command == "whoami":
        print(f"{user.name} ({user.role})" if user else "Not logged in.")
        return 0 if user else 1

    user = require_user(user)
    if args.command == "products":
        if args.inactive:
            require_admin(user)
            products = services.products.inactive_products()
        else:
            products = services.products.active_products()
        for product in products:
            print(f"{product.id}  {product.name}: {format_quantity(product.quantity)} {product.unit}")
        return 0
    if args.command == "restock":
        product = services.inventory.restock(args.product_id, args.amount, user)
        print(f"{product.name}: {format_quantity(product.quantity)} {product.unit}")
        return 0
    if args.command == "adjust":
        product = services.inventory.set_absolute(args.product_id, args.quantity, user)
        print(f"{product.name}: {format_quantity(product.quantity)} {product.unit}")
        return 0

    job = services.jobs.get_last_job()
    if job is None:
        print("No jobs recorded.")
        return 0
    if args.command == "last-job":
        _print_job(job)
        return 0

    require_admin(user)
    _print_job(job)
    if not args.yes:
        answer = input(f"Revert {len(job.summary)} change(s) by {job.user}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes", "s", "si"):
            print("Cancelled.")
            return 1
    result = services.jobs.rollback(job)
    if result.warning is not None:
        print(f"Warning: {result.warning}")
    print(f"Reverted {len(result.reverted_product_ids)} product(s).")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    setup_logging()
    args = parse_args(argv)
    settings = get_settings()
    services = build_services(settings).start()
    try:
        code = run(args, services, FileSessionStore(settings.SESSION_STORE_PATH))
    except InventoryError as exc:
        raise SystemExit(f"Error: {exc.message}") from exc
    finally:
        services.close()
    raise SystemExit(code)


if __name__ == "__main__":
    main()
