"""Command-line interface for storefront."""

import argparse
import json
import logging
import sys

from . import __version__, catalog
from .access_gate import AccessGate, MerchantDashboard
from .errors import AuthorizationError, StorefrontError
from .models import Category, Order
from .order_store import OrderStore


def get_dashboard(pin: str) -> MerchantDashboard:
    """Unlock a dashboard over the configured order store.

    Raises:
        AuthorizationError: If the PIN is wrong.
    """
    gate = AccessGate()
    if not gate.authorize(pin):
        raise AuthorizationError("Incorrect PIN")
    return MerchantDashboard(gate, OrderStore())


def format_order(order: Order, verbose: bool = False) -> str:
    """Format an order for display."""
    d = order.shipping_details
    result = (
        f"{order.id:<10}  {order.date}  {d.full_name}  "
        f"{order.payment_method.label}  €{order.total:.2f} ({order.status})"
    )

    if verbose:
        result += f"\n            {d.email}  {d.phone}"
        result += f"\n            {d.address}, {d.city} {d.postal_code}, {d.country}"
        for item in order.items:
            result += f"\n            {item.quantity}x {item.name}  €{item.line_total:.2f}"
        result += (
            f"\n            subtotal €{order.subtotal:.2f}"
            f" + shipping €{order.shipping_cost:.2f}"
            f" + duties €{order.duties:.2f}"
        )

    return result


def cmd_products(args: argparse.Namespace) -> int:
    """List catalog products."""
    try:
        products = catalog.list_products(category=args.category, query=args.search)
    except ValueError:
        print(f"Error: Unknown category: {args.category}", file=sys.stderr)
        return 1

    if not products:
        print("No products found.")
        return 0

    if args.json:
        print(json.dumps([p.to_dict() for p in products], indent=2))
    else:
        print(f"Products ({len(products)}):")
        print()
        for p in products:
            stock = "" if p.in_stock else "  [out of stock]"
            print(f"  {p.id:<16} {p.currency}{p.price:>8.2f}  {p.name}{stock}")
            print(f"  {'':<16} {p.category.value}")

    return 0


def cmd_orders_list(args: argparse.Namespace) -> int:
    """List stored orders."""
    try:
        dashboard = get_dashboard(args.pin)
        orders = dashboard.list_orders()

        if not orders:
            print("No orders collected yet.")
            return 0

        if args.json:
            print(json.dumps([o.to_dict() for o in orders], indent=2))
        else:
            summary = dashboard.summary()
            print(f"Orders ({len(orders)}), revenue €{summary['revenue']:.2f}:")
            print()
            for order in orders:
                print(format_order(order, verbose=args.verbose))

        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_show(args: argparse.Namespace) -> int:
    """Show one order."""
    try:
        order = get_dashboard(args.pin).get_order(args.order_id)

        if args.json:
            print(json.dumps(order.to_dict(), indent=2))
        else:
            print(format_order(order, verbose=True))

        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_clear(args: argparse.Namespace) -> int:
    """Erase all stored orders."""
    try:
        dashboard = get_dashboard(args.pin)

        if not args.yes:
            answer = input("Delete all order history? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                print("Aborted.")
                return 0

        count = dashboard.clear_orders()
        print(f"Cleared {count} order(s)")
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print(f"Starting storefront API server on http://{args.host}:{args.port}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "storefront.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,  # Sessions live in process memory
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Demo storefront: catalog, checkout and merchant order dashboard.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--verbose-log", "-V", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # products
    products_parser = subparsers.add_parser("products", help="List catalog products")
    products_parser.add_argument(
        "--category", "-c",
        choices=["All"] + [c.value for c in Category],
        help="Filter by category",
    )
    products_parser.add_argument("--search", "-s", help="Filter by name or description")
    products_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # orders (subcommand group)
    orders_parser = subparsers.add_parser("orders", help="Merchant order dashboard")
    orders_subparsers = orders_parser.add_subparsers(dest="orders_command")

    # orders list
    orders_list_parser = orders_subparsers.add_parser("list", help="List stored orders")
    orders_list_parser.add_argument("--pin", required=True, help="Merchant PIN")
    orders_list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    orders_list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show shipping details and items"
    )

    # orders show
    orders_show_parser = orders_subparsers.add_parser("show", help="Show one order")
    orders_show_parser.add_argument("order_id", help="Order reference (e.g. ETH-4821)")
    orders_show_parser.add_argument("--pin", required=True, help="Merchant PIN")
    orders_show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # orders clear
    orders_clear_parser = orders_subparsers.add_parser("clear", help="Delete all orders")
    orders_clear_parser.add_argument("--pin", required=True, help="Merchant PIN")
    orders_clear_parser.add_argument(
        "--yes", "-y", action="store_true", help="Don't ask for confirmation"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose_log else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    # Handle orders subcommands
    if args.command == "orders":
        if not getattr(args, "orders_command", None):
            parser.parse_args(["orders", "--help"])
            return 0
        if args.orders_command == "list":
            return cmd_orders_list(args)
        elif args.orders_command == "show":
            return cmd_orders_show(args)
        elif args.orders_command == "clear":
            return cmd_orders_clear(args)

    commands = {
        "products": cmd_products,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
