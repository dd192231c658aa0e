"""Command-line interface for storefront."""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__, catalog
from .errors import StorefrontError
from .models import Order
from .storefront import Storefront


def get_storefront(args: argparse.Namespace) -> Storefront:
    """Open the Storefront for --data-dir (or STOREFRONT_DATA_DIR)."""
    data_dir = Path(args.data_dir) if args.data_dir else None
    return Storefront.open(data_dir)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def format_order(order: Order) -> str:
    return (
        f"  {order.order_number}  {order.id[:12]}  "
        f"{order.payment_status:<8} {order.delivery_status:<10} {order.total:>12}"
    )


def cmd_catalog(args: argparse.Namespace) -> int:
    """Browse the product catalog."""
    try:
        if args.sub_product:
            _, sub = catalog.get_sub_product(args.category, args.sub_product)
            print(f"{sub.name}:")
            for line in sub.specs:
                print(f"  {line}")
            print()
            for v in sub.variants:
                finish = f"  ({v.finish})" if v.finish else ""
                print(f"  {v.id:<16} {v.name:<20} {v.price:>8}{finish}")
        elif args.category:
            category = catalog.get_category(args.category)
            print(f"{category.name}: {category.subtitle}")
            for sub in category.sub_products:
                print(f"  {sub.id:<16} {sub.name} ({len(sub.variants)} variants)")
        else:
            for category in catalog.list_categories():
                print(f"{category.slug:<20} {category.name}")
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart(args: argparse.Namespace) -> int:
    """Show or change the cart."""
    try:
        sf = get_storefront(args)

        if args.cart_command == "add":
            item = sf.add_to_cart(
                args.category, args.sub_product, args.variant, quantity=args.quantity
            )
            print(f"Added: {item.product_name} (quantity {item.quantity})")
        elif args.cart_command == "remove":
            sf.cart.remove(args.item_id)
            print(f"Removed: {args.item_id}")
        elif args.cart_command == "clear":
            sf.cart.clear()
            print("Cart cleared.")
            return 0

        items = sf.cart.items
        if args.json:
            print(json.dumps(
                {"items": [i.to_dict() for i in items], "totals": sf.cart.totals.to_dict()},
                indent=2,
            ))
            return 0

        if not items:
            print("Cart is empty.")
            return 0

        print(f"Cart ({sf.cart.item_count} item(s)):")
        for item in items:
            print(f"  {item.id:<40} {item.quantity:>3} x {item.price:>8} = {item.line_total:>10}")
        totals = sf.cart.totals
        print()
        print(f"  Subtotal: {totals.subtotal}")
        print(f"  Tax:      {totals.tax}")
        print(f"  Total:    {totals.total}")
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders(args: argparse.Namespace) -> int:
    """List orders, show one, or advance its delivery."""
    try:
        sf = get_storefront(args)

        if args.order_id:
            if args.delivery:
                order = sf.orders.update_delivery_status(args.order_id, args.delivery)
            else:
                order = sf.orders.get(args.order_id)
            if args.json:
                print(json.dumps(order.to_dict(), indent=2))
            else:
                print(f"Order {order.order_number} ({order.id})")
                print(f"  Payment:  {order.payment_status} via {order.payment_method.type}")
                print(f"  Delivery: {order.delivery_status}")
                print(f"  Total:    {order.total}")
                for item in order.items:
                    print(f"    {item.quantity} x {item.product_name}")
            return 0

        orders = sf.orders.list_orders(args.status)
        if not orders:
            print("No orders found.")
            return 0

        if args.json:
            print(json.dumps([o.to_dict() for o in orders], indent=2))
        else:
            print(f"Orders ({len(orders)}):")
            for order in orders:
                print(format_order(order))
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_invoices(args: argparse.Namespace) -> int:
    """List invoices for paid orders."""
    try:
        sf = get_storefront(args)
        orders = sf.orders.invoices()

        if not orders:
            print("No invoices found.")
            return 0

        if args.json:
            data = [
                {"invoice_number": o.invoice_number, **o.to_dict()}
                for o in orders
            ]
            print(json.dumps(data, indent=2))
        else:
            print(f"Invoices ({len(orders)}):")
            for o in orders:
                print(f"  {o.invoice_number:<24} {o.paid_at or '':<28} {o.total:>12}")
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

        from . import api

        if args.data_dir:
            api.set_storefront(Storefront.open(Path(args.data_dir)))
        sf = api.get_storefront()

        print("Starting storefront API server...")
        print(f"Data: {sf.storage.data_dir}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        uvicorn.run(
            api.app,
            host=args.host,
            port=args.port,
            workers=1,  # Single worker: all state lives in one Storefront
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Cart, checkout, orders and simulated payments for the storefront.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--data-dir", help="Data directory (default: $STOREFRONT_DATA_DIR)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # catalog
    catalog_parser = subparsers.add_parser("catalog", help="Browse the product catalog")
    catalog_parser.add_argument("category", nargs="?", help="Category slug")
    catalog_parser.add_argument("sub_product", nargs="?", help="Sub-product ID")

    # cart
    cart_parser = subparsers.add_parser("cart", help="Show or change the cart")
    cart_parser.add_argument("--json", action="store_true", help="Output as JSON")
    cart_subparsers = cart_parser.add_subparsers(dest="cart_command")

    cart_add_parser = cart_subparsers.add_parser("add", help="Add a catalog variant")
    cart_add_parser.add_argument("category", help="Category slug")
    cart_add_parser.add_argument("sub_product", help="Sub-product ID")
    cart_add_parser.add_argument("variant", help="Variant ID")
    cart_add_parser.add_argument(
        "--quantity", "-q", type=positive_int, default=1, help="Quantity (default: 1)"
    )

    cart_remove_parser = cart_subparsers.add_parser("remove", help="Remove a cart line")
    cart_remove_parser.add_argument("item_id", help="Cart item ID")

    cart_subparsers.add_parser("clear", help="Empty the cart")

    # orders
    orders_parser = subparsers.add_parser("orders", help="List or inspect orders")
    orders_parser.add_argument("order_id", nargs="?", help="Order ID to show")
    orders_parser.add_argument(
        "--status", "-s", help="Only orders with this payment status"
    )
    orders_parser.add_argument(
        "--delivery", help="Advance the order's delivery status to this stage"
    )
    orders_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # invoices
    invoices_parser = subparsers.add_parser("invoices", help="List invoices for paid orders")
    invoices_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "catalog": cmd_catalog,
        "cart": cmd_cart,
        "orders": cmd_orders,
        "invoices": cmd_invoices,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
