# Overview: Flask CLI command groups for bootstrap, inspection, and stock maintenance.

# backend/tablepos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent: creates tables and seeds the default floor plan and menu when empty.
# - python -m flask system reset-db --yes
#   Drop and recreate all tables (deletes all data).
#
# Inspection:
# - python -m flask products list [--category "İçecekler"]
# - python -m flask tables list [--section "Teras"]
# - python -m flask orders list [--status active]
#
# Stock:
# - python -m flask stock adjust --reason "Broken bottles" 12 -- -3
# - python -m flask stock adjust --set --reason "Recount" 12 40
# - python -m flask stock toggle-unlimited 12
# - python -m flask stock log [--product-id 12] [--limit 50]

import click
from flask.cli import with_appcontext

from .extensions import db
from .seed import seed_menu, seed_tables
from .services import catalog_service, order_service, stock_service, table_service
from .services.errors import LedgerError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create the schema and seed tables and menu if they are empty."""
    click.echo("START Initializing TablePOS...")
    db.create_all()

    tables = seed_tables()
    if tables:
        click.echo(f"PASS Created {tables} tables")
    else:
        click.echo("PASS Tables already present, skipping")

    products = seed_menu()
    if products:
        click.echo(f"PASS Created {products} products")
    else:
        click.echo("PASS Menu already present, skipping")

    click.echo("DONE TablePOS initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed defaults.")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('list')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_products(category):
    products = catalog_service.list_products(category=category)
    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<5} {'Name':<28} {'Category':<20} {'Price':>7} {'Stock':>8}")
    click.echo("-" * 72)
    for p in products:
        stock = "unlim." if p.is_unlimited else str(p.stock)
        click.echo(f"{p.id:<5} {p.name[:28]:<28} {p.category[:20]:<20} {p.price:>7} {stock:>8}")


@click.group('tables')
def tables_group():
    """Table inspection commands."""


@tables_group.command('list')
@click.option('--section', help='Filter by section')
@with_appcontext
def list_tables(section):
    tables = table_service.list_tables(section=section)
    if not tables:
        click.echo("No tables found.")
        return

    for t in tables:
        order = f" (order #{t.current_order_id})" if t.current_order_id else ""
        click.echo(f"{t.id:<5} {t.section:<12} {t.name:<8} {t.status}{order}")


@click.group('orders')
def orders_group():
    """Order inspection commands."""


@orders_group.command('list')
@click.option('--status', type=click.Choice(['active', 'paid', 'no_payment']), help='Filter by status')
@with_appcontext
def list_orders(status):
    orders = order_service.list_orders(status=status)
    if not orders:
        click.echo("No orders found.")
        return

    for o in orders:
        click.echo(
            f"#{o.id:<5} table={o.table_id:<4} {o.status:<10} total={o.total_amount:<8} "
            f"created={o.created_at:%Y-%m-%d %H:%M}"
        )


@click.group('stock')
def stock_group():
    """Stock maintenance commands."""


@stock_group.command('adjust')
@click.argument('product_id', type=int)
@click.argument('amount', type=int)
@click.option('--reason', default=None, help='Why the stock changed')
@click.option('--set', 'set_total', is_flag=True, help='Treat AMOUNT as the new total stock')
@with_appcontext
def adjust_stock(product_id, amount, reason, set_total):
    """Apply a signed manual stock change (or set the total) and log it."""
    try:
        if set_total:
            entry = stock_service.set_stock(product_id, amount, reason)
        else:
            entry = stock_service.update_stock(product_id, amount, reason)
    except LedgerError as e:
        raise click.ClickException(str(e))
    if entry is None:
        click.echo(f"PASS Stock already at {amount}, nothing to log")
        return
    click.echo(
        f"PASS {entry.product_name}: {entry.change_amount:+d} -> {entry.new_stock} ({entry.reason})"
    )


@stock_group.command('toggle-unlimited')
@click.argument('product_id', type=int)
@with_appcontext
def toggle_unlimited(product_id):
    try:
        product = stock_service.toggle_unlimited(product_id)
    except LedgerError as e:
        raise click.ClickException(str(e))
    mode = "unlimited" if product.is_unlimited else f"tracked (stock {product.stock})"
    click.echo(f"PASS {product.name} is now {mode}")


@stock_group.command('log')
@click.option('--product-id', type=int, help='Only this product')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def stock_log(product_id, limit):
    entries = stock_service.list_stock_log(product_id=product_id, limit=limit)
    if not entries:
        click.echo("No stock changes recorded.")
        return

    for e in entries:
        click.echo(
            f"{e.created_at:%Y-%m-%d %H:%M} {e.product_name:<24} {e.change_amount:+6d} "
            f"-> {e.new_stock:<6} {e.reason}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(tables_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(stock_group)
