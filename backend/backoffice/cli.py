# Overview: Flask CLI command groups for bootstrap, staff records and stock inspection.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for migrated databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Idempotently add a demo admin, categories, suppliers, items and a customer.
#
# Staff records:
# - python -m flask admins list
# - python -m flask admins create --first-name Ana --last-name Cruz --email ana@example.com
#
# Stock inspection:
# - python -m flask inventory low-stock
#   Items at or below their reorder threshold.

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .errors import ValidationError
from .extensions import db
from .models import Admin, Category, Customer, Item, Supplier
from .services import catalog_service, staff_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' for demo data.")


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Add demo data for local use. Safe to run repeatedly.

    Creates:
    - Admin: Demo Admin / admin@backoffice.local
    - Categories: Beverages, Snacks
    - Supplier: Acme Trading
    - Items: Bottled Water, Potato Chips
    - Customer: Walk-in Customer
    """
    admin = db.session.query(Admin).filter_by(admin_email="admin@backoffice.local").first()
    if not admin:
        admin = staff_service.create_admin(first_name="Demo", last_name="Admin", email="admin@backoffice.local")
        click.echo(f"PASS Created admin: {admin.display_name} (ID: {admin.admin_id})")
    else:
        click.echo(f"PASS Using existing admin: {admin.display_name} (ID: {admin.admin_id})")

    categories = {}
    for name in ("Beverages", "Snacks"):
        category = db.session.query(Category).filter_by(category_name=name).first()
        if not category:
            category = Category(category_name=name)
            db.session.add(category)
            db.session.commit()
            click.echo(f"PASS Created category: {name}")
        categories[name] = category

    supplier = db.session.query(Supplier).filter_by(supplier_name="Acme Trading").first()
    if not supplier:
        supplier = Supplier(
            supplier_name="Acme Trading",
            supplier_contact_person="Juan Santos",
            supplier_address="12 Market St",
            supplier_email="orders@acme.example",
            supplier_number="09171234567",
        )
        db.session.add(supplier)
        db.session.commit()
        click.echo("PASS Created supplier: Acme Trading")

    demo_items = [
        ("Bottled Water", "bottle", Decimal("20.00"), 100, 10, "Beverages"),
        ("Potato Chips", "pack", Decimal("35.50"), 50, 5, "Snacks"),
    ]
    for description, unit, price, quantity, threshold, category_name in demo_items:
        if db.session.query(Item).filter_by(description=description).first():
            continue
        db.session.add(Item(
            description=description,
            unit=unit,
            price=price,
            quantity=quantity,
            reorder_threshold=threshold,
            category_id=categories[category_name].category_id,
            supplier_id=supplier.supplier_id,
        ))
        db.session.commit()
        click.echo(f"PASS Created item: {description}")

    if not db.session.query(Customer).filter_by(customer_email="walkin@backoffice.local").first():
        db.session.add(Customer(
            customer_name="Walk-in Customer",
            customer_address="N/A",
            customer_email="walkin@backoffice.local",
        ))
        db.session.commit()
        click.echo("PASS Created customer: Walk-in Customer")

    click.echo("PASS Seed complete.")


@click.group('admins')
def admins_group():
    """Staff record commands."""


@admins_group.command('list')
@with_appcontext
def list_admins():
    """List all admins."""
    admins = staff_service.list_admins()
    if not admins:
        click.echo("No admins found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<35} {'Email'}")
    click.echo("="*80)
    for admin in admins:
        click.echo(f"{admin.admin_id:<5} {admin.display_name:<35} {admin.admin_email}")
    click.echo("="*80 + "\n")


@admins_group.command('create')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@click.option('--email', prompt=True, help='Email address')
@with_appcontext
def create_admin(first_name, last_name, email):
    """Create an admin record."""
    try:
        admin = staff_service.create_admin(first_name=first_name, last_name=last_name, email=email)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created admin: {admin.display_name} (ID: {admin.admin_id})")


@click.group('inventory')
def inventory_group():
    """Stock inspection commands."""


@inventory_group.command('low-stock')
@with_appcontext
def low_stock():
    """List items whose quantity is at or below the reorder threshold."""
    items = catalog_service.list_low_stock_items()
    if not items:
        click.echo("No items at or below their reorder threshold.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Description':<35} {'On hand':<12} {'Threshold'}")
    click.echo("="*80)
    for item in items:
        on_hand = f"{item.quantity} {item.unit}"
        click.echo(f"{item.item_id:<5} {item.description:<35} {on_hand:<12} {item.reorder_threshold}")
    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(inventory_group)
