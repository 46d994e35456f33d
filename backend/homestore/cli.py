# Overview: Flask CLI command groups for bootstrap, admin accounts and catalog inspection.

# backend/homestore/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admin accounts:
# - python -m flask admins create --name "Owner" --email owner@homestore.local --password "secret123"
#   Create a back-office admin (prompts if options are omitted).
# - python -m flask admins list
#
# Catalog:
# - python -m flask catalog low-stock
#   List products/variants at or below their low-stock threshold.
# - python -m flask catalog seed-demo
#   Insert a small demo catalog and a store-wide coupon (skips if products exist).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, Category, Coupon
from .services import account_service, catalog_service
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('admins')
def admins_group():
    """Back-office admin accounts."""


@admins_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin(name, email, password):
    try:
        admin = account_service.create_admin({"name": name, "email": email, "password": password})
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created admin {admin.email} (ID: {admin.id})")


@admins_group.command('list')
@with_appcontext
def list_admins():
    admins = account_service.list_admins()
    if not admins:
        click.echo("No admins found")
        return
    for admin in admins:
        click.echo(f"{admin.id:>4}  {admin.email:<40} {admin.name}")


@click.group('catalog')
def catalog_group():
    """Catalog inspection commands."""


@catalog_group.command('low-stock')
@with_appcontext
def low_stock():
    report = catalog_service.low_stock_report()
    if not report:
        click.echo("PASS No products below threshold")
        return
    for row in report:
        if "lowVariants" in row:
            variants = ", ".join(f"{k}={v}" for k, v in row["lowVariants"].items())
            click.echo(f"{row['productId']:>4}  {row['name']:<40} {variants}")
        else:
            click.echo(f"{row['productId']:>4}  {row['name']:<40} stock={row['stock']}")


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Insert demo bedding/bath products and a WELCOME10 coupon."""
    if db.session.query(Product).count():
        click.echo("SKIP Products already exist")
        return

    for name in ("Bedding", "Bath", "Living"):
        db.session.add(Category(name=name))

    db.session.add(Product(
        name="Bamboo Sheet Set",
        category="Bedding",
        price=1200,
        image="",
        colors=["White", "Grey"],
        variants=[{"size": "Queen", "price": 1200}, {"size": "King", "price": 1400}],
        variant_stock={"Queen-White": 10, "Queen-Grey": 6, "King-White": 4, "King-Grey": 2},
    ))
    db.session.add(Product(
        name="Cotton Bath Towel",
        category="Bath",
        price=350,
        image="",
        colors=["White"],
        variant_stock={"Standard-White": 25},
    ))
    db.session.add(Coupon(code="WELCOME10", discount=10, type="percentage", scope="store"))
    db.session.commit()
    click.echo("PASS Demo catalog created")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(catalog_group)
