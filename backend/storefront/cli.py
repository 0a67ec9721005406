# Overview: Flask CLI command groups for bootstrap, seeding and maintenance.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py and TOKEN_SECRET / PASSWORD_SECRET (or put them in .env).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email a@b.com --password "Str0ng!Pw" --role customer
#   Create a user (prompts if options are omitted).
#
# Catalog reference data:
# - python -m flask catalog add-category --name "Shoes" [--parent-id 1]
# - python -m flask catalog add-card-type --name "VISA"
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .roles import Role
from .services import auth_service, payment_method_service, product_service
from .services.security_service import cleanup_security_events


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in Role]), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*)
    """
    try:
        user, _ = auth_service.register_user(email, password, role)
    except AppError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role.value})")


@click.group('catalog')
def catalog_group():
    """Catalog reference data."""


@catalog_group.command('add-category')
@click.option('--name', required=True, help='Category name')
@click.option('--parent-id', type=int, default=None, help='Parent category ID')
@with_appcontext
def add_category_cli(name, parent_id):
    try:
        category = product_service.create_category(name, parent_id)
    except AppError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created category: {category.name} (ID: {category.id})")


@catalog_group.command('add-card-type')
@click.option('--name', required=True, help='Card network name, e.g. VISA')
@with_appcontext
def add_card_type_cli(name):
    try:
        card_type = payment_method_service.create_card_type(name)
    except AppError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created card type: {card_type.name} (ID: {card_type.id})")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(maintenance_group)
