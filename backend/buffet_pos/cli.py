# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/buffet_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-password "Password123!"]
#   Idempotent bootstrap: creates tables, default settings and the default profiles.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Profile inspection/bootstrap:
# - python -m flask users list
#   List all profiles with role and active status.
# - python -m flask users create --username cashier2 --password "Password123!" --role cashier
#   Create a profile (prompts if options are omitted).
# - python -m flask users set-role cashier2 manager
#   Change a profile's role.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Profile
from .models.auth import ROLES
from .services import profile_service, settings_service
from .services.auth_service import create_profile, PasswordValidationError
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"


def default_settings() -> dict[str, str]:
    return {
        "store_name": current_app.config.get("DEFAULT_STORE_NAME", "Buffet Restaurant"),
        "paper_size": current_app.config.get("DEFAULT_PAPER_SIZE", "88mm"),
        "tax_rate": "0",
        "currency": "USD",
        "receipt_footer": "Thank you for dining with us!",
    }


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-password', default=DEFAULT_PASSWORD, help='Password for the default profiles')
@with_appcontext
def init_system(admin_password):
    """
    Initialize the POS: tables, default settings and default profiles.

    Creates:
    - All tables (if missing)
    - Settings: store_name, paper_size, tax_rate, currency, receipt_footer
    - Profiles: admin, manager, cashier (one per role)

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing buffet POS...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = settings_service.ensure_defaults(default_settings())
    click.echo(f"PASS Settings: {created} default(s) created")

    click.echo("\nUSERS Creating default profiles...")
    for role in ROLES:
        if db.session.query(Profile).filter_by(username=role).first():
            click.echo(f"WARN  Profile '{role}' already exists, skipping...")
            continue
        try:
            create_profile(role, admin_password, role=role, full_name=role.capitalize())
            click.echo(f"PASS Created profile: {role} with role '{role}'")
        except (ValidationError, ConflictError) as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create profile '{role}': {str(e)}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE Buffet POS initialized")
    click.echo("=" * 60)
    click.echo("\nSECURITY WARNING: change the default passwords before going live.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """Profile inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all profiles with their roles."""
    profiles = db.session.query(Profile).order_by(Profile.id.asc()).all()

    if not profiles:
        click.echo("No profiles found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("=" * 80)
    for profile in profiles:
        click.echo(
            f"{profile.id:<5} {profile.username:<20} {(profile.email or '-'):<30} "
            f"{('yes' if profile.is_active else 'no'):<8} {profile.role}"
        )


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', default=None, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, email, password, role, full_name):
    """
    Create a new profile.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        profile = create_profile(username, password, email=email, role=role, full_name=full_name)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created profile: {profile.username} (ID: {profile.id}) with role '{profile.role}'")


@users_group.command('set-role')
@click.argument('username')
@click.argument('role', type=click.Choice(list(ROLES)))
@with_appcontext
def set_role_cli(username, role):
    """Change the role of an existing profile."""
    profile = db.session.query(Profile).filter_by(username=username).first()
    if not profile:
        raise click.ClickException(f"Profile '{username}' not found")

    old_role = profile.role
    profile_service.update_role(profile.id, role)
    click.echo(f"PASS {username}: {old_role} -> {role}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
