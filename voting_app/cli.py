import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models.token_blocklist import TokenBlocklist
from .errors import ValidationError
from .services import accounts


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create all tables (use `flask db upgrade` once migrations exist)."""
    db.create_all()
    click.echo("Database tables created.")


@click.command("seed-admin")
@with_appcontext
@click.option("--email", envvar="ADMIN_EMAIL", default="admin@gmail.com", show_default=True)
@click.option("--password", envvar="ADMIN_PASSWORD", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--name", envvar="ADMIN_NAME", default="Admin", show_default=True)
@click.option("--mobile", envvar="ADMIN_MOBILE", default="9999999999", show_default=True)
@click.option("--national-id", envvar="ADMIN_NATIONAL_ID", default="000000000000", show_default=True)
@click.option("--address", envvar="ADMIN_ADDRESS", default="Admin Office", show_default=True)
def seed_admin_command(email, password, name, mobile, national_id, address):
    """Create the administrator account if it does not exist yet."""
    try:
        user, created = accounts.create_admin(
            name=name,
            email=email,
            password=password,
            mobile=mobile,
            national_id=national_id,
            address=address,
        )
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint="--password")
    if created:
        current_app.logger.info("Admin seeded user_id=%s", user.id)
        click.echo(f"Admin created successfully: {user.email}")
    else:
        click.echo(f"Admin already exists: {user.email}")


@click.command("purge-revoked-tokens")
@with_appcontext
def purge_revoked_tokens_command():
    """Remove blocklist entries for tokens that have expired anyway."""
    removed = TokenBlocklist.purge_expired()
    db.session.commit()
    click.echo(f"Removed {removed} expired blocklist entries.")


def register_cli(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_admin_command)
    app.cli.add_command(purge_revoked_tokens_command)
