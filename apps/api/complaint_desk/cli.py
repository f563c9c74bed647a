"""CLI tools for complaint desk administration."""

import asyncio

import click

from complaint_desk.core.security import create_session_token
from complaint_desk.db.enums import UserRole
from complaint_desk.db.session import SessionLocal
from complaint_desk.schemas.user import UserCreate
from complaint_desk.services import user_service
from complaint_desk.services.errors import ComplaintDeskError


@click.group()
def cli():
    """Complaint desk CLI tools."""
    pass


@cli.command()
@click.option("--email", required=True, help="Email address")
@click.option("--name", required=True, help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in UserRole], case_sensitive=False),
    default=UserRole.CLIENT.value,
    show_default=True,
    help="Role (fixed once created)",
)
@click.option("--organization", default=None, help="Client organization")
def create_user(email: str, name: str, role: str, organization: str | None):
    """
    Create a user.

    This is the bootstrap command for the first admin.

    Example:
        complaint-desk create-user --email admin@example.com --name Admin --role ADMIN
    """
    db = SessionLocal()
    try:
        user = user_service.create_user(
            db,
            UserCreate(
                email=email,
                name=name,
                role=UserRole(role.upper()),
                organization=organization,
            ),
        )
        click.echo(f"✓ Created user: {user.email}")
        click.echo(f"  ID: {user.id}")
        click.echo(f"  Role: {user.role}")
    except ComplaintDeskError as e:
        click.echo(f"❌ {e.message}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="Email of the user to issue a token for")
def issue_token(email: str):
    """
    Print a session token for a user (set it as the session cookie).

    Useful for local testing and scripted access.
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            raise SystemExit(1)
        if not user.is_active:
            click.echo(f"❌ User is disabled: {email}")
            raise SystemExit(1)
        click.echo(create_session_token(user.id, user.role, user.token_version))
    finally:
        db.close()


@cli.command()
@click.option("--once", is_flag=True, help="Process one batch of pending jobs and exit")
def run_worker(once: bool):
    """Run the background worker that delivers notifications."""
    from complaint_desk import worker

    worker.configure_logging()
    if not once:
        worker.main()
        return

    with SessionLocal() as db:
        completed = asyncio.run(worker.run_once(db))
    click.echo(f"✓ Processed {completed} jobs")


if __name__ == "__main__":
    cli()
