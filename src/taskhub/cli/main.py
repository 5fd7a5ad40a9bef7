"""TaskHub CLI: run the server and manage the database.

Usage:
    taskhub serve                         # Run the API with uvicorn
    taskhub init-db                       # Create tables (dev; use alembic in prod)
    taskhub seed                          # Demo admin, user and sample tasks
    taskhub create-user alice alice@x.com --admin
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timedelta, timezone

import click

from taskhub import __version__
from taskhub.config import settings

SEED_ADMIN = ("admin", "admin@example.com", "admin123")
SEED_USER = ("john_doe", "john@example.com", "user123")

SEED_TASKS = [
    {
        "title": "Complete project documentation",
        "description": "Write comprehensive API documentation with examples",
        "status": "in_progress",
        "priority": "high",
        "due_in_days": 7,
    },
    {
        "title": "Review pull requests",
        "description": "Review and merge pending pull requests",
        "status": "pending",
        "priority": "medium",
        "due_in_days": 3,
    },
    {
        "title": "Deploy to production",
        "description": "Deploy latest changes to production environment",
        "status": "pending",
        "priority": "urgent",
        "due_in_days": 1,
    },
    {
        "title": "Team meeting",
        "description": "Weekly sync with the development team",
        "status": "completed",
        "priority": "low",
        "due_in_days": -2,
    },
]


@click.group()
@click.version_option(version=__version__, prog_name="taskhub")
def main():
    """TaskHub: task management API."""


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "taskhub.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create all tables that do not exist yet."""
    asyncio.run(_init_db())
    click.secho("Tables created", fg="green")


async def _init_db():
    from taskhub.db.engine import engine
    from taskhub.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@main.command()
def seed():
    """Insert a demo admin, a demo user and a few tasks for the user."""
    asyncio.run(_seed())


async def _seed():
    from taskhub.db.engine import async_session_factory, engine

    async with async_session_factory() as db:
        await seed_demo_data(db)

    await engine.dispose()

    click.echo()
    click.secho("Seed data:", bold=True)
    click.echo(f"  Admin: {SEED_ADMIN[1]} / {SEED_ADMIN[2]}")
    click.echo(f"  User:  {SEED_USER[1]} / {SEED_USER[2]}")


async def seed_demo_data(db) -> None:
    """Create the demo accounts. Sample tasks only come with a new demo user."""
    from taskhub.auth.dependencies import Principal
    from taskhub.services.task_service import TaskService
    from taskhub.services.user_service import UserService

    users = UserService(db)
    await _ensure_user(users, *SEED_ADMIN, role="admin")
    john, created = await _ensure_user(users, *SEED_USER, role="user")

    if created:
        await _seed_tasks(TaskService(db), Principal(id=john.id, role=john.role))
    else:
        click.echo("Sample tasks already seeded, skipping")


async def _ensure_user(users, username: str, email: str, password: str, role: str):
    existing = await users.find_by_email(email)
    if existing:
        click.echo(f"User {email} already exists, skipping")
        return existing, False
    user = await users.create(username, email, password, role=role)
    click.secho(f"Created {role} {email}", fg="green")
    return user, True


async def _seed_tasks(tasks, owner) -> None:
    now = datetime.now(timezone.utc)
    for entry in SEED_TASKS:
        await tasks.create_task(
            owner,
            title=entry["title"],
            description=entry["description"],
            status=entry["status"],
            priority=entry["priority"],
            due_date=now + timedelta(days=entry["due_in_days"]),
        )
    click.secho(f"Created {len(SEED_TASKS)} sample tasks", fg="green")


@main.command("create-user")
@click.argument("username")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--admin", is_flag=True, help="Give the account the admin role")
def create_user(username: str, email: str, password: str, admin: bool):
    """Create an account directly in the database."""
    from taskhub.errors import DuplicateIdentity

    try:
        user = asyncio.run(_create_user(username, email, password, admin))
    except DuplicateIdentity as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created user #{user.id} ({user.role})", fg="green")


async def _create_user(username: str, email: str, password: str, admin: bool):
    from taskhub.db.engine import async_session_factory, engine
    from taskhub.services.user_service import UserService

    try:
        async with async_session_factory() as db:
            return await UserService(db).create(
                username, email, password, role="admin" if admin else "user"
            )
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()
