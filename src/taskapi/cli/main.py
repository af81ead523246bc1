"""taskapi CLI — run the server and manage the database.

Usage:
    taskapi serve                                # Run the API with uvicorn
    taskapi init-db --seed                       # Create tables (+ demo data)
    taskapi create-user alice a@x.io --admin     # Provision an account

Public registration always creates plain users; `create-user --admin`
is the way to get an administrator into a fresh database.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from taskapi import __version__
from taskapi.auth.identity import Role
from taskapi.config import settings


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


@click.group()
@click.version_option(version=__version__, prog_name="taskapi")
def main():
    """Task Management API — server and admin commands."""


# ---------------------------------------------------------------------------
# taskapi serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TASKAPI_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: TASKAPI_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "taskapi.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# taskapi init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
@click.option("--seed", is_flag=True, help="Insert demo users, tasks and comments")
def init_db(seed: bool):
    """Create all tables (no-op for tables that already exist)."""
    _run(_init_db_impl(seed))


async def _init_db_impl(seed: bool):
    from taskapi.db.engine import async_session_factory, engine
    from taskapi.db.seed import create_schema, seed_demo_data

    try:
        await create_schema(engine)
        click.secho("Schema ready.", fg="green")
        if seed:
            async with async_session_factory() as session:
                if await seed_demo_data(session):
                    click.secho("Demo data inserted (admin/admin123, user/user123).", fg="green")
                else:
                    click.secho("Users already exist — demo data skipped.", fg="yellow")
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# taskapi create-user
# ---------------------------------------------------------------------------


@main.command("create-user")
@click.argument("username")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--admin", is_flag=True, help="Grant the Admin role")
def create_user(username: str, email: str, password: str, admin: bool):
    """Create a user account (optionally an administrator)."""
    from taskapi.services.user_service import UsernameTaken

    role = Role.ADMIN if admin else Role.USER
    try:
        user = _run(_create_user_impl(username, email, password, role))
    except UsernameTaken as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created {role.value} '{user.username}' (id {user.id})", fg="green")


async def _create_user_impl(username: str, email: str, password: str, role: Role):
    from taskapi.db.engine import async_session_factory, engine
    from taskapi.db.seed import create_schema
    from taskapi.services.user_service import UserService

    try:
        await create_schema(engine)
        async with async_session_factory() as session:
            return await UserService(session).create_user(
                username, email, password, role=role
            )
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()
