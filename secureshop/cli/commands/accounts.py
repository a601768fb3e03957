"""
Account administration commands.

Operate directly on the credential store and the shared key-value store
configured in the environment.
"""
import asyncio
from contextlib import asynccontextmanager

import typer

from ..utils import account_table, console, print_error, print_success, print_warning

app = typer.Typer(help="Account administration commands")


@asynccontextmanager
async def _session_manager(settings):
    from ...auth import LoggingAuditSink, SessionManager, SQLAlchemyCredentialStore
    from ...cache import create_backend
    from ...db import Database

    database = Database(settings.DATABASE_URL, echo_sql=settings.ECHO_SQL)
    backend = create_backend(settings)
    manager = SessionManager.build(
        settings, backend, SQLAlchemyCredentialStore(database), audit_sinks=[LoggingAuditSink()]
    )
    try:
        await database.create_all()
        yield manager
    finally:
        await manager.close()
        await backend.close()
        await database.dispose()


def _run(coro_factory):
    from ...auth import AuthError
    from ...core.config import get_settings
    from ...db import DatabaseError

    async def runner():
        async with _session_manager(get_settings()) as manager:
            return await coro_factory(manager)

    try:
        return asyncio.run(runner())
    except (AuthError, DatabaseError) as e:
        print_error(str(e))
        raise typer.Exit(code=1)


@app.command("create")
def create_account(
    email: str = typer.Argument(..., help="Account email"),
    role: str = typer.Option("customer", help="customer, manager or admin"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Create an account."""
    from ...auth import AccountExists, Role
    from ...schemas import validate_password_strength

    try:
        role_value = Role(role.lower())
        validate_password_strength(password)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    async def create(manager):
        password_hash = await asyncio.to_thread(manager.hasher.hash, password)
        try:
            return await manager.credentials.create(email, password_hash, role=role_value)
        except AccountExists:
            return None

    account = _run(create)
    if account is None:
        print_error(f"An account with email {email} already exists")
        raise typer.Exit(code=1)
    print_success(f"Account {account.email} created")
    console.print(account_table(account))


@app.command("unlock")
def unlock_account(email: str = typer.Argument(..., help="Account email")) -> None:
    """Clear the lockout and failed-attempt counter of an account."""

    async def unlock(manager):
        account = await manager.credentials.find_by_email(email)
        if account is None:
            return None
        return await manager.credentials.update(account.id, failed_login_attempts=0, locked_until=None)

    account = _run(unlock)
    if account is None:
        print_error(f"No account with email {email}")
        raise typer.Exit(code=1)
    print_success(f"Account {account.email} unlocked")


@app.command("deactivate")
def deactivate_account(email: str = typer.Argument(..., help="Account email")) -> None:
    """Deactivate an account and revoke its sessions."""

    async def deactivate(manager):
        account = await manager.credentials.find_by_email(email)
        if account is None:
            return None, 0
        account = await manager.credentials.update(account.id, is_active=False)
        return account, await manager.revoke_all_sessions(account.id)

    account, revoked = _run(deactivate)
    if account is None:
        print_error(f"No account with email {email}")
        raise typer.Exit(code=1)
    print_success(f"Account {account.email} deactivated ({revoked} session(s) revoked)")


@app.command("revoke-sessions")
def revoke_sessions(email: str = typer.Argument(..., help="Account email")) -> None:
    """Revoke every session of an account."""
    from ...core.config import get_settings

    if get_settings().STORE_BACKEND == "memory":
        print_warning("The in-memory store is local to this process; no server sessions are affected")

    async def revoke(manager):
        account = await manager.credentials.find_by_email(email)
        if account is None:
            return None
        return await manager.revoke_all_sessions(account.id)

    revoked = _run(revoke)
    if revoked is None:
        print_error(f"No account with email {email}")
        raise typer.Exit(code=1)
    print_success(f"Revoked {revoked} session(s) for {email}")
