# backend/app/manage.py
"""
Server-side maintenance commands (run next to the database, not through the API).
"""
import typer

from .auth.ledger import TokenLedger
from .audit.service import verify_chain
from .core.database import Database, unit_of_work
from .core.logging import setup_logging
from .core.settings import get_settings

app = typer.Typer(help="UserHub server management")


def _open_database() -> Database:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    return Database(settings.DATABASE_URL).init()


@app.command("init-db")
def init_db():
    """
    Create the users, refresh_tokens and audit_logs tables if missing.
    """
    database = _open_database()
    database.dispose()
    typer.echo("Database initialised.")


@app.command("purge-tokens")
def purge_tokens():
    """
    Delete refresh tokens whose expiry has passed.
    """
    database = _open_database()
    try:
        with database.session() as session:
            with unit_of_work(session):
                removed = TokenLedger(session).purge_expired()
    finally:
        database.dispose()
    typer.echo(f"Removed {removed} expired refresh token(s).")


@app.command("verify-audit")
def verify_audit():
    """
    Recompute the audit hash chain and report the first broken entry.
    """
    database = _open_database()
    try:
        with database.session() as session:
            is_valid, broken_id = verify_chain(session)
    finally:
        database.dispose()

    if is_valid:
        typer.echo("Audit chain is valid.")
        return
    typer.echo(f"Audit chain is broken at entry {broken_id}.")
    raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(3001, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """
    Run the API with uvicorn.
    """
    import uvicorn

    uvicorn.run("backend.app.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
