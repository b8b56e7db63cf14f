import getpass
import typer

from cli.core.session import load_refresh_token, clear_tokens, is_logged_in
from cli.core.api import APIError, api_login, api_logout, api_refresh, api_register
from cli.core.utils import validate_email, validate_password, print_user


app = typer.Typer(help="Authentication commands (register, login, refresh, logout)")


@app.command("register")
def register(
    email: str = typer.Option(None, "--email", "-e", help="Email address"),
    name: str = typer.Option(None, "--name", "-n", help="Display name"),
    bio: str = typer.Option(None, "--bio", help="Short bio"),
):
    """
    Create an account and start a session. Only allowed if no session is active.
    """
    if is_logged_in():
        typer.echo("Session already active. Logout first.")
        raise typer.Exit(code=1)

    if email is None:
        email = typer.prompt("Email")

    if not validate_email(email):
        raise typer.Exit(code=1)

    password = getpass.getpass("Password: ")
    password_confirm = getpass.getpass("Confirm password: ")

    if password != password_confirm:
        typer.echo("Passwords do not match.")
        raise typer.Exit(code=1)

    if not validate_password(password):
        raise typer.Exit(code=1)

    try:
        data = api_register(email, password, name=name, bio=bio)
    except APIError as e:
        typer.echo(f"Registration failed: {e.message} ({e.code})")
        raise typer.Exit(code=1)

    typer.echo("Registration successful.")
    print_user(data["user"])


@app.command("login")
def login(
    email: str = typer.Option(None, "--email", "-e", help="Email address"),
):
    """
    Login to the system. Only allowed if no session is active.
    """
    if is_logged_in():
        typer.echo("Session already active. Logout first to remove current session token.")
        raise typer.Exit(code=1)

    if email is None:
        email = typer.prompt("Email")

    if not validate_email(email):
        raise typer.Exit(code=1)

    password = getpass.getpass("Password: ")
    if not password:
        typer.echo("Password cannot be empty.")
        raise typer.Exit(code=1)

    try:
        data = api_login(email, password)
    except APIError as e:
        typer.echo(f"Login failed: {e.message}")
        raise typer.Exit(code=1)

    typer.echo(f"Login successful as '{data['user']['email']}'.")


@app.command("refresh")
def refresh():
    """
    Exchange the stored refresh token for a new token pair.
    """
    refresh_token = load_refresh_token()
    if not refresh_token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)

    try:
        api_refresh(refresh_token)
    except APIError as e:
        # A rejected refresh token always means logging in again
        clear_tokens()
        typer.echo(f"Refresh failed: {e.message}. Please login again.")
        raise typer.Exit(code=1)

    typer.echo("Tokens refreshed.")


@app.command("logout")
def logout():
    """
    End session: invalidate the refresh token on the server and delete local tokens.
    """
    refresh_token = load_refresh_token()
    if refresh_token:
        if api_logout(refresh_token):
            typer.echo("Logged out from backend.")
        else:
            typer.echo("Warning: Failed to logout from backend.")

    clear_tokens()
    typer.echo("Session ended.")
