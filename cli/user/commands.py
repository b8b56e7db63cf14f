# cli/user/commands.py
"""
Current user commands (profile, update, delete)
"""
import typer

from cli.core.session import clear_tokens
from cli.core.api import APIError, api_delete_account, api_get_profile, api_update_profile
from cli.core.utils import validate_email, print_user

app = typer.Typer(help="Current user commands (me, update, delete)")


@app.command("me")
def me():
    """
    Show current user profile.
    """
    try:
        user = api_get_profile()
    except APIError as e:
        typer.echo(f"Failed to get user information: {e.message}")
        raise typer.Exit(code=1)

    print_user(user)


@app.command("update")
def update(
    name: str = typer.Option(None, "--name", "-n", help="New display name"),
    bio: str = typer.Option(None, "--bio", help="New bio"),
    email: str = typer.Option(None, "--email", "-e", help="New email address"),
):
    """
    Update profile fields. Only the options given are changed.
    """
    changes = {}
    if name is not None:
        changes["name"] = name
    if bio is not None:
        changes["bio"] = bio
    if email is not None:
        if not validate_email(email):
            raise typer.Exit(code=1)
        changes["email"] = email

    if not changes:
        typer.echo("Nothing to update. Use --name, --bio or --email.")
        raise typer.Exit(code=1)

    try:
        user = api_update_profile(changes)
    except APIError as e:
        typer.echo(f"Update failed: {e.message}")
        raise typer.Exit(code=1)

    typer.echo("Profile updated.")
    print_user(user)


@app.command("delete")
def delete(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """
    Permanently delete the current account.
    """
    if not yes:
        typer.confirm("This permanently deletes your account. Continue?", abort=True)

    try:
        api_delete_account()
    except APIError as e:
        typer.echo(f"Account deletion failed: {e.message}")
        raise typer.Exit(code=1)

    clear_tokens()
    typer.echo("Account deleted.")
