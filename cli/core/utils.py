import re
import typer

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def validate_email(email: str) -> bool:
    if not EMAIL_REGEX.match(email.strip()):
        typer.echo("Invalid email address.")
        return False
    return True

def validate_password(password: str) -> bool:
    """
    Mirrors the server's registration rules:
    - 8 to 128 characters
    - At least one lowercase letter
    - At least one uppercase letter
    - At least one number
    """
    if len(password) < 8 or len(password) > 128:
        typer.echo("Password must be between 8 and 128 characters long.")
        return False

    if not re.search(r"[a-z]", password):
        typer.echo("Password must contain at least one lowercase letter.")
        return False

    if not re.search(r"[A-Z]", password):
        typer.echo("Password must contain at least one uppercase letter.")
        return False

    if not re.search(r"\d", password):
        typer.echo("Password must contain at least one number.")
        return False

    return True

def print_user(user: dict) -> None:
    typer.echo("\nUser Information:")
    typer.echo(f"   ID:      {user.get('id', '-')}")
    typer.echo(f"   Email:   {user.get('email', '-')}")
    typer.echo(f"   Name:    {user.get('name') or '-'}")
    typer.echo(f"   Bio:     {user.get('bio') or '-'}")
    typer.echo(f"   Created: {user.get('created_at', '-')}")
