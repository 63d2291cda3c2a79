import asyncio
from pathlib import Path
import secrets
import subprocess
from typing import Annotated

from rich import print
import typer

from credgate.core.config import settings

app = typer.Typer()


async def init_db_task() -> None:
    """
    Create every table registered on the declarative base.

    Intended for local SQLite databases and throwaway environments; use
    ``migrate`` for anything that keeps data.
    """
    from credgate.core.db import dispose_db, init_db

    print(f"[yellow]Creating tables on {settings.DATABASE_URL}[/yellow]")
    try:
        await init_db()
    finally:
        await dispose_db()
    print("[green]Tables created[/green]")


@app.command()
def initdb():
    """Create the database tables without Alembic."""
    asyncio.run(init_db_task())


@app.command()
def makemigrations(comment: Annotated[str, typer.Argument()] = "auto"):
    """
    Creates a new Alembic migration revision with an autogenerated migration script.

    Args:
        comment (str, optional): The message to use for the migration revision. Defaults to "auto".

    Raises:
        subprocess.CalledProcessError: If the Alembic command fails.
    """
    try:
        revision_command = f'alembic revision --autogenerate -m "{comment}"'
        print(f"Running Alembic migrations: {revision_command}")
        subprocess.run(revision_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise
    print("[green]Make migrations complete[/green]")


@app.command()
def showmigrations():
    """Shows the Alembic migration history."""
    try:
        history_command = "alembic history"
        print(f"Running Alembic history: {history_command}")
        subprocess.run(history_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise
    print("[green]Show migrations complete[/green]")


@app.command()
def migrate():
    """
    Runs the Alembic database migration to upgrade the schema to the latest version.
    """
    try:
        upgrade_command = "alembic upgrade head"
        print(f"Running Alembic upgrade: {upgrade_command}")
        subprocess.run(upgrade_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise
    print("[green]Migration complete[/green]")


@app.command()
def runserver(
    port: Annotated[int, typer.Option("--port", "-p", help="Port to bind")] = 8000,
):
    try:
        server_command = (
            f"uvicorn credgate.main:app --host 127.0.0.1 --port {port} --reload"
            if settings.DEBUG
            else f"uvicorn credgate.main:app --host 0.0.0.0 --port {port}"
        )
        print(f"Running FastAPI server: {server_command}")
        subprocess.run(server_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise


@app.command()
def generateopenapi(
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Where to write the schema")
    ] = Path("openapi.json"),
):
    """
    Generates the OpenAPI schema for the FastAPI application and saves it to a JSON file.
    """
    from credgate.core.utils import generate_openapi_json
    from credgate.main import app as fastapi_app

    output.write_text(generate_openapi_json(fastapi_app), encoding="utf-8")
    print(f"[green]OpenAPI schema generated at {output.name}[/green]")


@app.command()
def generatesecret(
    nbytes: Annotated[int, typer.Option("--bytes", "-b", min=32)] = 48,
):
    """Print a random value suitable for JWT_SECRET_KEY."""
    print(secrets.token_urlsafe(nbytes))


@app.callback()
def main(ctx: typer.Context):
    print(f"Executing the command: {ctx.invoked_subcommand}")


if __name__ == "__main__":
    app()
