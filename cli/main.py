import asyncio

import typer
import uvicorn

from backend.app.config import settings
from backend.app.db import Database

app = typer.Typer(help="Feature Voting - submit and rank feature requests")


@app.command()
def start(
    host: str = typer.Option(settings.host, help="Interface to bind."),
    port: int = typer.Option(settings.port, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Restart on code changes."),
) -> None:
    """Start the API server."""
    typer.echo(f"Starting Feature Voting on {host}:{port}...")
    uvicorn.run(
        "backend.app.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db(
    database_url: str = typer.Option(
        None, "--database-url", help="Override the configured database URL."
    ),
) -> None:
    """Create the features/votes schema and exit."""
    url = database_url or settings.sqlalchemy_url

    async def _run() -> None:
        database = Database(url)
        try:
            await database.create_all()
        finally:
            await database.dispose()

    asyncio.run(_run())
    typer.echo("Database initialised.")


if __name__ == "__main__":
    app()
