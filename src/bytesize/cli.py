"""Typer CLI for Byte-Size AI: serve, models and countdown commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from bytesize.config import Config

app = typer.Typer(
    name="bytesize",
    help="Byte-Size AI: personal multi-modal chat console backend.",
    invoke_without_command=True,
)


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    host: Annotated[str | None, typer.Option("--host", help="Interface to bind")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Port to listen on")] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Directory holding the SQLite chat state"),
    ] = None,
) -> None:
    """Start the HTTP API."""
    if ctx.invoked_subcommand is not None:
        return
    _configure_logging()
    config = Config.from_env(host=host, port=port, data_dir=data_dir)

    import uvicorn

    from bytesize.api.app import create_app

    uvicorn.run(create_app(config), host=config.host, port=config.port)


@app.command()
def models(
    capability: Annotated[
        str, typer.Option("--capability", help="none, image or video")
    ] = "none",
) -> None:
    """Print the ranked model catalog."""
    _configure_logging()
    config = Config.from_env()
    asyncio.run(_do_list_models(config, capability))


async def _do_list_models(config: Config, capability: str) -> None:
    """Fetch, filter and print the catalog."""
    from bytesize.data.upstream import OpenRouterClient
    from bytesize.services.catalog import CatalogService, format_price

    client = OpenRouterClient(config)
    try:
        result = await CatalogService(client).list_models(capability)
    finally:
        await client.aclose()

    if isinstance(result, Err):
        typer.echo(f"Error: {result.err_value}", err=True)
        raise typer.Exit(code=1)
    for model in result.ok_value:
        typer.echo(f"{model.id}\t{format_price(model.pricing)}\t{model.name}")
    typer.echo(f"\n{len(result.ok_value)} models")


@app.command()
def countdown(
    prompt: Annotated[str, typer.Argument(help="Prompt text to evaluate")],
    date: Annotated[
        str | None, typer.Option("--date", help="Effective ISO timestamp (default: now)")
    ] = None,
) -> None:
    """Evaluate the local Christmas countdown without contacting any model."""
    from bytesize.services.countdown import christmas_countdown, resolve_effective_time

    reply = christmas_countdown(prompt, resolve_effective_time(date))
    if reply is None:
        typer.echo("Prompt is not a Christmas countdown question.", err=True)
        raise typer.Exit(code=1)
    typer.echo(reply)
