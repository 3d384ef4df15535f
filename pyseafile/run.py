import logging
from pathlib import Path
from typing import Callable, TypeVar

import typer

from pyseafile.api.auth import AuthClient
from pyseafile.api.errors import SeafileError
from pyseafile.client import SeafileClient
from pyseafile.paths import ROOT, is_root

T = TypeVar("T")

app = typer.Typer(help="Work with the libraries of a Seafile server.")


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, help="Path of the session file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP traffic"),
):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _run(
    ctx: typer.Context,
    operation: Callable[[SeafileClient], T],
    refresh: bool = True,
) -> T:
    """Run operation against a client built from the session file.

    A new process starts with an empty library cache, so it is refreshed
    first unless the operation refreshes it itself.
    """
    try:
        with SeafileClient.from_config(ctx.obj["config"]) as client:
            if refresh:
                client.refresh_libraries()
            return operation(client)
    except SeafileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def login(
    ctx: typer.Context,
    server: str,
    username: str,
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    auth = AuthClient(server, config_path=ctx.obj["config"])
    try:
        auth.acquire_token(username, password)
        auth.save_session()
    except SeafileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    logging.info("Session saved to %s", auth.config_path)
    typer.echo(f"Logged in to {server}")


@app.command()
def ls(ctx: typer.Context, path: str = typer.Argument(ROOT)):
    listing = _run(ctx, lambda client: client.ls(path), refresh=not is_root(path))
    for entry_path, entry in listing.items():
        marker = "d" if entry.is_collection else "-"
        typer.echo(
            f"{marker} {entry.content_length:>12} {entry.display_name}\t{entry_path}"
        )


@app.command()
def mkdir(ctx: typer.Context, path: str, name: str):
    _run(ctx, lambda client: client.mkdir(path, name), refresh=not is_root(path))
    logging.info("Created %s in %s", name, path)


@app.command()
def rm(ctx: typer.Context, path: str):
    _run(ctx, lambda client: client.rm(path))
    logging.info("Removed %s", path)


@app.command()
def rename(
    ctx: typer.Context,
    path: str,
    new_name: str,
    file: bool = typer.Option(False, "--file", help="Rename a file, not a directory"),
):
    if file:
        _run(ctx, lambda client: client.rename_file(path, new_name))
    else:
        _run(ctx, lambda client: client.rename_dir(path, new_name))
    logging.info("Renamed %s to %s", path, new_name)


def _split_transfer(paths: list[str]) -> tuple[list[str], str]:
    if len(paths) < 2:
        typer.echo("Error: need at least one source and a destination", err=True)
        raise typer.Exit(code=2)
    return paths[:-1], paths[-1]


@app.command()
def mv(ctx: typer.Context, paths: list[str] = typer.Argument(..., help="SRC... DST")):
    sources, destination = _split_transfer(paths)
    _run(ctx, lambda client: client.move(sources, destination))
    logging.info("Moved %d item(s) to %s", len(sources), destination)


@app.command()
def cp(ctx: typer.Context, paths: list[str] = typer.Argument(..., help="SRC... DST")):
    sources, destination = _split_transfer(paths)
    _run(ctx, lambda client: client.copy(sources, destination))
    logging.info("Copied %d item(s) to %s", len(sources), destination)


@app.command()
def put(
    ctx: typer.Context,
    local: Path,
    directory: str,
    name: str | None = typer.Option(None, help="Remote file name"),
):
    if not local.is_file():
        typer.echo(f"Error: No file found at '{local}'", err=True)
        raise typer.Exit(code=1)
    file_id = _run(ctx, lambda client: client.upload(directory, local, name))
    typer.echo(file_id)


@app.command()
def get(ctx: typer.Context, path: str, local: Path):
    target = _run(ctx, lambda client: client.download(path, local))
    typer.echo(str(target))


if __name__ == "__main__":
    app()
