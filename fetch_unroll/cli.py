"""fetch-unroll CLI — fetch a .tar.gz over HTTP(S) and unroll or save it.

Commands:
- unroll URL DEST (--strip-components N, --strip-when-alone, destination toggles)
- save URL DEST (--no-force-overwrite, destination toggles)

Both accept --max-redirects N and --timeout S for the HTTP fetch.
"""

from __future__ import annotations

import typer
from rich import print as rprint
from rich.markup import escape

from fetch_unroll.core import Save, Unroll
from fetch_unroll.errors import FetchUnrollError
from fetch_unroll.transport.http import fetch
from fetch_unroll.types import DEFAULT_MAX_REDIRECTS, SaveOptions, TransportOptions, UnrollOptions

app = typer.Typer(add_completion=False, help="Fetch and unroll .tar.gz archives")


def _fail(exc: FetchUnrollError) -> None:
    rprint(f"[red]{type(exc).__name__}:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)


@app.command()
def unroll(
    url: str = typer.Argument(..., help="http(s) URL of a .tar.gz archive"),
    dest: str = typer.Argument(..., help="Directory to extract into"),
    strip_components: int = typer.Option(
        0, "--strip-components", min=0, help="Leading path components to strip"
    ),
    strip_when_alone: bool = typer.Option(
        False, "--strip-when-alone", help="Strip no deeper than the common root of all entries"
    ),
    create_dest_path: bool = typer.Option(True, help="Create the destination if missing"),
    cleanup_dest_dir: bool = typer.Option(True, help="Empty an existing destination first"),
    fix_invalid_dest: bool = typer.Option(True, help="Replace a non-directory destination"),
    cleanup_on_error: bool = typer.Option(True, help="Roll back the destination on failure"),
    max_redirects: int = typer.Option(DEFAULT_MAX_REDIRECTS, "--max-redirects", min=0),
    timeout: float = typer.Option(60.0, "--timeout", min=0.1, help="HTTP timeout in seconds"),
) -> None:
    options = UnrollOptions(
        create_dest_path=create_dest_path,
        cleanup_dest_dir=cleanup_dest_dir,
        fix_invalid_dest=fix_invalid_dest,
        cleanup_on_error=cleanup_on_error,
        strip_components=strip_components,
        strip_when_alone=strip_when_alone,
    )
    transport = TransportOptions(max_redirects=max_redirects, timeout=timeout)
    try:
        Unroll(fetch(url, transport), options).to(dest)
    except FetchUnrollError as exc:
        _fail(exc)
    rprint(f"[green]Unrolled:[/green] {url} -> {dest}")


@app.command()
def save(
    url: str = typer.Argument(..., help="http(s) URL to download"),
    dest: str = typer.Argument(..., help="File to write"),
    force_overwrite: bool = typer.Option(True, help="Overwrite an existing file"),
    create_dest_path: bool = typer.Option(True, help="Create missing parent directories"),
    fix_invalid_dest: bool = typer.Option(True, help="Replace a directory at the destination"),
    cleanup_on_error: bool = typer.Option(True, help="Remove a partial file on failure"),
    max_redirects: int = typer.Option(DEFAULT_MAX_REDIRECTS, "--max-redirects", min=0),
    timeout: float = typer.Option(60.0, "--timeout", min=0.1, help="HTTP timeout in seconds"),
) -> None:
    options = SaveOptions(
        force_overwrite=force_overwrite,
        create_dest_path=create_dest_path,
        fix_invalid_dest=fix_invalid_dest,
        cleanup_on_error=cleanup_on_error,
    )
    transport = TransportOptions(max_redirects=max_redirects, timeout=timeout)
    try:
        Save(fetch(url, transport), options).to(dest)
    except FetchUnrollError as exc:
        _fail(exc)
    rprint(f"[green]Saved:[/green] {url} -> {dest}")


if __name__ == "__main__":
    app()
