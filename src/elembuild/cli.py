"""Command line interface for elembuild."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from elembuild.config import BuildConfig
from elembuild.errors import ElemBuildError
from elembuild.models import BuildIndex
from elembuild.pipeline import packer
from elembuild.pipeline.builder import INDEX_FILENAME, Builder
from elembuild.web.app import create_app

console = Console()
app = typer.Typer(help="elembuild - incremental builds for element source trees")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _make_config(source: Path, build_dir: Optional[Path], production: Optional[bool]) -> BuildConfig:
    config = BuildConfig(source_root=source, build_dir=build_dir, production=production)
    config.build_dir = config.resolve_build_dir(Path.cwd())
    return config


@app.command()
def build(
    source: Path = typer.Argument(
        Path("."), help="Source root to build.", exists=True, file_okay=False, resolve_path=True
    ),
    build_dir: Path = typer.Option(None, "--build-dir", help="Build output directory"),
    production: Optional[bool] = typer.Option(
        None, "--production/--development", help="Bundle assets per group"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Build a source tree into its build directory."""
    _setup_logging(verbose)
    config = _make_config(source, build_dir, production)

    try:
        builder = Builder(config)
        console.print(f"Building [bold]{builder.source_root}[/bold] into [bold]{builder.build_root}[/bold]...")
        stats = builder.build()
    except ElemBuildError as exc:
        console.print(f"[red]Build failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if stats.reused:
        console.print("[yellow]Existing production build reused.[/yellow]")
        return

    console.print(
        f"Built: {stats.built}, copied: {stats.copied}, up to date: {stats.skipped}"
    )
    console.print(
        f"Indexed {len(builder.index.files)} files, {len(builder.index.modules)} modules, "
        f"{len(set(builder.index.packages.values()))} bundles"
    )
    if verbose:
        for path in stats.written:
            console.print(f"  wrote {path}", soft_wrap=True)


@app.command()
def pack(
    files: List[str] = typer.Argument(..., help="Built files, relative to the build directory."),
    source: Path = typer.Option(Path("."), "--source", help="Source root"),
    build_dir: Path = typer.Option(None, "--build-dir", help="Build output directory"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the pack to this file"),
) -> None:
    """Pack already-built files into a single JSON document."""
    config = _make_config(source, build_dir, False)
    build_root = config.resolve_build_dir()

    missing = [name for name in files if not (build_root / name).is_file()]
    if missing:
        raise typer.BadParameter(f"Not built: {', '.join(missing)}")

    payload = packer.pack(build_root, files)
    if output is None:
        typer.echo(payload)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload, encoding="utf-8")
    console.print(f"Packed {len(files)} files into [bold]{output}[/bold]")


@app.command()
def show(
    source: Path = typer.Argument(Path("."), help="Source root"),
    build_dir: Path = typer.Option(None, "--build-dir", help="Build output directory"),
) -> None:
    """Display the build index of the last build."""
    config = _make_config(source, build_dir, False)
    index_path = config.resolve_build_dir() / INDEX_FILENAME
    if not index_path.exists():
        console.print("[yellow]No build index found, run 'build' first.[/yellow]")
        return

    index = BuildIndex.from_dict(json.loads(index_path.read_text(encoding="utf-8")))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File")
    table.add_column("Bundle")
    for name in index.files:
        table.add_row(name, index.packages.get(name, ""))
    console.print(table)

    if index.modules:
        modules = Table(show_header=True, header_style="bold magenta")
        modules.add_column("Module")
        modules.add_column("Entry")
        for name, main in sorted(index.modules.items()):
            modules.add_row(name, main)
        console.print(modules)


@app.command()
def serve(
    source: Path = typer.Argument(
        Path("."), help="Source root to serve.", exists=True, file_okay=False, resolve_path=True
    ),
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    build_dir: Path = typer.Option(None, "--build-dir", help="Build output directory"),
    production: Optional[bool] = typer.Option(
        None, "--production/--development", help="Serve a bundled production build"
    ),
    domain: Optional[str] = typer.Option(None, help="Domain handed to the loader"),
    max_age: int = typer.Option(0, "--max-age", help="Cache-Control max-age in seconds"),
) -> None:
    """Build on demand and serve the build directory."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter("uvicorn is not installed.") from exc

    _setup_logging(False)
    builder = Builder(_make_config(source, build_dir, production))
    try:
        web_app = create_app(builder, domain=domain, max_age=max_age)
    except ElemBuildError as exc:
        console.print(f"[red]Build failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"Serving {builder.build_root} on http://{host}:{port}")
    uvicorn.run(web_app, host=host, port=port, reload=False, log_level="info")
