"""optview CLI."""

from __future__ import annotations

import json
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

import click

from optview import __version__
from optview.config import OptviewConfig, find_config, load_config, parse_address
from optview.errors import ConfigError, NotFound, SourceReadError, ViewRenderer
from optview.index import AnnotationIndex
from optview.source import read_raw_log


@dataclass
class Options:
    config_path: str | None
    base_dir: str | None
    fold_case: bool | None


def _load_options(options: Options) -> OptviewConfig:
    if options.config_path is not None:
        config = load_config(Path(options.config_path))
    else:
        try:
            config = load_config(find_config())
        except FileNotFoundError:
            config = OptviewConfig()
    if options.base_dir is not None:
        config.index.base_dir = options.base_dir
    if options.fold_case is not None:
        config.index.fold_case = options.fold_case
    return config


def _build_index(options: Options, log: str) -> tuple[OptviewConfig, AnnotationIndex]:
    """Read the whole log and index it; nothing is served before this returns."""
    try:
        config = _load_options(options)
    except (ConfigError, tomllib.TOMLDecodeError) as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

    try:
        raw = read_raw_log(log)
    except OSError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

    index = AnnotationIndex.build(
        raw,
        config.index.base_dir,
        normalize=config.index.path_policy(),
        sentinel=config.index.sentinel,
    )
    return config, index


log_argument = click.argument("log", default="-", type=click.Path(allow_dash=True))


@click.group()
@click.version_option(__version__, prog_name="optview")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to optview.toml (default: search upward).")
@click.option("--base-dir", type=click.Path(file_okay=False),
              help="Directory relative log paths are resolved against.")
@click.option("--fold-case/--no-fold-case", default=None,
              help="Lower-case file paths (default: on for Windows only).")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, base_dir: str | None, fold_case: bool | None) -> None:
    """Browse compiler optimizer diagnostics next to the source they annotate."""
    ctx.obj = Options(config_path, base_dir, fold_case)


@main.command()
@log_argument
@click.option("--http", "http_addr", default=None, help="Listen address, e.g. :8080.")
@click.pass_obj
def serve(options: Options, log: str, http_addr: str | None) -> None:
    """Serve the annotated source viewer over HTTP."""
    from optview.server import serve as run_server

    config, index = _build_index(options, log)
    addr = http_addr or config.server.http
    try:
        host, port = parse_address(addr)
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

    stats = index.stats()
    click.echo(f"indexed {stats.annotations} notes in {stats.files} files", err=True)
    click.echo(f"Listening on {addr}")
    try:
        run_server(index, host, port)
    except OSError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@main.command()
@log_argument
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_obj
def files(options: Options, log: str, as_json: bool) -> None:
    """List the files referenced by the log."""
    _, index = _build_index(options, log)
    entries = index.list_files()
    if as_json:
        click.echo(json.dumps([{"path": e.path, "absPath": e.abs_path} for e in entries], indent=2))
        return
    for entry in entries:
        notes = len(index.get(entry.path))
        click.echo(f"{entry.path} -> {entry.abs_path} ({notes} notes)")


@main.command()
@click.argument("log", type=click.Path(allow_dash=True))
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Print the view as JSON.")
@click.option("--only-annotated", is_flag=True, help="Only print lines that have notes.")
@click.option("--context", "context_lines", type=int, default=0, help="Lines of context with --only-annotated.")
@click.option("--color/--no-color", default=None, help="Colorize output (default: when on a terminal).")
@click.pass_obj
def show(
    options: Options,
    log: str,
    path: str,
    as_json: bool,
    only_annotated: bool,
    context_lines: int,
    color: bool | None,
) -> None:
    """Print one file with its notes under each line."""
    _, index = _build_index(options, log)
    try:
        view = index.merged_view(index.normalize(path))
    except (NotFound, SourceReadError) as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(view.to_dict(), indent=2))
        return

    if color is None:
        color = sys.stdout.isatty()
    renderer = ViewRenderer(color=color, only_annotated=only_annotated, context=context_lines)
    click.echo(renderer.render(view), color=color)


@main.command()
@click.argument("log", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def lsp(options: Options, log: str) -> None:
    """Start the optview language server on stdio."""
    from optview.lsp import main as lsp_main

    _, index = _build_index(options, log)
    lsp_main(index)
