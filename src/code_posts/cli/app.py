import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from code_posts.config import Settings
from code_posts.core.pipeline import BatchReport, UnitStatus, run_batch
from code_posts.core.render import FULL_DOCUMENT
from code_posts.core.tags import TagRegistry, parse_tag_spec
from code_posts.errors import TagRegistryError
from code_posts.publish.files import HtmlFileWriter, discover_files, read_source
from code_posts.publish.markdown_adapter import MarkdownItConverter

app = typer.Typer(
    name="code-posts",
    help="Code Posts CLI — turn the doc comments of TypeScript files into HTML posts.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_registry(tag_specs: list[str] | None, settings: Settings) -> TagRegistry:
    try:
        custom = [*settings.custom_tags, *(parse_tag_spec(spec) for spec in tag_specs or [])]
        return TagRegistry.with_builtins(custom)
    except TagRegistryError as exc:
        raise typer.BadParameter(str(exc), param_hint="--tag") from exc


def _print_report(report: BatchReport) -> None:
    for result in report.results:
        if result.status == UnitStatus.FAILED:
            console.print(f"[red]Failed[/red] {result.path}: {result.error}")
        elif result.status == UnitStatus.EMPTY:
            console.print(f"[yellow]No doc comments[/yellow] {result.path} -> {result.output_path}")
        else:
            console.print(f"[green]Converted[/green] {result.path} -> {result.output_path}")
    console.print(
        f"{report.succeeded} of {len(report.results)} file(s) converted "
        f"({report.empty} without doc comments, {report.failed} failed)"
    )


@app.command()
def posts(
    directory: Annotated[Path, typer.Argument(help="Directory whose top-level source files are converted.")] = Path(
        "."
    ),
    extension: Annotated[
        list[str] | None, typer.Option("--extension", "-e", help="File extension to include (repeatable).")
    ] = None,
    full: Annotated[bool, typer.Option("--full", help="Render every section, not only the summary.")] = False,
    tag: Annotated[
        list[str] | None,
        typer.Option("--tag", help="Custom tag definition '@name:inline|block|modifier[:multiple]' (repeatable)."),
    ] = None,
    workers: Annotated[int | None, typer.Option(min=1, help="Maximum number of files processed at once.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress and diagnostics.")] = False,
) -> None:
    """Write a <file>.html post for every source file in DIRECTORY."""
    settings = Settings.from_env().override(
        extensions=tuple(extension) if extension else None,
        render_targets=FULL_DOCUMENT if full else None,
        max_workers=workers,
        log_level="INFO" if verbose else None,
    )
    _configure_logging(settings.log_level)
    registry = _build_registry(tag, settings)

    try:
        paths = discover_files(directory, settings.extensions)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    if not paths:
        console.print(f"No {', '.join(settings.extensions)} files found in {directory}")
        return

    report = asyncio.run(
        run_batch(
            paths,
            registry,
            settings,
            reader=read_source,
            converter=MarkdownItConverter(),
            writer=HtmlFileWriter(settings.output_suffix),
        )
    )
    _print_report(report)
    if report.all_failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()
