"""Command-line interface for quarryreader."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import structlog
from pydantic import ValidationError
from rich.console import Console

from quarryreader import __version__
from quarryreader.config import Settings, settings
from quarryreader.observability import configure_logging
from quarryreader.readability.dom import load
from quarryreader.readability.engine import Readability
from quarryreader.readability.errors import ParseAbortedError
from quarryreader.readability.readerable import is_probably_readerable

console = Console(stderr=True)
logger = structlog.get_logger(__name__)


def _load_settings(config_path: Optional[Path]) -> Settings:
    if config_path is None:
        return settings.model_copy()
    return Settings.from_yaml(config_path)


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8", errors="replace")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides the configuration file)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """quarryreader - extract the main article from HTML pages."""
    ctx.ensure_object(dict)
    try:
        loaded = _load_settings(Path(config) if config else None)
    except ValidationError as e:
        console.print(f"Invalid configuration: {e}", style="red", markup=False)
        sys.exit(2)

    if log_level:
        loaded = loaded.model_copy(update={"monitoring": loaded.monitoring.model_copy(update={"log_level": log_level})})
    configure_logging(loaded.monitoring)
    ctx.obj["settings"] = loaded


@cli.command()
@click.argument("source", type=click.Path(allow_dash=True))
@click.option("--url", help="Document URL, used to resolve relative links")
@click.option(
    "--format",
    "output_format",
    default="html",
    type=click.Choice(["html", "text", "json"]),
    help="Output format",
)
@click.option("--char-threshold", type=int, help="Minimum article length before retrying")
@click.option("--nb-top-candidates", type=int, help="Candidates tried per pass")
@click.option("--max-elems", type=int, help="Abort documents with more elements (0 disables)")
@click.option("--keep-classes", is_flag=True, default=None, help="Keep every class attribute")
@click.option("--preserve-class", "preserve_classes", multiple=True, help="Class to keep (repeatable)")
@click.option("--video-regex", help="Regex of embed URLs to keep")
@click.option("--debug", is_flag=True, default=None, help="Log every extraction decision")
@click.pass_context
def parse(
    ctx: click.Context,
    source: str,
    url: Optional[str],
    output_format: str,
    char_threshold: Optional[int],
    nb_top_candidates: Optional[int],
    max_elems: Optional[int],
    keep_classes: Optional[bool],
    preserve_classes: Tuple[str, ...],
    video_regex: Optional[str],
    debug: Optional[bool],
) -> None:
    """Extract the article of SOURCE (a file, or - for stdin)."""
    loaded: Settings = ctx.obj["settings"]

    overrides: Dict[str, Any] = {
        "char_threshold": char_threshold,
        "nb_top_candidates": nb_top_candidates,
        "max_elems_to_parse": max_elems,
        "keep_classes": keep_classes,
        "allowed_video_regex": video_regex,
        "debug": debug,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if preserve_classes:
        overrides["classes_to_preserve"] = frozenset(preserve_classes)

    try:
        document = load(_read_input(source), url=url)
        article = Readability(document, loaded.parse, heuristics=loaded.heuristics, **overrides).parse()
    except ParseAbortedError as e:
        console.print(str(e), style="red", markup=False)
        sys.exit(1)
    except ValidationError as e:
        console.print(f"Invalid option: {e}", style="red", markup=False)
        sys.exit(2)

    if output_format == "json":
        click.echo(json.dumps(article.as_dict(), indent=2, ensure_ascii=False))
    elif output_format == "text":
        click.echo(article.text_content.strip())
    else:
        click.echo(article.content)


@cli.command()
@click.argument("source", type=click.Path(allow_dash=True))
@click.option("--min-score", default=20.0, show_default=True, help="Score the paragraphs must exceed")
@click.option("--min-content-length", default=140, show_default=True, help="Shortest paragraph that counts")
def check(source: str, min_score: float, min_content_length: int) -> None:
    """Report whether SOURCE probably holds an article. Exits 1 when it does not."""
    document = load(_read_input(source))
    readerable = is_probably_readerable(document, min_score=min_score, min_content_length=min_content_length)
    logger.debug("Readerable check", source=source, readerable=readerable)
    click.echo("readerable" if readerable else "not readerable")
    if not readerable:
        sys.exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
