"""Command-line interface for medium2md."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core.importer import MediumImporter
from .logging_config import setup_logging
from .models.config import ImporterConfig
from .models.events import EventType, ImportEvent


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="medium2md",
        description="Convert Medium posts and drafts to Markdown with front-matter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a published post into ./content/<slug>/index.md
  medium2md https://medium.com/@someone/hello-world-1a2b3c4d5e6f

  # Convert several posts into a custom folder
  medium2md URL1 URL2 --content-folder site/content/blog

  # Convert drafts from a Medium export
  medium2md --draft export/posts/draft_Hello-1a2b3c.html
        """,
    )

    parser.add_argument(
        "urls",
        nargs="*",
        metavar="URL",
        help="Canonical URLs of published posts",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--draft",
        "-d",
        action="append",
        type=Path,
        default=[],
        metavar="FILE",
        help="HTML file of a local draft (repeatable)",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file",
    )

    parser.add_argument(
        "--content-folder",
        "-o",
        type=Path,
        default=None,
        help="Folder receiving one directory per post (default: ./content)",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Timeout for each embed and image download",
    )
    network_group.add_argument(
        "--rate-limit",
        "-r",
        type=float,
        default=None,
        help="Seconds between requests to the same host",
    )
    network_group.add_argument(
        "--proxy",
        type=str,
        metavar="URL",
        help="Proxy URL",
    )
    network_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output",
    )

    return parser


def build_config(args: argparse.Namespace) -> ImporterConfig:
    """Merge the config file (if any) with command-line overrides."""
    base = ImporterConfig.from_yaml_file(args.config) if args.config else ImporterConfig()
    data = base.model_dump()

    if args.content_folder:
        data["content_folder"] = args.content_folder

    network = data["network"]
    if args.timeout is not None:
        network["embed_timeout"] = args.timeout
        network["asset_timeout"] = args.timeout
    if args.rate_limit is not None:
        network["rate_limit"] = args.rate_limit
    if args.proxy:
        network["proxy"] = args.proxy
    if args.user_agent:
        network["user_agent"] = args.user_agent

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return ImporterConfig.model_validate(data)


def run_importer(args: argparse.Namespace) -> int:
    """Run the importer with given arguments."""
    console = Console()

    if not args.urls and not args.draft:
        console.print("[red]Error:[/red] Please provide a post URL or --draft FILE")
        return 1

    try:
        config = build_config(args)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(config.log_level, log_file=config.log_file, console=console)

    async def run() -> int:
        if not args.quiet:
            console.print(f"[bold blue]medium2md[/bold blue] v{__version__}")
            console.print(f"Content folder: {config.content_folder}")
            console.print()

        failures = 0
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
            disable=args.quiet,
        ) as progress:
            task = progress.add_task("Starting...", total=None)

            def on_event(event: ImportEvent) -> None:
                if event.type == EventType.FETCH_STARTED:
                    progress.update(task, description=f"[cyan]Fetching {event.source}")
                elif event.type == EventType.POST_RENDERED:
                    progress.update(task, description=f"[cyan]Resolving embeds for {event.slug}")
                elif event.type == EventType.POST_SKIPPED and not args.quiet:
                    console.print(f"[yellow]Skipped:[/yellow] {event.source} - {event.message}")
                elif event.type == EventType.POST_SAVED and not args.quiet:
                    console.print(f"[green]Saved:[/green] {event.output_path}")
                elif event.type == EventType.FAILED:
                    console.print(f"[red]Failed:[/red] {event.source} - {event.error}")

            async with MediumImporter(config, on_event=on_event) as importer:
                outcomes = await importer.import_posts(args.urls)
                failures += sum(1 for outcome in outcomes if isinstance(outcome, Exception))

                for path in args.draft:
                    try:
                        await importer.import_draft_file(path)
                    except FileNotFoundError:
                        failures += 1
                        console.print(f"[red]Failed:[/red] {path} - no such file")
                    except Exception:
                        # Already reported through the FAILED event
                        failures += 1
                        if args.verbose:
                            console.print_exception()

                embeds = importer.resolver.stats()

        stats = importer.stats
        if not args.quiet:
            console.print()
            console.print("[bold]Results:[/bold]")
            console.print(f"  Posts saved: {stats.posts_saved}")
            console.print(f"  Posts skipped: {stats.posts_skipped}")
            console.print(f"  Posts failed: {stats.posts_failed}")
            console.print(f"  Images saved: {stats.assets_saved}")
            console.print(f"  Embeds resolved: {embeds['resolved']}")
            console.print(f"  Embeds dropped: {embeds['errored']}")

        return 0 if failures == 0 else 1

    return asyncio.run(run())


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_importer(args)


if __name__ == "__main__":
    sys.exit(main())
