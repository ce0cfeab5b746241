#!/usr/bin/env python3
"""
VGM Convert - Command Line Interface

Converts a folder of game-audio containers into tagged Apple Lossless files
in a fresh numbered output directory.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich import box
from rich.markup import escape

from .. import __version__
from ..core.config_manager import ConfigManager, ConverterConfig
from ..core.orchestrator import ConversionPipeline, FileOutcome, RunSummary
from ..metadata.tagger import build_base_tags
from ..utils.error_handler import handle_user_error
from ..utils.manifest import write_manifest
from ..utils.tool_checker import ToolChecker
from .prompts import collect_run_inputs

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper())

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="vgm-convert",
        description="Convert game audio containers to tagged Apple Lossless files",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"VGM Convert v{__version__}"
    )

    # Input/Output arguments
    parser.add_argument(
        "input_dir",
        nargs="?",
        help="Folder containing .brstm/.bfstm/.bcstm/.bwav/.ast/.nus3audio files"
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        help="Output root; each run gets a numbered subdirectory (default: ./out)"
    )

    # Tags
    parser.add_argument("--album", type=str, help="Album name")
    parser.add_argument("--artist", type=str, help="Artist name")
    parser.add_argument("--genre", type=str, help="Genre")
    parser.add_argument("--year", type=str, help="Release year")
    parser.add_argument("--comment", type=str, help="Comment tag")
    parser.add_argument("--cover", type=str, help="Cover image (JPEG or PNG) embedded into every file")

    # Configuration
    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Configuration file path (JSON format)"
    )

    parser.add_argument(
        "--max-workers",
        type=int,
        help="Number of files converted in parallel"
    )

    parser.add_argument(
        "--no-manifest",
        action="store_true",
        help="Do not write metadata.json into the run directory"
    )

    parser.add_argument(
        "--report",
        type=str,
        help="Write the run summary as JSON to this file"
    )

    parser.add_argument(
        "--check-tools",
        action="store_true",
        help="Report whether vgmstream-cli and ffmpeg are available, then exit"
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show technical details for errors"
    )

    # Interactive mode
    parser.add_argument(
        "-i", "--interactive",
        action="store_true",
        help="Prompt for any value not given on the command line"
    )

    return parser


def build_cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command line flags into config overrides."""
    overrides: Dict[str, Any] = {}
    if args.output:
        overrides.setdefault('output', {})['output_root'] = args.output
    if args.no_manifest:
        overrides.setdefault('output', {})['write_manifest'] = False
    if args.max_workers is not None:
        overrides.setdefault('processing', {})['max_workers'] = args.max_workers
    if args.log_level:
        overrides.setdefault('ui', {})['log_level'] = args.log_level
    if args.verbose:
        overrides.setdefault('ui', {})['verbose_errors'] = True
    return overrides


def load_configuration(args: argparse.Namespace, manager: Optional[ConfigManager] = None) -> ConverterConfig:
    """
    Load and validate the configuration for this invocation.

    Raises:
        ValueError: If the configuration has issues
    """
    manager = manager or ConfigManager()
    config = manager.load_config(config_file=args.config, cli_overrides=build_cli_overrides(args))
    issues = manager.validate_config(config)
    if issues:
        raise ValueError("; ".join(issues))
    return config


def resolve_run_inputs(args: argparse.Namespace, console: Console) -> Dict[str, str]:
    """Collect input folder and tags from arguments, prompting when needed."""
    known = {
        'input_dir': args.input_dir,
        'album': args.album,
        'artist': args.artist,
        'genre': args.genre,
        'year': args.year,
        'cover': args.cover,
    }
    if args.interactive or not args.input_dir:
        return collect_run_inputs(known, console=console)
    return {key: value or "" for key, value in known.items()}


def print_tool_status(console: Console, checker: ToolChecker) -> bool:
    """Print a tool status table; return True when everything is available"""
    table = Table(title="Tool Availability", box=box.SIMPLE)
    table.add_column("Tool")
    table.add_column("Command")
    table.add_column("Status")
    table.add_column("Version / Install")

    all_available = True
    for info in checker.get_tool_status_report().values():
        available = info['status'] == "available"
        all_available = all_available and available
        table.add_row(
            info['name'],
            info['command'],
            "[green]available[/]" if available else "[red]missing[/]",
            info['version'] if available else info['install_cmd'],
        )

    console.print(table)
    return all_available


def display_summary(console: Console, summary: RunSummary) -> None:
    """Print the per-run outcome summary."""
    console.print(
        f"\n✅ Converted {summary.succeeded}/{summary.total} files "
        f"into [bold]{escape(str(summary.run_directory.path))}[/] in {summary.duration:.2f}s"
    )
    if summary.untagged:
        console.print(f"⚠️  {summary.untagged} files were converted but could not be tagged")

    if summary.failures:
        table = Table(title=f"{summary.failed} failed", box=box.SIMPLE)
        table.add_column("File")
        table.add_column("Stage")
        table.add_column("Reason", overflow="fold")
        for outcome in summary.failures:
            table.add_row(escape(outcome.name), outcome.failed_stage or "-", escape(outcome.error or "-"))
        console.print(table)


def run_conversion(args: argparse.Namespace, config: ConverterConfig, console: Console) -> int:
    """Run one conversion and return the exit code."""
    inputs = resolve_run_inputs(args, console)

    ToolChecker(config.tools).check_and_raise_if_missing()

    base_tags = build_base_tags(
        album=inputs['album'],
        artist=inputs['artist'],
        genre=inputs['genre'],
        date=inputs['year'],
        comment=args.comment,
    )

    pipeline = ConversionPipeline(
        input_dir=Path(inputs['input_dir']).expanduser(),
        output_root=Path(config.output.output_root).expanduser(),
        base_tags=base_tags,
        cover_path=Path(inputs['cover']).expanduser() if inputs['cover'] else None,
        config=config,
    )
    run_directory = pipeline.prepare()
    console.print(f"[Converter] {len(pipeline.input_files)} files | Output path: {run_directory.path}", markup=False)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Converting", total=len(pipeline.input_files))

        def on_file_done(outcome: FileOutcome) -> None:
            progress.update(task, advance=1, description=f"Converting ({escape(outcome.name)})")

        summary = pipeline.run(progress_callback=on_file_done)

    if config.output.write_manifest:
        write_manifest(run_directory.path, base_tags)

    if args.report:
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(summary.to_dict(), f, indent=2)
        console.print(f"📋 Report saved to: {args.report}")

    display_summary(console, summary)
    return EXIT_OK if summary.failed == 0 else EXIT_PARTIAL


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console()

    try:
        config = load_configuration(args)
    except (OSError, ValueError) as e:
        setup_logging(args.log_level or "INFO", args.log_file)
        console.print(handle_user_error(e, {"config_validation": True}, verbose=args.verbose), markup=False)
        return EXIT_ERROR

    setup_logging(config.ui.log_level, args.log_file)
    logger = logging.getLogger(__name__)
    verbose = config.ui.verbose_errors

    if args.check_tools:
        return EXIT_OK if print_tool_status(console, ToolChecker(config.tools)) else EXIT_ERROR

    logger.info(f"VGM Convert v{__version__} starting...")

    try:
        return run_conversion(args, config, console)
    except KeyboardInterrupt:
        console.print("\n⚠️  Operation cancelled by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        console.print(handle_user_error(e, verbose=verbose), markup=False)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
