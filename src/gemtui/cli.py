"""Command line entry point: load configuration, then run the interaction loop."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from . import __version__
from .clients import PROVIDERS, build_client
from .config import ConfigError, configure_logging, load_config
from .loop import InteractionLoop
from .terminal import TerminalBackend

logger = logging.getLogger(__name__)

console = Console(stderr=True)

EXIT_OK = 0
EXIT_TERMINAL_ERROR = 1
EXIT_CONFIG_ERROR = 2


def _print_setup_guide() -> None:
    console.print(
        "\nSet these environment variables (or put them in a .env file):\n\n"
        "  GEMINI_API_KEY=your-api-key\n"
        "  GEMINI_MODEL=gemini-1.5-flash\n",
        highlight=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gemtui", description="Ask Gemini questions from the terminal.")
    parser.add_argument("--model", help="model name (default: $GEMINI_MODEL)")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), help="request backend (default: litellm)")
    parser.add_argument("--timeout", help="request timeout in seconds, 0 for none (default: 60)")
    parser.add_argument("--candidates", type=int, help="number of candidates to request (default: 1)")
    parser.add_argument("--tick-ms", type=float, help="redraw interval in milliseconds (default: 50)")
    parser.add_argument("--log-file", type=Path, help="write logs to this file")
    parser.add_argument("--log-level", help="log level (default: INFO)")
    parser.add_argument("--env-file", type=Path, help="read environment variables from this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        "model": args.model,
        "provider": args.provider,
        "timeout": args.timeout,
        "candidates": args.candidates,
        "tick_ms": args.tick_ms,
        "log_file": args.log_file,
        "log_level": args.log_level,
    }
    try:
        config = load_config(overrides, env_file=args.env_file)
        configure_logging(config)
        client = build_client(config)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}", highlight=False)
        _print_setup_guide()
        return EXIT_CONFIG_ERROR

    logger.info("starting gemtui %s with %r", __version__, config)
    backend = TerminalBackend()
    try:
        with backend.acquire():
            InteractionLoop(backend, client, tick_interval=config.tick_interval).run()
    except OSError as e:
        logger.exception("terminal I/O failed")
        console.print(f"[bold red]Terminal error:[/bold red] {e}", highlight=False)
        return EXIT_TERMINAL_ERROR
    return EXIT_OK
