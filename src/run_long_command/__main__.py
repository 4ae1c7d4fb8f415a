"""CLI entry point for run-long-command."""

import argparse
import logging
import sys

from run_long_command.constants import PANE_INDEX, SESSION_NAME, WINDOW_INDEX


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Serve the run_long_command MCP tool over stdio. Commands run in the "
            "background and report back by typing into a tmux pane."
        )
    )
    parser.add_argument(
        "--session",
        "-s",
        default=SESSION_NAME,
        help=f"tmux session that receives notices (default: {SESSION_NAME})",
    )
    parser.add_argument(
        "--window",
        type=int,
        default=WINDOW_INDEX,
        help=f"Window index inside the session (default: {WINDOW_INDEX})",
    )
    parser.add_argument(
        "--pane",
        type=int,
        default=PANE_INDEX,
        help=f"Pane index inside the window (default: {PANE_INDEX})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level, written to stderr (default: INFO)",
    )
    parser.add_argument(
        "--event-log",
        default=None,
        metavar="PATH",
        help="Append command lifecycle events as JSON lines to PATH",
    )
    return parser.parse_args(argv)


def setup_logging(level: str):
    # stdout carries the MCP protocol, so diagnostics go to stderr only
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None):
    """Entry point for the CLI."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    from run_long_command.config import NotifierConfig
    from run_long_command.runner import CommandRunner
    from run_long_command.server import build_server
    from run_long_command.telemetry import configure_telemetry

    try:
        config = NotifierConfig(
            session_name=args.session,
            window_index=args.window,
            pane_index=args.pane,
        )
    except ValueError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(2)

    telemetry = configure_telemetry(args.event_log)
    server = build_server(CommandRunner(config=config, telemetry=telemetry))
    server.run()


if __name__ == "__main__":
    main()
