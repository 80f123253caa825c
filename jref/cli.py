"""
CLI -- Command interface

    jref-ls serve [--stdio | --tcp --host HOST --port PORT]
    jref-ls check FILE...
    jref-ls symbols FILE
    jref-ls config

`serve` speaks the Language Server Protocol; stdout belongs to the
protocol, so logs always go to stderr or the configured log file.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config, ConfigManager
from .core.documents import path_to_uri
from .core.service import create_service

log = logging.getLogger(__name__)


def configure_logging(config: Config, level: Optional[str] = None) -> None:
    """Route logging to the configured file, or stderr."""
    level_name = (level or config.server.log_level).upper()
    options = {
        "level": getattr(logging, level_name, logging.INFO),
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    }
    if config.server.log_file:
        options["filename"] = config.server.log_file
    else:
        options["stream"] = sys.stderr
    logging.basicConfig(**options)


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"{path}: cannot read: {e}", file=sys.stderr)
        return None


def cmd_serve(args: argparse.Namespace, config: Config) -> int:
    from .server import create_server

    server = create_server(config)
    if args.tcp:
        log.info("Serving on %s:%d", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        server.start_io()
    return 0


def cmd_check(args: argparse.Namespace, config: Config) -> int:
    """Print syntax errors; exit 1 if any, 2 if a file could not be read."""
    service = create_service(config.analysis.max_file_size)
    status = 0
    for name in args.files:
        path = Path(name)
        text = _read(path)
        if text is None:
            status = 2
            continue
        result = service.open(path_to_uri(path), text)
        for diagnostic in result.diagnostics:
            start = diagnostic.range.start
            print(f"{path}:{start.line + 1}:{start.character + 1}: error: {diagnostic.message}")
        if result.diagnostics and status == 0:
            status = 1
    return status


def cmd_symbols(args: argparse.Namespace, config: Config) -> int:
    """Dump the symbol table of a file as JSON."""
    path = Path(args.file)
    text = _read(path)
    if text is None:
        return 2
    result = create_service(config.analysis.max_file_size).open(path_to_uri(path), text)
    print(json.dumps(result.symbol_table.to_dict(), indent=2))
    return 0


def cmd_config(args: argparse.Namespace, manager: ConfigManager) -> int:
    print(manager.display())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jref-ls",
        description="JREF language server -- JSON with cross-document $ref",
    )
    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("JREF_PROJECT_PATH", "."),
        help='Project directory for .jref/config.yaml (default: JREF_PROJECT_PATH or current)'
    )
    parser.add_argument(
        '--log-level',
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help='Override the configured log level'
    )
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'jref-ls {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    serve = subparsers.add_parser('serve', help='Run the language server')
    transport = serve.add_mutually_exclusive_group()
    transport.add_argument('--stdio', action='store_true', help='Use stdin/stdout (default)')
    transport.add_argument('--tcp', action='store_true', help='Listen on a TCP socket')
    serve.add_argument('--host', default='127.0.0.1', help='TCP host (default: 127.0.0.1)')
    serve.add_argument('--port', type=int, default=2087, help='TCP port (default: 2087)')

    check = subparsers.add_parser('check', help='Report syntax errors')
    check.add_argument('files', nargs='+', help='JREF files to check')

    symbols = subparsers.add_parser('symbols', help='Print the symbol table as JSON')
    symbols.add_argument('file', help='JREF file')

    subparsers.add_parser('config', help='Show effective configuration')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the jref-ls CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    manager = ConfigManager(Path(args.project))
    config = manager.load()
    configure_logging(config, args.log_level)

    if args.command == 'serve':
        return cmd_serve(args, config)
    if args.command == 'check':
        return cmd_check(args, config)
    if args.command == 'symbols':
        return cmd_symbols(args, config)
    if args.command == 'config':
        return cmd_config(args, manager)

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
