# Entry point for pilosactl: parses global options, picks the subcommand from a
# fixed table and maps failures to exit codes.
from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from collections.abc import Callable, Sequence
from typing import IO

from pilosactl import BUILD_TIME, __version__
from pilosactl.cli.commands import (
    BackupCommand,
    BenchCommand,
    CheckCommand,
    Command,
    CommandContext,
    ExportCommand,
    FlagParser,
    HelpRequested,
    ImportCommand,
    InspectCommand,
    RestoreCommand,
    SortCommand,
)
from pilosactl.core.config import PilosactlConfig, load_config
from pilosactl.core.errors import PilosactlError, UnknownCommandError
from pilosactl.interfaces.client import ClusterClient
from pilosactl.interfaces.codec import BitmapCodec

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

COMMANDS: dict[str, type[Command]] = {
    "import": ImportCommand,
    "export": ExportCommand,
    "sort": SortCommand,
    "backup": BackupCommand,
    "restore": RestoreCommand,
    "inspect": InspectCommand,
    "check": CheckCommand,
    "bench": BenchCommand,
}

USAGE = textwrap.dedent("""\
    Pilosactl is a tool for interacting with a pilosa server.

    Usage:

    \tpilosactl [--config FILE] [-v] command [arguments]

    The commands are:

    \timport     imports data from a CSV file
    \texport     exports data to a CSV file
    \tsort       sorts a data file for optimal import speed
    \tbackup     backs up a frame to an archive file
    \trestore    restores a frame from an archive file
    \tinspect    inspects fragment data files
    \tcheck      performs a consistency check of data files
    \tbench      benchmarks operations

    Use the "-h" flag with any command for more information.
    """)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def build_parser() -> FlagParser:
    p = FlagParser(prog="pilosactl", add_help=False, allow_abbrev=False)
    p.add_argument("-h", "-help", "--help", dest="help", action="store_true")
    p.add_argument("--config", default=None, help="TOML config file")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    p.add_argument("command", nargs="?", default="")
    p.add_argument("args", nargs=argparse.REMAINDER)
    return p


def setup_logging(level: str | int, stream: IO[str]) -> None:
    """Send log records to the diagnostic stream."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=stream)


class Main:
    """Main program execution.

    Args:
        stdin, stdout, stderr: Standard streams handed to commands
        config: Preloaded configuration; read from --config/env when None
        codec: Bitmap codec overriding the configured one
        client_factory: Cluster client factory overriding the configured one
    """

    def __init__(
        self,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
        config: PilosactlConfig | None = None,
        codec: BitmapCodec | None = None,
        client_factory: Callable[[str], ClusterClient] | None = None,
    ):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.config = config
        self.codec = codec
        self.client_factory = client_factory
        self.cmd: Command | None = None

    def parse_flags(self, argv: Sequence[str]) -> Command:
        """Parse global options and the subcommand's flags."""
        ns = build_parser().parse_args(list(argv))
        if ns.help or ns.command in ("", "help"):
            raise HelpRequested(USAGE)

        if self.config is None:
            self.config = load_config(ns.config)
        level = logging.DEBUG if ns.verbose else self.config.log_level.upper()
        setup_logging(level, self.stderr)

        cmd_cls = COMMANDS.get(ns.command)
        if cmd_cls is None:
            raise UnknownCommandError(ns.command)

        ctx = CommandContext(
            config=self.config,
            stdin=self.stdin,
            stdout=self.stdout,
            stderr=self.stderr,
            codec=self.codec,
            client_factory=self.client_factory,
        )
        self.cmd = cmd_cls(ctx)
        self.cmd.parse_flags(ns.args)
        return self.cmd

    def run(self, argv: Sequence[str]) -> int:
        """Parse ``argv``, execute the command and return the exit code."""
        self.stderr.write(f"pilosactl {__version__}, build time {BUILD_TIME}\n")

        try:
            cmd = self.parse_flags(argv)
        except HelpRequested as e:
            self.stderr.write(e.usage.rstrip("\n") + "\n\n")
            return EXIT_USAGE
        except PilosactlError as e:
            self.stderr.write(f"{e}\n")
            return EXIT_USAGE

        try:
            cmd.run()
        except Exception as e:
            logger.debug(f"{cmd.name} failed", exc_info=True)
            self.stderr.write(f"{e}\n")
            return EXIT_FAILURE
        return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    return Main().run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
