# Subcommands for pilosactl. Each command parses its own flags and runs against
# a shared CommandContext holding config, streams and collaborators.
from __future__ import annotations

import argparse
import logging
import os
import random
import textwrap
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import IO

from pilosactl.components.checker import CheckRunner
from pilosactl.components.classifier import classify
from pilosactl.components.collaborators import load_client, load_codec
from pilosactl.components.importer import Importer
from pilosactl.components.inspector import format_elapsed, inspect_file
from pilosactl.components.sorter import sort_file
from pilosactl.core.config import PilosactlConfig
from pilosactl.core.errors import FileIOError, UsageError
from pilosactl.core.types import FileClassification
from pilosactl.interfaces.client import ClusterClient
from pilosactl.interfaces.codec import BitmapCodec
from pilosactl.render.report_renderer import render_inspect

logger = logging.getLogger(__name__)


class HelpRequested(UsageError):
    """Raised when -h is passed; carries the usage text to print."""

    def __init__(self, usage: str):
        super().__init__(usage)
        self.usage = usage


class FlagParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting."""

    def error(self, message: str):
        raise UsageError(message)


@dataclass
class CommandContext:
    config: PilosactlConfig
    stdin: IO[str]
    stdout: IO[str]
    stderr: IO[str]
    codec: BitmapCodec | None = None
    client_factory: Callable[[str], ClusterClient] | None = None

    def get_codec(self) -> BitmapCodec:
        if self.codec is None:
            self.codec = load_codec(self.config)
        return self.codec

    def get_client(self, host: str) -> ClusterClient:
        if self.client_factory is not None:
            return self.client_factory(host)
        return load_client(self.config, host)


class Command:
    """Base class for subcommands."""

    name = ""
    usage = ""

    def __init__(self, ctx: CommandContext):
        self.ctx = ctx

    def build_parser(self) -> FlagParser:
        p = FlagParser(prog=f"pilosactl {self.name}", add_help=False, allow_abbrev=False)
        p.add_argument("-h", "-help", "--help", dest="help", action="store_true")
        return p

    def parse_flags(self, args: Sequence[str]) -> None:
        ns = self.build_parser().parse_args(list(args))
        if ns.help:
            raise HelpRequested(self.usage)
        self.configure(ns)

    def configure(self, ns: argparse.Namespace) -> None:
        pass

    def run(self) -> None:
        raise NotImplementedError


def _add_cluster_flags(p: FlagParser, default_host: str) -> None:
    p.add_argument("-host", "--host", default=default_host, help="host:port")
    p.add_argument("-d", "--database", default="", help="database")
    p.add_argument("-f", "--frame", default="", help="frame")


def _require_db_frame(db: str, frame: str) -> None:
    if not db:
        raise UsageError("database required")
    if not frame:
        raise UsageError("frame required")


class ImportCommand(Command):
    name = "import"
    usage = textwrap.dedent("""\
        usage: pilosactl import -host HOST -d database -f frame [-buffer-size N] PATHS...

        Bulk imports one or more CSV files to a host's database and frame. The bits
        of the CSV file are grouped by slice and sent in import order.

        The format of the CSV file is:

        \tBITMAPID,PROFILEID[,TIMESTAMP]

        The file should contain no headers.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        _add_cluster_flags(p, self.ctx.config.host)
        p.add_argument(
            "-buffer-size", "--buffer-size", dest="buffer_size", type=int,
            default=self.ctx.config.import_buffer_size, help="bits to buffer before sending",
        )
        p.add_argument("paths", nargs="*")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        if not ns.paths:
            raise UsageError("path required")
        if ns.buffer_size <= 0:
            raise UsageError("buffer size must be positive")
        self.host = ns.host
        self.database = ns.database
        self.frame = ns.frame
        self.buffer_size = ns.buffer_size
        self.paths = ns.paths

    def run(self) -> None:
        _require_db_frame(self.database, self.frame)
        client = self.ctx.get_client(self.host)
        importer = Importer(client, self.database, self.frame, self.buffer_size)
        for path in self.paths:
            importer.import_path(path)
        logger.info(f"Imported {importer.imported} bits")


class ExportCommand(Command):
    name = "export"
    usage = textwrap.dedent("""\
        usage: pilosactl export -host HOST -d database -f frame -o OUTFILE

        Bulk exports a fragment to a CSV file. If the OUTFILE is not specified then
        the output is written to STDOUT.

        The format of the CSV file is:

        \tBITMAPID,PROFILEID

        The file does not contain any headers.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        _add_cluster_flags(p, self.ctx.config.host)
        p.add_argument("-o", "--output", default="", help="output file")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        self.host = ns.host
        self.database = ns.database
        self.frame = ns.frame
        self.path = ns.output

    def run(self) -> None:
        _require_db_frame(self.database, self.frame)
        client = self.ctx.get_client(self.host)
        max_slices = client.max_slice_by_database()

        if not self.path:
            self._export(client, max_slices.get(self.database, 0), self.ctx.stdout)
            return

        try:
            f = open(self.path, "w", newline="", encoding="utf-8")
        except OSError as e:
            raise FileIOError(f"cannot create {self.path}: {e}") from e
        with f:
            self._export(client, max_slices.get(self.database, 0), f)

    def _export(self, client: ClusterClient, max_slice: int, w: IO[str]) -> None:
        for slice_index in range(max_slice + 1):
            logger.info(f"exporting slice: {slice_index}")
            client.export_csv(self.database, self.frame, slice_index, w)
        w.flush()


class SortCommand(Command):
    name = "sort"
    usage = textwrap.dedent("""\
        usage: pilosactl sort PATH

        Sorts the import data at PATH into the optimal sort order for importing.

        The format of the CSV file is:

        \tBITMAPID,PROFILEID[,TIMESTAMP]

        The file should contain no headers.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        p.add_argument("paths", nargs="*")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        if not ns.paths:
            raise UsageError("path required")
        if len(ns.paths) > 1:
            raise UsageError("only one path allowed")
        self.path = ns.paths[0]

    def run(self) -> None:
        sort_file(self.path, self.ctx.stdout)


class BackupCommand(Command):
    name = "backup"
    usage = textwrap.dedent("""\
        usage: pilosactl backup -host HOST -d database -f frame -o PATH

        Backs up the database and frame from across the cluster into a single file.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        _add_cluster_flags(p, self.ctx.config.host)
        p.add_argument("-o", "--output", default="", help="output file")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        self.host = ns.host
        self.database = ns.database
        self.frame = ns.frame
        self.path = ns.output

    def run(self) -> None:
        if not self.path:
            raise UsageError("output file required")
        client = self.ctx.get_client(self.host)

        try:
            f = open(self.path, "wb")
        except OSError as e:
            raise FileIOError(f"cannot create {self.path}: {e}") from e

        with f:
            client.backup_to(f, self.database, self.frame)
            # Sync to ensure durability before reporting success.
            try:
                f.flush()
                os.fsync(f.fileno())
            except OSError as e:
                raise FileIOError(f"cannot sync {self.path}: {e}") from e
        logger.info(f"Backed up {self.database}/{self.frame} to {self.path}")


class RestoreCommand(Command):
    name = "restore"
    usage = textwrap.dedent("""\
        usage: pilosactl restore -host HOST -d database -f frame PATH

        Restores a frame to the cluster from a backup file.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        _add_cluster_flags(p, self.ctx.config.host)
        p.add_argument("paths", nargs="*")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        if not ns.paths:
            raise UsageError("path required")
        if len(ns.paths) > 1:
            raise UsageError("too many paths specified")
        self.host = ns.host
        self.database = ns.database
        self.frame = ns.frame
        self.path = ns.paths[0]

    def run(self) -> None:
        client = self.ctx.get_client(self.host)
        try:
            f = open(self.path, "rb")
        except OSError as e:
            raise FileIOError(f"cannot open {self.path}: {e}") from e
        with f:
            client.restore_from(f, self.database, self.frame)
        logger.info(f"Restored {self.database}/{self.frame} from {self.path}")


class InspectCommand(Command):
    name = "inspect"
    usage = textwrap.dedent("""\
        usage: pilosactl inspect PATH

        Inspects a data file and provides stats.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        p.add_argument("paths", nargs="*")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        if not ns.paths:
            raise UsageError("path required")
        if len(ns.paths) > 1:
            raise UsageError("only one path allowed")
        self.path = ns.paths[0]

    def run(self) -> None:
        info = inspect_file(self.path, self.ctx.get_codec(), self.ctx.stderr)
        self.ctx.stdout.write(render_inspect(info))
        self.ctx.stdout.flush()


class CheckCommand(Command):
    name = "check"
    usage = textwrap.dedent("""\
        usage: pilosactl check PATHS...

        Performs a consistency check on data files.
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        p.add_argument("paths", nargs="*")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        if not ns.paths:
            raise UsageError("path required")
        self.paths = ns.paths

    def run(self) -> None:
        # Only bitmap files need a codec.
        codec = None
        if any(classify(p) is FileClassification.CONTAINER for p in self.paths):
            codec = self.ctx.get_codec()
        CheckRunner(codec, self.ctx.stdout, self.ctx.stderr).run(self.paths)
        self.ctx.stdout.flush()


class BenchCommand(Command):
    name = "bench"
    usage = textwrap.dedent("""\
        usage: pilosactl bench [args]

        Executes a benchmark for a given operation against the database.

        The following flags are allowed:

        \t-host HOSTPORT
        \t\thostname and port of running pilosa server

        \t-d DATABASE
        \t\tdatabase to execute operation against

        \t-f FRAME
        \t\tframe to execute operation against

        \t-op OP
        \t\tname of operation to execute

        \t-n COUNT
        \t\tnumber of iterations to execute

        The following operations are available:

        \tset-bit
        \t\tSets a single random bit on the frame
        """)

    def build_parser(self) -> FlagParser:
        p = super().build_parser()
        _add_cluster_flags(p, self.ctx.config.host)
        p.add_argument("-op", "--op", default="", help="operation")
        p.add_argument("-n", "--count", dest="n", type=int, default=0, help="op count")
        return p

    def configure(self, ns: argparse.Namespace) -> None:
        self.host = ns.host
        self.database = ns.database
        self.frame = ns.frame
        self.op = ns.op
        self.n = ns.n

    def run(self) -> None:
        ops = {"set-bit": self.run_set_bit}
        if not self.op:
            raise UsageError("op required")
        if self.op not in ops:
            raise UsageError(f"unknown bench op: {self.op!r}")
        client = self.ctx.get_client(self.host)
        ops[self.op](client)

    def run_set_bit(self, client: ClusterClient) -> None:
        """Execute a benchmark of random SetBit() operations."""
        if self.n <= 0:
            raise UsageError("operation count required")
        _require_db_frame(self.database, self.frame)

        max_bitmap_id = self.ctx.config.bench_max_bitmap_id
        max_profile_id = self.ctx.config.bench_max_profile_id

        start = time.perf_counter()
        for _ in range(self.n):
            bitmap_id = random.randrange(max_bitmap_id)
            profile_id = random.randrange(max_profile_id)
            q = f'SetBit(id={bitmap_id}, frame="{self.frame}", profileID={profile_id})'
            client.execute_query(self.database, q, True)

        elapsed = time.perf_counter() - start
        rate = self.n / elapsed if elapsed > 0 else float("inf")
        self.ctx.stdout.write(
            f"Executed {self.n} operations in {format_elapsed(elapsed)} ({rate:0.3f} op/sec)\n"
        )
