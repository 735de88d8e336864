from __future__ import annotations
import argparse
import logging
import shutil
import tempfile
from pathlib import Path

from rich.progress import Progress, BarColumn, TextColumn, TimeElapsedColumn, TimeRemainingColumn
from .utils import U


class SanityChecker:
    """Preflight checks run before anything is extracted or created."""

    def __init__(self, logger: logging.Logger, args: argparse.Namespace):
        self.logger = logger
        self.args = args
        self.dry_run = bool(getattr(args, "dry_run", False))
        tmp = getattr(args, "tmp_dir", None)
        self.tmp_root = Path(tmp).expanduser().resolve() if tmp else Path(tempfile.gettempdir())
        self.ova = Path(args.ova).expanduser()

    def check_input(self):
        if not self.ova.is_file():
            U.die(self.logger, f"OVA file not found: {self.ova}", 1)

    def check_tools(self):
        required_tools = [] if self.dry_run else ["qm"]
        optional_tools = ["qemu-img"]
        missing_required = [t for t in required_tools if U.which(t) is None]
        missing_optional = [t for t in optional_tools if U.which(t) is None]
        if missing_required:
            U.die(self.logger, f"Missing required tools: {', '.join(missing_required)} (run this on a Proxmox VE host)", 1)
        if missing_optional:
            self.logger.warning(f"Missing optional tools: {', '.join(missing_optional)} (disk sizes fall back to file size)")
        self.logger.debug("Tools sanity check passed.")

    def check_root(self):
        U.require_root_if_needed(self.logger, write_actions=not self.dry_run)

    def check_permissions(self):
        try:
            if not self.tmp_root.is_dir():
                self.logger.info(f"Creating temporary directory: {self.tmp_root}")
                U.ensure_dir(self.tmp_root)
            with tempfile.NamedTemporaryFile(dir=self.tmp_root, prefix=".ovaimp-perm-"):
                pass
            self.logger.debug("Permissions OK")
        except OSError as e:
            U.die(self.logger, f"Permission check failed for {self.tmp_root}: {e}", 1)

    def check_disk_space(self):
        try:
            free = shutil.disk_usage(self.tmp_root).free
            needed = self.ova.stat().st_size
        except OSError as e:
            self.logger.warning(f"Disk space check failed: {e}")
            return
        if free < needed:
            U.die(
                self.logger,
                f"Insufficient disk space in {self.tmp_root}: {U.human_bytes(free)} free, "
                f"OVA needs {U.human_bytes(needed)}",
                1,
            )
        self.logger.info(f"Disk space OK: {U.human_bytes(free)} free in {self.tmp_root}")

    def check_all(self):
        checks = [self.check_input, self.check_tools, self.check_root, self.check_permissions, self.check_disk_space]
        with Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"), TimeElapsedColumn(), TimeRemainingColumn(), transient=True) as progress:
            task = progress.add_task("Running sanity checks", total=len(checks))
            for check in checks:
                check()
                progress.update(task, advance=1)
        self.logger.info("All sanity checks passed.")
