from __future__ import annotations
import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional

from ..core.utils import U

_UNUSED_LINE = re.compile(r"^unused[0-9]+: ")


def last_unused_ref(config_text: str) -> Optional[str]:
    """
    Volume reference of the last `unusedN:` line in `qm config` output,
    e.g. 'local-lvm:vm-200-disk-1'. None when there is no such line.
    """
    ref = None
    for line in config_text.splitlines():
        if _UNUSED_LINE.match(line):
            ref = line.split(": ", 1)[1].strip()
    return ref or None


class QmClient:
    """
    Thin wrapper over the Proxmox `qm` CLI.

    Every command line is recorded in `commands`. In dry-run mode nothing
    is executed and `qm config` is simulated so imported disks still get
    a predictable volume reference.
    """

    def __init__(self, logger: logging.Logger, vmid: int, *, dry_run: bool = False, qm: str = "qm"):
        self.logger = logger
        self.vmid = int(vmid)
        self.dry_run = dry_run
        self.qm = qm
        self.commands: List[List[str]] = []
        self._imported = 0
        self._last_storage = ""

    def run(self, *argv: str, check: bool = True, capture: bool = False) -> subprocess.CompletedProcess:
        cmd = [self.qm, *[str(a) for a in argv]]
        self.commands.append(cmd)
        if self.dry_run:
            self.logger.info(f"DRY-RUN: {U.pretty_cmd(cmd)}")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        return U.run_cmd(self.logger, cmd, check=check, capture=capture)

    def create(self, name: str, memory: int, cores: int, sockets: int, ostype: str = "l26") -> None:
        self.run(
            "create", self.vmid,
            "--name", name,
            "--memory", memory,
            "--cores", cores,
            "--sockets", sockets,
            "--ostype", ostype,
        )

    def set(self, *options: str, check: bool = True) -> subprocess.CompletedProcess:
        return self.run("set", self.vmid, *options, check=check)

    def config(self) -> str:
        if self.dry_run:
            cmd = [self.qm, "config", str(self.vmid)]
            self.commands.append(cmd)
            self.logger.debug(f"DRY-RUN: {U.pretty_cmd(cmd)}")
            return self._simulated_config
        return self.run("config", self.vmid, capture=True).stdout or ""

    def import_disk(self, image: Path, storage: str, fmt: str = "qcow2") -> None:
        # qm prints a progress line per percent; keep it out of the console
        self.run("importdisk", self.vmid, image, storage, "--format", fmt, capture=True)
        self._last_storage = storage
        self._imported += 1

    @property
    def _simulated_config(self) -> str:
        if not self._imported:
            return ""
        return f"unused0: {self._last_storage}:vm-{self.vmid}-disk-{self._imported - 1}\n"
