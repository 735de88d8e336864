from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from ..converters.ova_extractor import OVA
from ..converters.ovf_inspector import OVF, OvfHints
from ..converters.qemu_img import DiskImage, QemuImg
from ..core.sanity_checker import SanityChecker
from ..core.utils import U
from ..proxmox.importer import VmImporter
from ..proxmox.qm import QmClient
from ..proxmox.rescue import rescue_notes, start_hint
from ..proxmox.vm_spec import VmSpec


class Orchestrator:
    """
    Top-level pipeline runner.
    Responsibilities:
    - Preflight checks (tools, root, temp space)
    - Extract the OVA into a scoped temp dir
    - Detect firmware/bus from the OVF and apply CLI overrides
    - Rank disks by virtual size (largest = system disk)
    - Drive the qm command sequence
    - Print the start hint and rescue maintenance notes
    """

    def __init__(self, logger: logging.Logger, args: argparse.Namespace):
        self.logger = logger
        self.args = args
        self.dry_run = bool(getattr(args, "dry_run", False))
        self.spec: Optional[VmSpec] = None
        self.disks: List[DiskImage] = []
        self.qm: Optional[QmClient] = None

    def _tmp_root(self) -> Optional[Path]:
        tmp = getattr(self.args, "tmp_dir", None)
        return Path(tmp).expanduser().resolve() if tmp else None

    def _log_settings(self, spec: VmSpec) -> None:
        self.logger.info(f"Using firmware: {spec.firmware}{' (UEFI)' if spec.uefi else ''}")
        self.logger.info(f"Preferred disk bus: {spec.bus}")
        self.logger.info(f"Network model: {spec.net} (bridge {spec.bridge})")

    def prepare(self, workdir: Path) -> VmSpec:
        ova = Path(self.args.ova).expanduser().resolve()
        OVA.extract(self.logger, ova, workdir)
        ovf = OVA.find_ovf(workdir)
        vmdks = OVA.find_vmdks(self.logger, workdir)
        hints: OvfHints = OVF.inspect(self.logger, ovf)
        spec = VmSpec.from_args(self.args, hints)
        self._log_settings(spec)
        self.disks = QemuImg.probe_and_rank(self.logger, vmdks)
        self.logger.info(f"Selected system disk (largest VMDK): {self.disks[0].name}")
        return spec

    def run(self) -> int:
        if self.dry_run:
            self.logger.info("DRY-RUN: qm commands will be printed, not executed")
        SanityChecker(self.logger, self.args).check_all()

        keep = bool(getattr(self.args, "keep_temp", False))
        with OVA.workspace(self.logger, self._tmp_root(), keep=keep) as workdir:
            self.spec = self.prepare(workdir)
            self.qm = QmClient(self.logger, self.spec.vmid, dry_run=self.dry_run)
            VmImporter(self.logger, self.qm, self.spec).run(self.disks)

        self.summary()
        return 0

    def summary(self) -> None:
        spec = self.spec
        assert spec is not None
        U.banner(self.logger, "Done")
        if self.dry_run:
            self.logger.info(f"DRY-RUN: {len(self.qm.commands) if self.qm else 0} qm command(s) planned for VM {spec.vmid}.")
        else:
            self.logger.info(f"VM {spec.vmid} created and disks attached.")
        if spec.rescue_iso:
            self.logger.info("Rescue ISO attached. Start the VM and connect to VM console to perform maintenance.")
        print(start_hint(spec.vmid))
        if spec.rescue_iso:
            print(rescue_notes(spec.vmid, spec.boot_target))
