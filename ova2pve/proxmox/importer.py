from __future__ import annotations
import logging
from typing import List, Tuple

from ..converters.qemu_img import DiskImage
from ..core.utils import U
from .qm import QmClient, last_unused_ref
from .vm_spec import VmSpec


class VmImporter:
    """
    Issues the qm command sequence for one VM:
    create → net0 → firmware (+ EFI disk) → SCSI controller → import/attach
    every disk → boot order → serial console → optional rescue ISO.
    """

    def __init__(self, logger: logging.Logger, qm: QmClient, spec: VmSpec):
        self.logger = logger
        self.qm = qm
        self.spec = spec
        self.attached: List[Tuple[str, str]] = []

    def run(self, disks: List[DiskImage]) -> List[Tuple[str, str]]:
        if not disks:
            U.die(self.logger, "No disks to import.", 1)
        self.create_vm()
        self.configure_network()
        self.configure_firmware()
        self.configure_controller()
        for index, disk in enumerate(disks):
            self.import_and_attach(index, disk)
        self.set_boot_order()
        self.configure_console()
        if self.spec.rescue_iso:
            self.attach_rescue_iso()
        return self.attached

    def create_vm(self) -> None:
        s = self.spec
        U.banner(self.logger, f"Create VM {s.vmid}")
        self.logger.info(f"Creating VM {s.vmid} (name: {s.name}) ...")
        self.qm.create(s.name, s.memory, s.cores, s.sockets, s.ostype)

    def configure_network(self) -> None:
        self.qm.set("--net0", f"{self.spec.net},bridge={self.spec.bridge}")

    def configure_firmware(self) -> None:
        s = self.spec
        self.qm.set("--bios", s.firmware)
        if not s.uefi:
            return
        # Not every storage can hold an EFI vars volume; the VM still boots without one.
        cp = self.qm.set("--efidisk0", f"{s.storage}:0,pre-enrolled-keys=1", check=False)
        if cp.returncode != 0:
            self.logger.warning(f"Could not add efidisk0 on storage {s.storage} (exit {cp.returncode}); continuing without it.")

    def configure_controller(self) -> None:
        if self.spec.bus == "scsi":
            self.qm.set("--scsihw", "virtio-scsi-single")

    def import_and_attach(self, index: int, disk: DiskImage) -> str:
        s = self.spec
        self.logger.info(f"Importing VMDK: {disk.name} -> storage {s.storage}")
        self.qm.import_disk(disk.path, s.storage, s.disk_format)
        ref = last_unused_ref(self.qm.config())
        if ref is None:
            U.die(self.logger, "Could not find imported disk reference (unusedN) in qm config.", 1)
        target = s.slot(index)
        self.logger.info(f"Attaching disk {ref} as {target}")
        self.qm.set(f"--{target}", ref)
        self.attached.append((target, ref))
        return ref

    def set_boot_order(self) -> None:
        self.logger.info(f"Setting boot order to {self.spec.boot_target}")
        self.qm.set("--boot", f"order={self.spec.boot_target}")

    def configure_console(self) -> None:
        self.qm.set("--serial0", "socket", "--vga", "serial0")

    def attach_rescue_iso(self) -> None:
        s = self.spec
        self.logger.info(f"Attaching Rescue ISO {s.rescue_iso} to VM {s.vmid} (ide2) and setting boot order to CD")
        self.qm.set("--ide2", f"{s.rescue_iso},media=cdrom")
        self.qm.set("--boot", "order=ide2")
