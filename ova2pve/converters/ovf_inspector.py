from __future__ import annotations
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.exceptions import Fatal
from ..core.utils import U

DEFAULT_BUS = "scsi"

_UEFI_PATTERNS = (
    re.compile(r"firmware.*efi", re.IGNORECASE),
    re.compile(r'vmw:key="firmware".*value="efi"', re.IGNORECASE),
)
_SATA = re.compile(r"sata", re.IGNORECASE)
_LSILOGIC = re.compile(r"lsilogic", re.IGNORECASE)


def _local(name: str) -> str:
    # OVF 1.x and 2.0 use different namespace URIs for the same elements
    return name.rsplit("}", 1)[-1]


def _attr(el: ET.Element, name: str) -> Optional[str]:
    for k, v in el.attrib.items():
        if _local(k) == name:
            return v
    return None


@dataclass
class OvfHints:
    ovf: Optional[Path] = None
    uefi: bool = False
    bus: str = DEFAULT_BUS


def detect_uefi(text: str) -> bool:
    # '.' never crosses a newline, so matches stay within one line
    return any(p.search(text) for p in _UEFI_PATTERNS)


def detect_bus(text: str) -> str:
    if _SATA.search(text):
        return "sata"
    if _LSILOGIC.search(text):
        return "scsi"
    return DEFAULT_BUS


def resolve_firmware(detected_uefi: bool, bios: Optional[str] = None, force_uefi: bool = False) -> bool:
    """
    Apply CLI overrides on top of the OVF guess.
    --uefi wins over --bios seabios.
    """
    uefi = detected_uefi
    if bios == "seabios":
        uefi = False
    elif bios == "ovmf":
        uefi = True
    elif bios is not None:
        raise Fatal(1, f"--bios accepts only 'seabios' or 'ovmf', got {bios!r}")
    if force_uefi:
        uefi = True
    return uefi


def resolve_bus(detected_bus: str, override: Optional[str] = None) -> str:
    if override is None:
        return detected_bus
    if override not in ("scsi", "sata", "ide"):
        raise Fatal(1, f"--disk-bus accepts scsi|sata|ide, got {override!r}")
    return override


class OVF:
    @staticmethod
    def inspect(logger: logging.Logger, ovf: Optional[Path]) -> OvfHints:
        if ovf is None:
            logger.warning("No OVF found, firmware/bus detection is limited.")
            return OvfHints()
        U.banner(logger, "Inspect OVF")
        logger.info(f"OVF: {ovf.name}")
        try:
            text = ovf.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read OVF {ovf}: {e}; firmware/bus detection is limited.")
            return OvfHints(ovf=ovf)
        hints = OvfHints(ovf=ovf, uefi=detect_uefi(text), bus=detect_bus(text))
        logger.debug(f"OVF hints: uefi={hints.uefi} bus={hints.bus}")
        OVF.check_referenced_disks(logger, ovf)
        return hints

    @staticmethod
    def referenced_disks(ovf: Path) -> List[str]:
        """File names referenced by ovf:Disk entries, in descriptor order."""
        root = ET.parse(ovf).getroot()
        files = {
            _attr(f, "id"): _attr(f, "href")
            for refs in root.iter() if _local(refs.tag) == "References"
            for f in refs if _local(f.tag) == "File"
        }
        out: List[str] = []
        for disk in (e for e in root.iter() if _local(e.tag) == "Disk"):
            href = files.get(_attr(disk, "fileRef"))
            if href:
                out.append(href)
        return out

    @staticmethod
    def check_referenced_disks(logger: logging.Logger, ovf: Path) -> None:
        try:
            hrefs = OVF.referenced_disks(ovf)
        except ET.ParseError as e:
            logger.warning(f"OVF is not valid XML ({e}); skipping disk reference check.")
            return
        if not hrefs:
            return
        logger.info("Disks referenced by OVF:")
        for href in hrefs:
            logger.info(f" - {href}")
            if not (ovf.parent / Path(href).name).is_file():
                logger.warning(f"Disk referenced by OVF is missing from the archive: {href}")
