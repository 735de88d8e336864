from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.exceptions import ToolError
from ..core.utils import U

SIZE_VIRTUAL = "virtual-size"
SIZE_FILE = "file-size"


@dataclass
class DiskImage:
    path: Path
    size: int
    size_source: str = SIZE_VIRTUAL

    @property
    def name(self) -> str:
        return self.path.name


class QemuImg:
    @staticmethod
    def info(logger: logging.Logger, path: Path) -> Optional[Dict[str, Any]]:
        """`qemu-img info --output=json`, or None if qemu-img is missing or fails."""
        if U.which("qemu-img") is None:
            return None
        cmd = ["qemu-img", "info", "--output=json", str(path)]
        try:
            cp = U.run_cmd(logger, cmd, check=False, capture=True)
        except ToolError as e:
            logger.warning(f"qemu-img cannot parse {path.name}: {e}")
            return None
        if cp.returncode != 0:
            logger.warning(f"qemu-img cannot parse {path.name} (exit {cp.returncode}): {(cp.stderr or '').strip()}")
            return None
        try:
            info = json.loads(cp.stdout or "")
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse qemu-img info JSON for {path.name}: {e}")
            return None
        return info if isinstance(info, dict) else None

    @staticmethod
    def probe(logger: logging.Logger, path: Path) -> DiskImage:
        info = QemuImg.info(logger, path)
        if info is not None:
            try:
                vsize = int(info.get("virtual-size") or 0)
            except (TypeError, ValueError):
                vsize = 0
            logger.debug(f"{path.name}: virtual-size={vsize} format={info.get('format')}")
            return DiskImage(path=path, size=vsize, size_source=SIZE_VIRTUAL)
        fsize = U.file_size(path)
        logger.debug(f"{path.name}: falling back to file size {fsize}")
        return DiskImage(path=path, size=fsize, size_source=SIZE_FILE)

    @staticmethod
    def rank(disks: List[DiskImage]) -> List[DiskImage]:
        """Largest first; equal sizes in descending file name order, like `sort -rn`."""
        return sorted(disks, key=lambda d: (d.size, d.name), reverse=True)

    @staticmethod
    def probe_and_rank(logger: logging.Logger, paths: List[Path]) -> List[DiskImage]:
        U.banner(logger, "Probe disk sizes")
        ranked = QemuImg.rank([QemuImg.probe(logger, p) for p in paths])
        for idx, d in enumerate(ranked):
            logger.info(f" {idx}: {d.name} {U.human_bytes(d.size)} ({d.size_source})")
        return ranked
