from __future__ import annotations
import contextlib
import logging
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional

from rich.progress import Progress, BarColumn, TextColumn, TimeElapsedColumn, TimeRemainingColumn

from ..core.exceptions import wrap_fatal
from ..core.utils import U

TEMP_PREFIX = "ovaimp-"


class OVA:
    @staticmethod
    @contextlib.contextmanager
    def workspace(logger: logging.Logger, tmp_root: Optional[Path] = None, keep: bool = False) -> Iterator[Path]:
        """Scoped extraction directory; removed on exit unless keep=True. tmp_root must exist."""
        workdir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=str(tmp_root) if tmp_root else None))
        logger.debug(f"Created extraction dir: {workdir}")
        try:
            yield workdir
        finally:
            if keep:
                logger.info(f"Temporary files retained at: {workdir}")
            else:
                shutil.rmtree(workdir, ignore_errors=True)
                logger.debug(f"Removed extraction dir: {workdir}")

    @staticmethod
    def safe_extract_supported() -> bool:
        """tarfile extraction filters: 3.12, or 3.9.17 / 3.10.12 / 3.11.4 and newer."""
        return hasattr(tarfile, "data_filter")

    @staticmethod
    def _fail(logger: logging.Logger, msg: str, ova: Path, exc: BaseException) -> None:
        logger.error(msg)
        raise wrap_fatal(1, msg, exc, ova=str(ova)) from exc

    @staticmethod
    def extract(logger: logging.Logger, ova: Path, outdir: Path) -> None:
        U.banner(logger, "Extract OVA")
        if not OVA.safe_extract_supported():
            U.die(logger, "This Python has no tarfile extraction filters; upgrade to 3.12 (or 3.9.17, 3.10.12, 3.11.4).", 1)
        logger.info(f"Extracting {ova} into {outdir} ...")
        U.ensure_dir(outdir)
        try:
            with tarfile.open(ova) as tar:
                members = tar.getmembers()
                with Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"), TimeElapsedColumn(), TimeRemainingColumn()) as progress:
                    task = progress.add_task("Extracting OVA", total=len(members))
                    for member in members:
                        logger.debug(f"Extracting member: {member.name} ({U.human_bytes(member.size)})")
                        # "data" rejects absolute paths, '..' and links leaving outdir
                        tar.extract(member, outdir, filter="data")
                        progress.update(task, advance=1)
        except tarfile.FilterError as e:
            OVA._fail(logger, f"Refusing unsafe member in OVA {ova}: {e}", ova, e)
        except (tarfile.TarError, EOFError, OSError) as e:
            OVA._fail(logger, f"Failed to extract OVA {ova}: {e}", ova, e)

    @staticmethod
    def _top_level_files(outdir: Path, suffix: str) -> List[Path]:
        return sorted(
            p for p in outdir.iterdir()
            if p.name.lower().endswith(suffix) and p.is_file() and not p.is_symlink()
        )

    @staticmethod
    def find_ovf(outdir: Path) -> Optional[Path]:
        ovfs = OVA._top_level_files(outdir, ".ovf")
        return ovfs[0] if ovfs else None

    @staticmethod
    def find_vmdks(logger: logging.Logger, outdir: Path) -> List[Path]:
        vmdks = OVA._top_level_files(outdir, ".vmdk")
        if not vmdks:
            U.die(logger, "No VMDK files found inside the OVA.", 1)
        logger.info(f"Found {len(vmdks)} VMDK file(s):")
        for v in vmdks:
            logger.info(f" - {v.name} ({U.human_bytes(U.file_size(v))} on disk)")
        return vmdks
