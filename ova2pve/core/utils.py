from __future__ import annotations
import json
import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import Fatal, wrap_tool


class U:
    @staticmethod
    def die(logger: logging.Logger, msg: str, code: int = 1) -> None:
        logger.error(msg)
        raise Fatal(code, msg)
    @staticmethod
    def ensure_dir(p: Path) -> None:
        p.mkdir(parents=True, exist_ok=True)
    @staticmethod
    def which(prog: str) -> Optional[str]:
        return shutil.which(prog)
    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)
    @staticmethod
    def human_bytes(n: Optional[int]) -> str:
        if n is None:
            return "unknown"
        x = float(n)
        for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
            if x < 1024 or unit == "TiB":
                return f"{x:.2f} {unit}"
            x /= 1024
        return f"{n} B"
    @staticmethod
    def banner(logger: logging.Logger, title: str) -> None:
        line = "─" * max(10, len(title) + 2)
        logger.info(line)
        logger.info(f" {title}")
        logger.info(line)
    @staticmethod
    def pretty_cmd(cmd: List[str]) -> str:
        return " ".join(shlex.quote(str(x)) for x in cmd)
    @staticmethod
    def run_cmd(
        logger: logging.Logger,
        cmd: List[str],
        *,
        check: bool = True,
        capture: bool = False,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run an external tool. With check=True a non-zero exit becomes a
        ToolError carrying the tool's exit code.
        """
        pretty = U.pretty_cmd(cmd)
        logger.debug(f"Running: {pretty}")
        try:
            return subprocess.run(
                cmd,
                check=check,
                capture_output=capture,
                text=True,
                env=env,
                timeout=timeout,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {pretty}\nstdout: {e.stdout}\nstderr: {e.stderr}")
            raise wrap_tool(cmd, e.returncode, e.stderr, e) from e
        except FileNotFoundError as e:
            logger.error(f"Command not found: {cmd[0]}")
            raise wrap_tool(cmd, 127, str(e), e) from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"Command timed out after {timeout}s: {pretty}")
            raise wrap_tool(cmd, 124, f"timed out after {timeout}s", e) from e
    @staticmethod
    def require_root_if_needed(logger: logging.Logger, write_actions: bool) -> None:
        if not write_actions:
            return
        if os.geteuid() != 0:
            U.die(logger, "This operation requires root. Re-run with sudo.", 1)
    @staticmethod
    def file_size(p: Path) -> int:
        try:
            return p.stat().st_size
        except OSError:
            return 0
