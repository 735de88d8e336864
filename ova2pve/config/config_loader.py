from __future__ import annotations
import argparse
import glob
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..core.utils import U

CONFIG_SECRET_ENV = "OVA2PVE_CONFIG_SECRET"
CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


class Config:
    @staticmethod
    def load_one(logger: logging.Logger, path: str) -> Dict[str, Any]:
        p = Path(path).expanduser().resolve()
        if not p.exists():
            U.die(logger, f"Config not found: {p}", 1)
        Config.verify_signature(logger, p)
        try:
            text = p.read_text(encoding="utf-8")
            if p.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text) or {}
        except json.JSONDecodeError as e:
            U.die(logger, f"Invalid JSON in config {p}: {e}", 1)
        except yaml.YAMLError as e:
            U.die(logger, f"Invalid YAML in config {p}: {e}", 1)
        except OSError as e:
            U.die(logger, f"Failed to load config {p}: {e}", 1)
        if not isinstance(data, dict):
            U.die(logger, f"Config must be a mapping/dict: {p}", 1)
        # normalize dash keys -> underscore keys
        out: Dict[str, Any] = {}
        for k, v in data.items():
            nk = str(k).replace("-", "_")
            out[nk] = v
            if nk != k:
                logger.debug(f"Normalized config key: {k} -> {nk}")
        logger.debug(f"Loaded config {p}:\n{U.json_dump(out)}")
        return out
    @staticmethod
    def verify_signature(logger: logging.Logger, config_path: Path) -> bool:
        """Verify the HMAC-SHA256 signature in <config>.sig when a secret is configured."""
        secret = os.environ.get(CONFIG_SECRET_ENV, "")
        if not secret:
            logger.debug(f"No config verification secret set ({CONFIG_SECRET_ENV})")
            return True
        sig_path = config_path.with_suffix(config_path.suffix + ".sig")
        if not sig_path.exists():
            logger.warning(f"No signature file found for config: {config_path}")
            return True
        expected_sig = hmac.new(secret.encode(), config_path.read_bytes(), hashlib.sha256).hexdigest()
        actual_sig = sig_path.read_text(encoding="utf-8").strip()
        if not hmac.compare_digest(expected_sig, actual_sig):
            U.die(logger, f"Config signature verification failed for {config_path}", 1)
        logger.debug(f"Config signature verified: {config_path}")
        return True
    @staticmethod
    def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep-ish merge:
        - dict + dict => recurse
        - list => override replaces (not concatenated)
        - scalar => override replaces
        """
        out = dict(base)
        for k, v in override.items():
            if k in out and isinstance(out[k], dict) and isinstance(v, dict):
                out[k] = Config.merge_dicts(out[k], v)
            else:
                out[k] = v
        return out
    @staticmethod
    def load_many(logger: logging.Logger, paths: List[str]) -> Dict[str, Any]:
        conf: Dict[str, Any] = {}
        for p in paths:
            conf = Config.merge_dicts(conf, Config.load_one(logger, p))
        return conf
    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        if not conf:
            return
        for act in parser._actions:
            dest = getattr(act, "dest", None)
            if not dest or dest not in conf:
                continue
            val = conf[dest]
            logger.debug(f"[Config] default {dest}: {act.default!r} -> {val!r}")
            act.default = val
            if getattr(act, "required", False) and val is not None:
                act.required = False
    @staticmethod
    def expand_configs(logger: logging.Logger, configs: List[str]) -> List[str]:
        expanded: List[str] = []
        for c in configs:
            p = Path(c).expanduser().resolve()
            if p.is_dir():
                for f in sorted(p.rglob("*")):
                    if f.is_file() and f.suffix.lower() in CONFIG_SUFFIXES:
                        expanded.append(str(f))
            elif "*" in c or "?" in c:
                expanded.extend(sorted(glob.glob(os.path.expanduser(c))))
            else:
                expanded.append(c)
        logger.debug(f"Expanded configs: {expanded}")
        return expanded
