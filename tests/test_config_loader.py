import hashlib
import hmac
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from ova2pve.config.config_loader import CONFIG_SECRET_ENV, Config
from ova2pve.core.exceptions import Fatal


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self.logger = Mock()
        self.td = tempfile.TemporaryDirectory()
        self.root = Path(self.td.name)

    def tearDown(self):
        self.td.cleanup()

    def test_merge_dicts_is_deep(self):
        base = {"vm": {"memory": 2048, "cores": 2}, "tags": ["a"]}
        over = {"vm": {"cores": 4}, "tags": ["b"]}
        self.assertEqual(Config.merge_dicts(base, over), {"vm": {"memory": 2048, "cores": 4}, "tags": ["b"]})

    def test_invalid_yaml_is_fatal(self):
        cfg = self.root / "bad.yaml"
        cfg.write_text("vmid: [200\n", encoding="utf-8")
        with self.assertRaises(Fatal):
            Config.load_one(self.logger, str(cfg))

    def test_invalid_json_is_fatal(self):
        cfg = self.root / "bad.json"
        cfg.write_text("{vmid: 200", encoding="utf-8")
        with self.assertRaises(Fatal):
            Config.load_one(self.logger, str(cfg))

    def test_empty_yaml_is_empty_mapping(self):
        cfg = self.root / "empty.yaml"
        cfg.write_text("", encoding="utf-8")
        self.assertEqual(Config.load_one(self.logger, str(cfg)), {})

    def test_glob_expansion(self):
        for n in ("b.yaml", "a.yaml"):
            (self.root / n).write_text("cores: 1\n", encoding="utf-8")
        expanded = Config.expand_configs(self.logger, [str(self.root / "*.yaml")])
        self.assertEqual([Path(p).name for p in expanded], ["a.yaml", "b.yaml"])

    def test_signature_checked_when_secret_set(self):
        cfg = self.root / "signed.yaml"
        cfg.write_text("vmid: 200\n", encoding="utf-8")
        good = hmac.new(b"s3cret", cfg.read_bytes(), hashlib.sha256).hexdigest()
        sig = self.root / "signed.yaml.sig"
        with patch.dict(os.environ, {CONFIG_SECRET_ENV: "s3cret"}):
            sig.write_text(good + "\n", encoding="utf-8")
            self.assertEqual(Config.load_one(self.logger, str(cfg)), {"vmid": 200})
            sig.write_text("0" * 64, encoding="utf-8")
            with self.assertRaises(Fatal):
                Config.load_one(self.logger, str(cfg))


if __name__ == "__main__":
    unittest.main()
