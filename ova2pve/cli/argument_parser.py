from __future__ import annotations
import argparse
from typing import Dict, Sequence

from ..core.logger import c
from ..config.config_loader import Config
from .. import __version__
from .help_texts import FEATURE_SUMMARY, USAGE_EXAMPLES, YAML_EXAMPLE

BIOS_CHOICES = ("seabios", "ovmf")
BUS_CHOICES = ("scsi", "sata", "ide")
NET_CHOICES = ("virtio", "e1000", "rtl8139")
FORMAT_CHOICES = ("qcow2", "raw", "vmdk")

# Proxmox VE accepts VMIDs in this range.
VMID_MIN = 100
VMID_MAX = 999_999_999

# Config values bypass argparse's own choices check, so they are re-validated after parsing.
_CHOICES: Dict[str, Sequence[str]] = {
    "bios": BIOS_CHOICES,
    "disk_bus": BUS_CHOICES,
    "net": NET_CHOICES,
    "format": FORMAT_CHOICES,
}
_POSITIVE_INTS = ("memory", "cores", "sockets")


def positive_int(value) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if n <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return n


class CLI:
    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        epilog = (
            c(USAGE_EXAMPLES, "cyan") +
            "\n" +
            c("YAML example:\n", "cyan", ["bold"]) +
            c(YAML_EXAMPLE, "cyan") +
            "\n" +
            c("Feature summary:\n", "cyan", ["bold"]) +
            c(FEATURE_SUMMARY, "cyan")
        )
        p = argparse.ArgumentParser(
            prog="ova2pve",
            description=c("ova2pve: import an OVA appliance into Proxmox VE", "green", ["bold"]),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=epilog,
        )
        req = p.add_argument_group("required")
        req.add_argument("--vmid", type=int, required=True, help="Proxmox VMID (e.g. 200)")
        req.add_argument("--name", required=True, help="VM name")
        req.add_argument("--storage", required=True, help="Proxmox storage ID for disks (e.g. local-lvm)")
        req.add_argument("--ova", required=True, help="Path to the OVA file on the Proxmox host")

        vm = p.add_argument_group("virtual machine")
        vm.add_argument("--memory", type=positive_int, default=4096, help="RAM in MiB (default 4096)")
        vm.add_argument("--cores", type=positive_int, default=2, help="CPU cores (default 2)")
        vm.add_argument("--sockets", type=positive_int, default=1, help="CPU sockets (default 1)")
        vm.add_argument("--uefi", action="store_true", help="Force UEFI firmware (OVMF)")
        vm.add_argument("--bios", default=None, choices=BIOS_CHOICES, help="Override firmware: seabios|ovmf")
        vm.add_argument("--disk-bus", default=None, choices=BUS_CHOICES, help="Override disk bus (default: detected from OVF, fallback scsi)")
        vm.add_argument("--net", default="virtio", choices=NET_CHOICES, help="Network model (default virtio)")
        vm.add_argument("--bridge", default="vmbr0", help="Bridge for net0 (default vmbr0)")
        vm.add_argument("--ostype", default="l26", help="Guest OS type passed to qm create (default l26)")
        vm.add_argument("--format", default="qcow2", choices=FORMAT_CHOICES, help="Target format for qm importdisk (default qcow2)")
        vm.add_argument("--rescue-iso", default=None, metavar="STORAGE:iso/NAME.iso",
                        help="Attach a rescue ISO as ide2 and boot from it")

        run = p.add_argument_group("run control")
        run.add_argument("--keep-temp", action="store_true", help="Keep extracted OVA files in the temp dir")
        run.add_argument("--tmp-dir", default=None, help="Parent directory for the extraction dir (default: system temp)")
        run.add_argument("--dry-run", action="store_true", help="Log qm commands instead of running them")
        run.add_argument("--config", action="append", default=[], help="YAML/JSON config file (repeatable; later overrides earlier).")
        run.add_argument("--dump-config", action="store_true", help="Print merged normalized config and exit.")
        run.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
        run.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v, -vv")
        run.add_argument("--log-file", default=None, help="Write logs to file.")
        run.add_argument("--version", action="version", version=__version__)
        return p

    @staticmethod
    def validate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
        """Re-check values that may have come from config files; exits via parser.error()."""
        try:
            args.vmid = int(args.vmid)
        except (TypeError, ValueError):
            parser.error(f"--vmid: expected an integer, got {args.vmid!r}")
        if not VMID_MIN <= args.vmid <= VMID_MAX:
            parser.error(f"--vmid must be between {VMID_MIN} and {VMID_MAX}, got {args.vmid}")
        for dest in _POSITIVE_INTS:
            try:
                setattr(args, dest, positive_int(getattr(args, dest)))
            except argparse.ArgumentTypeError as e:
                parser.error(f"--{dest.replace('_', '-')}: {e}")
        for dest, choices in _CHOICES.items():
            val = getattr(args, dest, None)
            if val is not None and val not in choices:
                parser.error(f"--{dest.replace('_', '-')}: invalid choice {val!r} (choose from {', '.join(choices)})")
        for dest in ("name", "storage", "ova"):
            if not str(getattr(args, dest) or "").strip():
                parser.error(f"--{dest} must not be empty")


def parse_args_with_config(argv=None, logger=None):
    """Two-phase parse.

    Phase 0: parse ONLY the flags needed to find config/logging
    Phase 1: load+merge config files and apply them as argparse defaults
    Phase 2: full parse_args with defaults applied (so required args can come from config)

    Returns: (args, merged_config_dict, logger)
    """
    parser = CLI.build_parser()

    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    args0, _rest = pre.parse_known_args(argv)

    own_logger = logger is None
    if own_logger:
        from ..core.logger import Log  # local import to avoid cycles
        logger = Log.setup(getattr(args0, "verbose", 0), getattr(args0, "log_file", None))

    conf = {}
    cfgs = getattr(args0, "config", None) or []
    if cfgs:
        cfgs = Config.expand_configs(logger, list(cfgs))
        conf = Config.load_many(logger, cfgs)
        Config.apply_as_defaults(logger, parser, conf)

    args = parser.parse_args(argv)
    CLI.validate(parser, args)

    # verbose/log_file may have been set by a config file
    if own_logger and (args.verbose, args.log_file) != (args0.verbose, args0.log_file):
        from ..core.logger import Log
        logger = Log.setup(int(args.verbose or 0), args.log_file)
    return args, conf, logger
