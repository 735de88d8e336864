from __future__ import annotations

USAGE_EXAMPLES = r"""Examples:
  ova2pve --vmid 200 --name Imported-VM --storage local-lvm --ova /path/to/image.ova
  ova2pve --vmid 200 --name Imported-VM --storage local-lvm --ova /path/to/image.ova \
          --rescue-iso local:iso/systemrescue.iso
  ova2pve --config import.yaml --dry-run
"""

YAML_EXAMPLE = r"""# ova2pve configuration (YAML)
#
# Run:
# sudo ova2pve --config import.yaml
# Merge configs (later overrides earlier, CLI flags override both):
# sudo ova2pve --config base.yaml --config appliance.yaml --vmid 201
#
# Required keys may come from YAML: ova2pve reads --config first and
# applies the merged mapping as argparse defaults before the full parse.
# Dashes in keys are accepted (disk-bus == disk_bus).
vmid: 200
name: Imported-VM
storage: local-lvm
ova: /var/lib/vz/template/ova/appliance.ova
memory: 4096 # MiB
cores: 2
sockets: 1
# uefi: true # force OVMF
# bios: seabios # seabios | ovmf
# disk_bus: scsi # scsi | sata | ide (default: detected from OVF, fallback scsi)
net: virtio # virtio | e1000 | rtl8139
bridge: vmbr0
ostype: l26
format: qcow2 # qcow2 | raw | vmdk
# tmp_dir: /var/tmp # where the OVA is extracted
# keep_temp: true
# rescue_iso: local:iso/systemrescue.iso
# dry_run: true
# verbose: 2
# log_file: /var/log/ova2pve.log
"""

FEATURE_SUMMARY = """ • Extracts the OVA into a scoped temp dir (removed unless --keep-temp)
 • Detects BIOS/UEFI and SATA/SCSI from the OVF (overridable)
 • Imports every VMDK; the largest (qemu-img virtual size) becomes the boot disk
 • Configures net0, firmware, EFI disk, SCSI controller, serial console
 • Optional rescue ISO on ide2 with maintenance notes
 • Safety: --dry-run prints the qm commands without running them
"""
