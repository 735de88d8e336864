from __future__ import annotations

RESCUE_NOTES = """Maintenance notes for rescue boot:
 - Connect to the VM console via the Proxmox web UI -> Console, or use 'qm terminal {vmid}' if supported.
 - Inside the rescue/live environment:
   1) Identify disks/partitions: lsblk, fdisk -l
   2) If LVM is used: vgchange -ay
   3) Mount the root filesystem (replace /dev/sdXN with your root partition):
      mkdir -p /mnt/groot
      mount /dev/sdXN /mnt/groot
   4) Bind system dirs for chroot:
      mount --bind /dev /mnt/groot/dev
      mount --bind /proc /mnt/groot/proc
      mount --bind /sys  /mnt/groot/sys
   5) chroot:
      chroot /mnt/groot /bin/bash
   6) Reset root password:
      passwd root
      # OR:
      echo "root:NewPassword" | chpasswd
   7) If needed, update grub (Debian/Ubuntu):
      update-grub
   8) Cleanup & unmount, then shutdown the rescue environment.
 - After finishing:
   qm set {vmid} --ide2 none,media=cdrom
   qm set {vmid} --boot order={boot_target}
   qm stop {vmid} || true
   qm start {vmid}
"""


def start_hint(vmid: int) -> str:
    return f"You can start the VM now with:\n  qm start {vmid}\n"


def rescue_notes(vmid: int, boot_target: str) -> str:
    return RESCUE_NOTES.format(vmid=vmid, boot_target=boot_target)
