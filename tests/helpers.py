import io
import subprocess
import tarfile
from pathlib import Path
from typing import Dict

from ova2pve.core.exceptions import ToolError

SIMPLE_OVF = """<?xml version="1.0" encoding="UTF-8"?>
<Envelope xmlns="http://schemas.dmtf.org/ovf/envelope/1" xmlns:ovf="http://schemas.dmtf.org/ovf/envelope/1">
  <References>
    <File ovf:id="file1" ovf:href="appliance-disk1.vmdk"/>
    <File ovf:id="file2" ovf:href="appliance-disk2.vmdk"/>
  </References>
  <DiskSection>
    <Disk ovf:diskId="vmdisk1" ovf:fileRef="file1"/>
    <Disk ovf:diskId="vmdisk2" ovf:fileRef="file2"/>
  </DiskSection>
  <Item><ResourceSubType>lsilogic</ResourceSubType></Item>
</Envelope>
"""


def make_ova(path: Path, members: Dict[str, bytes]) -> Path:
    """Write a tar archive containing the given name -> content members."""
    with tarfile.open(path, "w") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


def appliance_members() -> Dict[str, bytes]:
    return {
        "appliance.ovf": SIMPLE_OVF.encode("utf-8"),
        "appliance-disk1.vmdk": b"\0" * 4096,
        "appliance-disk2.vmdk": b"\0" * 1024,
        "appliance.mf": b"SHA256(appliance.ovf)= 00\n",
    }


class FakeQm:
    """Stands in for U.run_cmd: answers `qm config` with one unusedN line per pending import."""

    def __init__(self, efidisk_rc=0, config_text=None):
        self.efidisk_rc = efidisk_rc
        self.config_text = config_text
        self.volumes = 0
        self.pending = None

    def __call__(self, logger, cmd, check=True, capture=False, **kw):
        rc, out = 0, ""
        if cmd[1] == "importdisk":
            self.volumes += 1
            self.pending = f"{cmd[4]}:vm-{cmd[2]}-disk-{self.volumes}"
        elif cmd[1] == "config":
            if self.config_text is not None:
                out = self.config_text
            else:
                out = f"boot: order=scsi0\nmemory: 4096\nunused0: {self.pending}\n"
        elif cmd[1] == "set" and cmd[3] == "--efidisk0":
            rc = self.efidisk_rc
            if rc and check:
                raise ToolError(code=rc, msg="qm failed")
        return subprocess.CompletedProcess(cmd, rc, stdout=out, stderr="")
