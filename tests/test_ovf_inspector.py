import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock

from ova2pve.converters.ovf_inspector import (
    OVF,
    OvfHints,
    detect_bus,
    detect_uefi,
    resolve_bus,
    resolve_firmware,
)
from ova2pve.core.exceptions import Fatal

OVF_UEFI_SATA = """<?xml version="1.0" encoding="UTF-8"?>
<Envelope xmlns="http://schemas.dmtf.org/ovf/envelope/1" xmlns:ovf="http://schemas.dmtf.org/ovf/envelope/1"
          xmlns:vmw="http://www.vmware.com/schema/ovf">
  <References>
    <File ovf:id="file1" ovf:href="web-disk1.vmdk"/>
    <File ovf:id="file2" ovf:href="web-disk2.vmdk"/>
  </References>
  <DiskSection>
    <Disk ovf:diskId="vmdisk1" ovf:fileRef="file1" ovf:capacity="40"/>
    <Disk ovf:diskId="vmdisk2" ovf:fileRef="file2" ovf:capacity="10"/>
  </DiskSection>
  <VirtualSystem ovf:id="web">
    <VirtualHardwareSection>
      <Item><rasd:ResourceSubType xmlns:rasd="x">vmware.sata.ahci</rasd:ResourceSubType></Item>
      <vmw:Config ovf:required="false" vmw:key="firmware" vmw:value="efi"/>
    </VirtualHardwareSection>
  </VirtualSystem>
</Envelope>
"""

OVF_BIOS_LSILOGIC = """<?xml version="1.0"?>
<Envelope xmlns="http://schemas.dmtf.org/ovf/envelope/1">
  <Item><ResourceSubType>lsilogic</ResourceSubType></Item>
  <Config key="firmware" value="bios"/>
</Envelope>
"""


class TestKeywordDetection(unittest.TestCase):
    def test_uefi_firmware_attribute(self):
        self.assertTrue(detect_uefi('<vmw:Config ovf:required="false" vmw:key="firmware" vmw:value="efi"/>'))

    def test_uefi_is_case_insensitive(self):
        self.assertTrue(detect_uefi('<Config KEY="FIRMWARE" VALUE="EFI"/>'))

    def test_uefi_ovf_firmware_attribute(self):
        self.assertTrue(detect_uefi('<VirtualSystem ovf:firmware="efi">'))

    def test_bios_firmware_is_not_uefi(self):
        self.assertFalse(detect_uefi(OVF_BIOS_LSILOGIC))

    def test_keyword_match_does_not_span_lines(self):
        self.assertFalse(detect_uefi('<Config key="firmware"/>\n<Item>efi</Item>'))

    def test_sata_wins(self):
        self.assertEqual(detect_bus("lsilogic ... vmware.sata.ahci"), "sata")

    def test_lsilogic_means_scsi(self):
        self.assertEqual(detect_bus(OVF_BIOS_LSILOGIC), "scsi")

    def test_bus_defaults_to_scsi(self):
        self.assertEqual(detect_bus("<Envelope/>"), "scsi")


class TestOverrideResolution(unittest.TestCase):
    def test_no_overrides_keeps_detection(self):
        self.assertTrue(resolve_firmware(True))
        self.assertFalse(resolve_firmware(False))

    def test_bios_override(self):
        self.assertFalse(resolve_firmware(True, bios="seabios"))
        self.assertTrue(resolve_firmware(False, bios="ovmf"))

    def test_force_uefi_wins_over_seabios(self):
        self.assertTrue(resolve_firmware(False, bios="seabios", force_uefi=True))

    def test_invalid_bios_value(self):
        with self.assertRaises(Fatal) as cm:
            resolve_firmware(False, bios="coreboot")
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("coreboot", str(cm.exception))

    def test_bus_override(self):
        self.assertEqual(resolve_bus("sata"), "sata")
        self.assertEqual(resolve_bus("sata", "ide"), "ide")
        with self.assertRaises(Fatal):
            resolve_bus("scsi", "virtio")


class TestOvfInspect(unittest.TestCase):
    def setUp(self):
        self.logger = Mock()

    def test_missing_ovf_gives_defaults_and_warns(self):
        hints = OVF.inspect(self.logger, None)
        self.assertEqual(hints, OvfHints(ovf=None, uefi=False, bus="scsi"))
        self.logger.warning.assert_called_once()

    def test_inspect_uefi_sata(self):
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            ovf = td / "web.ovf"
            ovf.write_text(OVF_UEFI_SATA, encoding="utf-8")
            (td / "web-disk1.vmdk").write_bytes(b"x")
            (td / "web-disk2.vmdk").write_bytes(b"y")
            hints = OVF.inspect(self.logger, ovf)
            self.assertTrue(hints.uefi)
            self.assertEqual(hints.bus, "sata")
            self.logger.warning.assert_not_called()

    def test_referenced_disks(self):
        with tempfile.TemporaryDirectory() as td:
            ovf = Path(td) / "web.ovf"
            ovf.write_text(OVF_UEFI_SATA, encoding="utf-8")
            self.assertEqual(OVF.referenced_disks(ovf), ["web-disk1.vmdk", "web-disk2.vmdk"])

    def test_referenced_disks_ovf2_namespace(self):
        ovf2 = OVF_UEFI_SATA.replace("http://schemas.dmtf.org/ovf/envelope/1", "http://schemas.dmtf.org/ovf/envelope/2")
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            ovf = td / "web.ovf"
            ovf.write_text(ovf2, encoding="utf-8")
            (td / "web-disk1.vmdk").write_bytes(b"x")
            self.assertEqual(OVF.referenced_disks(ovf), ["web-disk1.vmdk", "web-disk2.vmdk"])
            OVF.inspect(self.logger, ovf)
            warnings = [call.args[0] for call in self.logger.warning.call_args_list]
            self.assertTrue(any("web-disk2.vmdk" in w for w in warnings))

    def test_missing_referenced_disk_warns(self):
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            ovf = td / "web.ovf"
            ovf.write_text(OVF_UEFI_SATA, encoding="utf-8")
            (td / "web-disk1.vmdk").write_bytes(b"x")
            OVF.inspect(self.logger, ovf)
            warnings = [call.args[0] for call in self.logger.warning.call_args_list]
            self.assertTrue(any("web-disk2.vmdk" in w for w in warnings))

    def test_invalid_xml_still_uses_keywords(self):
        with tempfile.TemporaryDirectory() as td:
            ovf = Path(td) / "broken.ovf"
            ovf.write_text('<Envelope firmware="efi" sata', encoding="utf-8")
            hints = OVF.inspect(logging.getLogger("ova2pve.test"), ovf)
            self.assertTrue(hints.uefi)
            self.assertEqual(hints.bus, "sata")


if __name__ == "__main__":
    unittest.main()
