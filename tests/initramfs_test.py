from pathlib import Path

from safeupdate.modules import initramfs
from safeupdate.modules.results import StageStatus


def test_preset_for_image():
    assert initramfs.preset_for_image(Path("/boot/vmlinuz-linux-lts")) == "linux-lts"


def test_no_kernel_image_fails_fast(fake, boot_dir):
    assert initramfs.rebuild_initramfs() is StageStatus.FAILURE
    assert not fake.ran("mkinitcpio")


def test_bulk_rebuild(fake, boot_dir):
    fake.add_kernel_files("linux")
    assert initramfs.rebuild_initramfs() is StageStatus.SUCCESS
    assert fake.commands_starting("mkinitcpio") == [["mkinitcpio", "-P"]]


def test_bulk_failure_rebuilds_each_preset(fake, boot_dir):
    fake.add_kernel_files("linux")
    fake.add_kernel_files("linux-zen")
    fake.failing = {("mkinitcpio", "-P")}

    status = initramfs.rebuild_initramfs()

    assert fake.commands_starting("mkinitcpio", "-p") == [
        ["mkinitcpio", "-p", "linux"],
        ["mkinitcpio", "-p", "linux-zen"],
    ]
    assert status is StageStatus.WARNING


def test_one_broken_preset_does_not_stop_the_others(fake, boot_dir):
    fake.add_kernel_files("linux")
    fake.add_kernel_files("linux-lts")
    fake.failing = {("mkinitcpio", "-P"), ("mkinitcpio", "-p", "linux")}

    status = initramfs.rebuild_initramfs()

    assert ["mkinitcpio", "-p", "linux-lts"] in fake.commands
    assert status is StageStatus.FAILURE
