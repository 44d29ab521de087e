import pytest

from safeupdate.modules import kernels
from safeupdate.modules.results import StageStatus


@pytest.mark.parametrize(
    "package, image, initramfs",
    [
        ("linux", "vmlinuz-linux", "initramfs-linux.img"),
        ("linux-lts", "vmlinuz-linux-lts", "initramfs-linux-lts.img"),
        ("linux-zen", "vmlinuz-linux-zen", "initramfs-linux-zen.img"),
        ("linux-hardened", "vmlinuz-linux-hardened", "initramfs-linux-hardened.img"),
        ("linux-surface", "vmlinuz-linux-surface", "initramfs-linux-surface.img"),
    ],
)
def test_kernel_boot_files(package, image, initramfs):
    files = kernels.kernel_boot_files(package)
    assert (files.image, files.initramfs) == (image, initramfs)


def test_protected_files_include_fallback_initramfs():
    names = kernels.protected_boot_files(["linux-lts"])
    assert names == {"vmlinuz-linux-lts", "initramfs-linux-lts.img", "initramfs-linux-lts-fallback.img"}


def test_kernel_changes():
    before = {"linux": "6.9.1.arch1-1", "linux-lts": "6.6.30-1"}
    after = {"linux": "6.9.2.arch1-1", "linux-lts": "6.6.30-1", "linux-zen": "6.9.2.zen1-1"}
    assert kernels.kernel_changes(before, after) == {
        "linux": "6.9.1.arch1-1 -> 6.9.2.arch1-1",
        "linux-zen": "installed 6.9.2.zen1-1",
    }
    assert kernels.kernel_changes(after, after) == {}


def test_installed_kernels_ignores_missing_variants(fake):
    fake.installed = {"linux": "6.9.2-1", "linux-lts": "6.6.30-1", "vim": "9.1"}
    assert kernels.installed_kernels() == {"linux": "6.9.2-1", "linux-lts": "6.6.30-1"}


def test_missing_image_triggers_reinstall(fake, boot_dir):
    fake.installed = {"linux": "6.9.2-1"}
    status = kernels.check_kernel_files()
    assert fake.commands_starting("pacman", "-S") == [["pacman", "-S", "--noconfirm", "linux"]]
    assert (boot_dir / "vmlinuz-linux").is_file()
    assert status is StageStatus.SUCCESS


def test_present_images_cause_no_reinstall(fake, boot_dir):
    fake.installed = {"linux": "6.9.2-1", "linux-lts": "6.6.30-1"}
    fake.add_kernel_files("linux")
    fake.add_kernel_files("linux-lts")
    assert kernels.check_kernel_files() is StageStatus.SUCCESS
    assert not fake.ran("pacman", "-S")


def test_only_the_missing_variant_is_reinstalled(fake, boot_dir):
    fake.installed = {"linux": "6.9.2-1", "linux-zen": "6.9.2-1"}
    fake.add_kernel_files("linux")
    kernels.check_kernel_files()
    assert fake.commands_starting("pacman", "-S") == [["pacman", "-S", "--noconfirm", "linux-zen"]]


def test_no_kernel_installed_installs_default(fake, boot_dir):
    status = kernels.check_kernel_files()
    assert fake.commands_starting("pacman", "-S") == [["pacman", "-S", "--noconfirm", "linux"]]
    assert status is StageStatus.SUCCESS


def test_forced_reinstall_when_images_stay_missing(fake, boot_dir):
    fake.installed = {"linux": "6.9.2-1"}
    fake.install_creates_images = False
    status = kernels.check_kernel_files()
    assert ["pacman", "-S", "--noconfirm", "--overwrite", "*", "linux"] in fake.commands
    assert status is StageStatus.CRITICAL


def test_forced_reinstall_recovers_to_failure(fake, boot_dir):
    fake.installed = {"linux-lts": "6.6.30-1"}
    fake.failing = {("pacman", "-S", "--noconfirm", "linux-lts")}
    status = kernels.check_kernel_files()
    assert (boot_dir / "vmlinuz-linux").is_file()
    assert status is StageStatus.FAILURE


def test_failed_reinstall_is_not_reported_as_restored(fake, boot_dir, capsys):
    fake.installed = {"linux": "6.9.2-1", "linux-zen": "6.9.2-1"}
    fake.add_kernel_files("linux")
    fake.failing = {("pacman", "-S", "--noconfirm", "linux-zen")}
    assert kernels.check_kernel_files() is StageStatus.FAILURE
    out = capsys.readouterr().out
    assert "Some kernel reinstalls failed" in out
    assert "missing and reinstalled" not in out


def test_each_installed_kernel_is_checked(fake, boot_dir, capsys):
    fake.installed = {"linux": "6.9.2-1", "linux-lts": "6.6.30-1"}
    fake.add_kernel_files("linux")
    fake.add_kernel_files("linux-lts")
    kernels.check_kernel_files()
    out = capsys.readouterr().out
    assert f"Checking kernel file: {boot_dir / 'vmlinuz-linux'} for package linux" in out
    assert f"Checking kernel file: {boot_dir / 'vmlinuz-linux-lts'} for package linux-lts" in out
