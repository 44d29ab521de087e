#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Kernel package knowledge: which boot files belong to which kernel package,
which kernels are installed, and the verify/repair stage that makes sure
every installed kernel has its image in the boot directory.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Set

from . import config as cfg
from . import ui
from . import pacman
from .results import CommandResult, StageStatus

IMAGE_PREFIX: str = "vmlinuz-"
INITRAMFS_PREFIX: str = "initramfs-"
INITRAMFS_SUFFIX: str = ".img"


@dataclass(frozen=True)
class KernelBootFiles:
    package: str
    image: str
    initramfs: str

    @property
    def fallback_initramfs(self) -> str:
        return f"{INITRAMFS_PREFIX}{self.package}-fallback{INITRAMFS_SUFFIX}"

    def names(self) -> Set[str]:
        return {self.image, self.initramfs, self.fallback_initramfs}


def kernel_boot_files(package: str) -> KernelBootFiles:
    """
    Maps a kernel package name to the file names its mkinitcpio preset
    produces. linux, linux-lts, linux-zen and linux-hardened all follow the
    vmlinuz-<pkg> / initramfs-<pkg>.img convention, and so does any other
    kernel package.
    """
    return KernelBootFiles(
        package=package,
        image=f"{IMAGE_PREFIX}{package}",
        initramfs=f"{INITRAMFS_PREFIX}{package}{INITRAMFS_SUFFIX}"
    )

def installed_kernels() -> Dict[str, str]:
    """{package: version} for the configured kernel packages that are installed."""
    return pacman.installed_packages(list(cfg.get_setting("kernel_packages")))

def protected_boot_files(packages: List[str]) -> Set[str]:
    """File names that must survive any boot directory cleanup."""
    names: Set[str] = set()
    for pkg in packages:
        names |= kernel_boot_files(pkg).names()
    return names

def is_kernel_file(path: Path) -> bool:
    name: str = path.name
    return name.startswith(IMAGE_PREFIX) or (
        name.startswith(INITRAMFS_PREFIX) and name.endswith(INITRAMFS_SUFFIX)
    )

def boot_images(boot_dir: Path) -> List[Path]:
    return sorted(p for p in boot_dir.glob(f"{IMAGE_PREFIX}*") if p.is_file())

def initramfs_images(boot_dir: Path) -> List[Path]:
    return sorted(p for p in boot_dir.glob(f"{INITRAMFS_PREFIX}*{INITRAMFS_SUFFIX}") if p.is_file())

def kernel_changes(before: Dict[str, str], after: Dict[str, str]) -> Dict[str, str]:
    """
    Describes how the installed kernel set changed between two snapshots,
    e.g. {"linux": "6.9.1 -> 6.9.2", "linux-lts": "installed 6.6.30"}.
    """
    changes: Dict[str, str] = {}
    for pkg in sorted(set(before) | set(after)):
        old, new = before.get(pkg), after.get(pkg)
        if old == new:
            continue
        if old is None:
            changes[pkg] = f"installed {new}"
        elif new is None:
            changes[pkg] = f"removed {old}"
        else:
            changes[pkg] = f"{old} -> {new}"
    return changes


def check_kernel_files() -> StageStatus:
    """
    Reinstalls any installed kernel whose image is missing from the boot
    directory, installs the default kernel when none is installed, and
    escalates to a forced reinstall if no image exists afterwards.
    """
    ui.print_section_header("Checking kernel files")
    boot_dir: Path = cfg.get_boot_dir()
    default_kernel: str = str(cfg.get_setting("default_kernel"))
    had_failure: bool = False

    installed: Dict[str, str] = installed_kernels()
    if not installed:
        ui.warning(f"No kernel packages found. Installing the standard {default_kernel} kernel...")
        result: CommandResult = pacman.install([default_kernel])
        if not result:
            ui.error(f"Failed to install {default_kernel}: {result.message}")
            had_failure = True
    else:
        any_missing: bool = False
        reinstall_failed: bool = False
        for pkg in installed:
            image: Path = boot_dir / kernel_boot_files(pkg).image
            ui.print_step_info(f"Checking kernel file: {image} for package {pkg}")
            if image.is_file():
                ui.status(f"Kernel file {image} exists for package {pkg}")
                continue
            any_missing = True
            ui.warning(f"Kernel file {image} is missing for package {pkg}")
            ui.status(f"Reinstalling {pkg} to restore kernel files...")
            result = pacman.install([pkg])
            if not result:
                ui.error(f"Reinstalling {pkg} failed: {result.message}")
                had_failure = True
                reinstall_failed = True
        if any_missing and reinstall_failed:
            ui.warning("Some kernel reinstalls failed. Verifying boot images...")
        elif any_missing:
            ui.status("Kernel files were missing and reinstalled. Verifying...")

    if not boot_images(boot_dir) and not cfg.get_dry_run_mode():
        ui.error(f"Kernel files still missing! Your {boot_dir} partition may have issues.")
        ui.status(f"Force-reinstalling {default_kernel} with --overwrite '*'...")
        pacman.install([default_kernel], overwrite_all=True)
        had_failure = True
        if not boot_images(boot_dir):
            ui.error(f"No kernel image in {boot_dir} after all repair attempts.")
            return StageStatus.CRITICAL

    return StageStatus.FAILURE if had_failure else StageStatus.SUCCESS
