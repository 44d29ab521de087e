#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Boot partition space checks and cleanup.

The initramfs rebuild needs headroom on the boot partition. When free space
is low this module removes stale kernel images and initramfs files, but
never one that belongs to an installed kernel package.
"""

import fnmatch
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set

from . import config as cfg
from . import core
from . import kernels
from . import ui
from .results import CommandResult, StageStatus

MIB: int = 1024 * 1024


@dataclass(frozen=True)
class BootSpace:
    device: str
    available_mb: int


def read_boot_space(boot_dir: Path) -> Optional[BootSpace]:
    """Reads the device and free MiB of the filesystem holding `boot_dir` from df."""
    result: CommandResult = core.query(["df", "-m", "-P", str(boot_dir)])
    if not result.succeeded:
        ui.error(f"Could not read free space of {boot_dir}: {result.message}")
        return None
    lines: List[str] = [line for line in result.stdout.splitlines() if line.strip()]
    # Filesystem 1048576-blocks Used Available Capacity Mounted on
    if len(lines) < 2:
        ui.error(f"Unexpected df output for {boot_dir}")
        return None
    fields: List[str] = lines[-1].split()
    try:
        return BootSpace(device=fields[0], available_mb=int(fields[3]))  # Filesystem, Available
    except (IndexError, ValueError):
        ui.error(f"Unexpected df output for {boot_dir}: {lines[-1]}")
        return None

def remove_backup_dirs(boot_dir: Path) -> int:
    """Removes leftover kernel backup directories. Returns how many were removed."""
    pattern: str = str(cfg.get_setting("backup_dir_pattern"))
    backups: List[Path] = sorted(p for p in boot_dir.glob(pattern) if p.is_dir())
    if backups:
        ui.status("Removing all kernel backup directories...")
    removed: int = 0
    for backup in backups:
        if core.remove_path(backup):
            removed += 1
    return removed

def find_large_files(boot_dir: Path) -> List[Path]:
    """
    Files over the configured size that are not kernel images, initramfs
    images, bootloader or EFI files, or explicitly excluded by name.
    """
    min_bytes: int = int(cfg.get_setting("large_file_min_mb")) * MIB
    exclusions: List[str] = list(cfg.get_setting("large_file_exclusions"))
    found: List[Path] = []
    for path in sorted(boot_dir.rglob("*")):
        if not path.is_file() or path.is_symlink():
            continue
        rel: str = str(path.relative_to(boot_dir))
        if "grub" in rel or "EFI" in rel:
            continue
        if kernels.is_kernel_file(path):
            continue
        if any(fnmatch.fnmatch(path.name, pattern) for pattern in exclusions):
            continue
        if path.stat().st_size > min_bytes:
            found.append(path)
    return found

def stale_kernel_files(boot_dir: Path, protected: Set[str]) -> List[Path]:
    """Kernel and initramfs images under `boot_dir` whose names are not protected."""
    return sorted(
        p for p in boot_dir.rglob("*")
        if p.is_file() and kernels.is_kernel_file(p) and p.name not in protected
    )

def _offer_large_file_removal(boot_dir: Path) -> None:
    ui.status(f"Checking for other large files in {boot_dir}...")
    large_files: List[Path] = find_large_files(boot_dir)
    if not large_files:
        return
    ui.warning("Found large files that may be removed to free space:")
    for path in large_files:
        ui.print_color(f"  {path}", ui.Colors.YELLOW)
    if ui.prompt_yes_no("Remove these files?", default_yes=False):
        for path in large_files:
            core.remove_path(path)
        ui.status("Large files removed")

def _remove_stale_kernel_files(boot_dir: Path) -> None:
    installed: List[str] = list(kernels.installed_kernels())
    if not installed:
        ui.warning("No installed kernel package detected; leaving kernel files untouched.")
        return
    # image, initramfs and fallback initramfs of every installed kernel
    protected: Set[str] = kernels.protected_boot_files(installed)
    ui.status(f"Preserving essential kernel files: {' '.join(sorted(protected)) or '(none)'}")
    for path in sorted(p for p in boot_dir.rglob("*") if p.is_file() and kernels.is_kernel_file(p)):
        if path.name in protected:
            ui.status(f"Preserving current kernel file: {path}")
    for path in stale_kernel_files(boot_dir, protected):
        ui.status(f"Removing old kernel file: {path}")
        core.remove_path(path)


def check_boot_space() -> StageStatus:
    ui.print_section_header("Checking boot partition space")
    boot_dir: Path = cfg.get_boot_dir()

    before: Optional[BootSpace] = read_boot_space(boot_dir)
    if before is None:
        return StageStatus.FAILURE
    ui.status(f"Boot partition ({before.device}) has {before.available_mb}MB available")

    remove_backup_dirs(boot_dir)

    if before.available_mb >= int(cfg.get_setting("cleanup_threshold_mb")):
        return StageStatus.SUCCESS

    ui.warning("Low space on boot partition. Performing cleanup...")
    _offer_large_file_removal(boot_dir)
    _remove_stale_kernel_files(boot_dir)

    after: Optional[BootSpace] = read_boot_space(boot_dir)
    if after is None:
        return StageStatus.FAILURE
    ui.status(f"After cleanup: Boot partition has {after.available_mb}MB available")

    if after.available_mb < int(cfg.get_setting("critical_threshold_mb")):
        ui.error("CRITICAL: Boot partition still low on space after cleanup!")
        ui.warning("Consider increasing the size of your boot partition")
        ui.warning("or removing some non-essential files manually.")
        return StageStatus.WARNING
    return StageStatus.SUCCESS
