#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
GRUB configuration regeneration and a read-only sanity check of the boot
entries for GRUB or systemd-boot.
"""

from pathlib import Path
from typing import List, Optional

from . import config as cfg
from . import core
from . import ui
from .results import CommandResult, StageStatus


def grub_config_candidates(boot_dir: Path) -> List[Path]:
    return [
        boot_dir / "grub" / "grub.cfg",
        boot_dir / "efi" / "EFI" / "arch" / "grub.cfg",  # EFI system partition mounted under /boot/efi
    ]

def loader_entries_dir(boot_dir: Path) -> Path:
    return boot_dir / "loader" / "entries"

def find_grub_config(boot_dir: Path) -> Optional[Path]:
    """Known locations first, then the first grub.cfg anywhere under boot_dir."""
    for candidate in grub_config_candidates(boot_dir):
        if candidate.is_file():
            return candidate
    ui.warning("GRUB config not found at standard locations")
    for found in sorted(boot_dir.rglob("grub.cfg")):
        if found.is_file():
            return found
    return None


def update_bootloader() -> StageStatus:
    ui.print_section_header("Updating GRUB configuration")
    boot_dir: Path = cfg.get_boot_dir()

    grub_cfg: Optional[Path] = find_grub_config(boot_dir)
    if grub_cfg is None:
        if loader_entries_dir(boot_dir).is_dir():
            ui.warning("No GRUB config found; systemd-boot entries are present, nothing to regenerate.")
            return StageStatus.WARNING
        ui.error("Could not find GRUB config file. You may need to update it manually.")
        return StageStatus.FAILURE

    result: CommandResult = core.run_command(["grub-mkconfig", "-o", str(grub_cfg)], show_spinner=False)
    if not result:
        ui.error(f"Failed to update GRUB config at {grub_cfg}! ({result.message})")
        return StageStatus.FAILURE
    return StageStatus.SUCCESS


def verify_boot_entries() -> StageStatus:
    """Checks that the detected bootloader has at least one entry. Never repairs."""
    ui.print_section_header("Verifying boot entries")
    boot_dir: Path = cfg.get_boot_dir()
    entries_dir: Path = loader_entries_dir(boot_dir)
    grub_cfg: Path = boot_dir / "grub" / "grub.cfg"

    if entries_dir.is_dir():
        ui.status("systemd-boot detected, checking entries...")
        if any(p.is_file() for p in entries_dir.glob("*.conf")):
            ui.status("Boot entries found")
            return StageStatus.SUCCESS
        ui.warning("No boot entries found for systemd-boot")
        return StageStatus.WARNING

    if grub_cfg.is_file():
        ui.status("GRUB detected, checking config...")
        try:
            content: str = grub_cfg.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            ui.warning(f"Could not read {grub_cfg}: {e}")
            return StageStatus.WARNING
        if "menuentry" in content:
            ui.status("GRUB entries found")
            return StageStatus.SUCCESS
        ui.warning("No menu entries found in GRUB config")
        return StageStatus.WARNING

    ui.warning("Unable to determine bootloader type")
    return StageStatus.WARNING
