#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Regenerates initramfs images with mkinitcpio.
"""

from pathlib import Path
from typing import List

from . import config as cfg
from . import core
from . import kernels
from . import ui
from .results import CommandResult, StageStatus


def preset_for_image(image: Path) -> str:
    """vmlinuz-linux-lts -> linux-lts"""
    return image.name[len(kernels.IMAGE_PREFIX):]

def rebuild_initramfs() -> StageStatus:
    """
    Runs `mkinitcpio -P`. If that fails every preset is rebuilt on its own so
    one broken kernel does not block the others.
    """
    ui.print_section_header("Rebuilding initramfs for all kernels")
    boot_dir: Path = cfg.get_boot_dir()
    default_kernel: str = str(cfg.get_setting("default_kernel"))

    images: List[Path] = kernels.boot_images(boot_dir)
    if not images:
        ui.warning(f"No kernel files found in {boot_dir}. Cannot rebuild initramfs.")
        ui.warning(f"Try reinstalling your kernel package with: sudo pacman -S {default_kernel}")
        return StageStatus.FAILURE

    # -P builds every preset in /etc/mkinitcpio.d
    bulk: CommandResult = core.run_command(["mkinitcpio", "-P"], show_spinner=False)
    if bulk:
        return StageStatus.SUCCESS

    ui.warning("Failed to rebuild all initramfs images. Trying individual kernels...")
    failed: List[str] = []
    for image in images:
        preset: str = preset_for_image(image)
        ui.status(f"Rebuilding initramfs for kernel {preset}")
        result: CommandResult = core.run_command(["mkinitcpio", "-p", preset], show_spinner=False)
        if not result:
            ui.warning(f"Failed to rebuild initramfs for {preset}")
            failed.append(preset)

    if failed:
        ui.warning(f"Initramfs rebuild had issues for: {', '.join(failed)}")
        return StageStatus.FAILURE
    return StageStatus.WARNING
