#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
The small update stages that do not warrant a module of their own:
privilege and dependency checks, package cache cleanup, the final boot file
verification, the run summary and the reboot offer.
"""

from pathlib import Path

from . import config as cfg
from . import core
from . import kernels
from . import pacman
from . import ui
from .results import CommandResult, RunReport, StageStatus


def check_root() -> bool:
    if core.is_root():
        return True
    if cfg.get_dry_run_mode():
        ui.warning("Not running as root; continuing because this is a dry run.")
        return True
    ui.error("This script must be run as root")
    return False


def check_dependencies() -> StageStatus:
    ui.print_section_header("Checking for required utilities")
    if core.command_exists("paccache"):
        return StageStatus.SUCCESS

    dep: str = str(cfg.get_setting("cache_dependency_package"))
    ui.status(f"Installing {dep} for paccache utility...")
    result: CommandResult = pacman.install([dep])
    if not result:
        ui.warning(f"Some dependencies might be missing ({result.message})")
        return StageStatus.FAILURE
    return StageStatus.SUCCESS


def cleanup_package_cache() -> StageStatus:
    keep: int = int(cfg.get_setting("cache_keep_versions"))
    ui.print_section_header("Cleaning package cache")
    ui.status(f"Keeping the {keep} most recent version(s) of each package...")
    if not core.command_exists("paccache"):
        ui.warning("paccache not found, skipping package cache cleanup")
        return StageStatus.WARNING

    result: CommandResult = pacman.prune_cache(keep)
    if not result:
        ui.warning(f"Package cleanup failed: {result.message}")
        return StageStatus.FAILURE
    return StageStatus.SUCCESS


def final_verification() -> StageStatus:
    """Bootability check: a kernel image and an initramfs must both exist."""
    ui.print_section_header("Final system check")
    boot_dir: Path = cfg.get_boot_dir()
    if kernels.boot_images(boot_dir) and kernels.initramfs_images(boot_dir):
        ui.status(f"Kernel files and initramfs are now present in {boot_dir}")
        return StageStatus.SUCCESS
    ui.error("CRITICAL: Kernel files or initramfs still missing after all recovery attempts!")
    ui.error("Your system may not boot properly. Please address this manually.")
    return StageStatus.CRITICAL


def print_summary(report: RunReport) -> None:
    ui.print_separator()
    for stage, status in report.problems():
        ui.warning(f"{stage}: {status.value}")
    if report.exit_code == 0:
        ui.print_color("Safe update completed successfully!", ui.Colors.GREEN, bold=True, prefix=ui.SUCCESS_SYMBOL)
    else:
        ui.warning(f"Safe update completed with some issues (exit code: {report.exit_code})")


def offer_reboot() -> None:
    ui.status("It's recommended to reboot your system to use the updated kernel and modules.")
    if ui.prompt_yes_no("Reboot now?", default_yes=False):
        ui.status("Rebooting...")
        core.run_command(["systemctl", "reboot"], show_spinner=False)
    else:
        ui.status("Please remember to reboot soon to complete the update process.")
