#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main entry point for safe-update, a careful Arch Linux system update.
Runs every update stage in order and exits with the worst severity seen:
0 clean, 1 recoverable issues, 2 boot files still missing.
"""

import sys
import argparse
import time
import traceback
from pathlib import Path
from typing import Any, Callable, List, Optional

from .modules import config as cfg
from .modules import ui
from .modules import steps
from .modules import bootspace
from .modules import update
from .modules import kernels
from .modules import initramfs
from .modules import bootloader
from .modules import theme
from .modules.results import RunReport, StageStatus


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command-line arguments."""
    parser = argparse.ArgumentParser(description='Safe Arch Linux update with kernel handling')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without changing the system'
    )
    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='JSON file overriding the default settings'
    )
    return parser.parse_args(argv)


def _announce(stage: str) -> None:
    index: int = cfg.UPDATE_STAGES.index(stage)
    ui.print_color(f"[{index}/{len(cfg.UPDATE_STAGES) - 1}] {stage}", ui.Colors.GREY)

def run_stage(report: RunReport, stage: str, func: Callable[..., StageStatus], *args: Any) -> StageStatus:
    """
    Runs one stage and records its status. An unexpected exception counts as
    a recoverable failure so that the remaining stages still run.
    """
    _announce(stage)
    try:
        status: StageStatus = func(*args)
    except update.UpdateCancelled:
        raise
    except Exception as e:
        ui.error(f"Stage {stage} failed unexpectedly: {e}")
        traceback.print_exc()
        status = StageStatus.FAILURE
    report.record(stage, status)
    if status is StageStatus.FAILURE:
        ui.warning(f"{stage} had issues but continuing")
    sys.stdout.write("\n")
    return status

def run_pipeline(report: RunReport) -> RunReport:
    """Runs every stage after the privilege check, up to the final verification."""
    run_stage(report, "check_dependencies", steps.check_dependencies)
    run_stage(report, "check_boot_space", bootspace.check_boot_space)
    run_stage(report, "check_news", update.check_news)

    _announce("check_desktop_version")
    try:
        desktop_status, plan = update.check_desktop_version()
    except Exception as e:
        ui.error(f"Desktop version check failed unexpectedly: {e}")
        traceback.print_exc()
        desktop_status, plan = StageStatus.FAILURE, update.UpdatePlan()
    report.record("check_desktop_version", desktop_status)
    sys.stdout.write("\n")

    run_stage(report, "perform_update", update.perform_update, plan)
    run_stage(report, "check_kernel_files", kernels.check_kernel_files)
    run_stage(report, "rebuild_initramfs", initramfs.rebuild_initramfs)
    run_stage(report, "update_bootloader", bootloader.update_bootloader)
    run_stage(report, "preserve_login_theme", theme.preserve_login_theme)
    run_stage(report, "verify_boot_entries", bootloader.verify_boot_entries)
    run_stage(report, "cleanup_package_cache", steps.cleanup_package_cache)
    run_stage(report, "final_verification", steps.final_verification)
    return report


def main_orchestrator(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    cfg.set_dry_run_mode(args.dry_run)

    ui.print_header("Arch Linux Safe Update")
    if cfg.get_dry_run_mode():
        ui.print_color("DRY RUN MODE ENABLED. No changes will be made.", ui.Colors.YELLOW, bold=True, prefix=ui.WARNING_SYMBOL)

    _announce("check_root")
    if not steps.check_root():
        return 1

    if args.config is not None:
        cfg.load_settings(args.config)

    report: RunReport = RunReport()
    start_time: float = time.time()
    try:
        run_pipeline(report)
    except update.UpdateCancelled:
        return 0
    except KeyboardInterrupt:
        ui.warning("\nUpdate aborted by user (Ctrl+C). Re-run safe-update to finish.")
        return 1
    finally:
        duration: float = time.time() - start_time
        ui.print_color(f"Stages finished in {duration:.2f} seconds.", ui.Colors.MAGENTA)

    steps.print_summary(report)
    _announce("offer_reboot")
    steps.offer_reboot()
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main_orchestrator())
