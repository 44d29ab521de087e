#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
News check, desktop environment version check and the system upgrade.

The version check produces an UpdatePlan that is handed to perform_update;
no other state passes between the two stages.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from . import config as cfg
from . import core
from . import kernels
from . import pacman
from . import ui
from .results import CommandResult, StageStatus


class UpdateCancelled(Exception):
    """Raised when the operator declines to continue with the update."""


@dataclass(frozen=True)
class UpdatePlan:
    exclude_desktop: bool = False
    desktop_packages: Tuple[str, ...] = ()

    @property
    def ignore_args(self) -> List[str]:
        if not self.exclude_desktop or not self.desktop_packages:
            return []
        return ["--ignore", ",".join(self.desktop_packages)]


def _aur_helper_user() -> Optional[str]:
    """The non-root account the AUR helper should run as, or None."""
    helper: str = str(cfg.get_setting("aur_helper"))
    if not core.command_exists(helper):
        return None
    user: Optional[str] = core.invoking_user()
    if not user or user == "root":
        ui.warning(f"Cannot determine a non-root invoking user; not running {helper}.")
        return None
    return user


def check_news() -> StageStatus:
    """
    Shows Arch news through the AUR helper, then asks whether to go on.
    Raises UpdateCancelled if the operator says no.
    """
    ui.print_section_header("Checking for important Arch news")
    helper: str = str(cfg.get_setting("aur_helper"))
    status: StageStatus = StageStatus.SUCCESS

    if not core.command_exists(helper):
        ui.warning(f"{helper} not found, skipping news check. Consider installing {helper} for better updates.")
        status = StageStatus.WARNING
    else:
        user: Optional[str] = _aur_helper_user()
        if user is None:
            status = StageStatus.WARNING
        else:
            result: CommandResult = core.run_as_user([helper, "-Pw"], user, destructive=False, show_spinner=False)
            if not result:
                ui.warning(f"News check failed: {result.message}")
                status = StageStatus.FAILURE

    if not ui.prompt_yes_no("Continue with update?", default_yes=False):
        ui.status("Update cancelled.")
        raise UpdateCancelled()
    return status


def check_desktop_version() -> Tuple[StageStatus, UpdatePlan]:
    """
    Compares the installed desktop shell version with the one in the sync
    databases and asks whether the desktop packages should be upgraded.
    Equal versions never prompt and leave the desktop in the upgrade.
    """
    ui.print_section_header("Checking desktop environment version")
    version_pkg: str = str(cfg.get_setting("desktop_version_package"))
    desktop_pkgs: Tuple[str, ...] = tuple(cfg.get_setting("desktop_packages"))
    include_all: UpdatePlan = UpdatePlan(exclude_desktop=False, desktop_packages=desktop_pkgs)

    current: Optional[str] = pacman.installed_version(version_pkg)
    if current is None:
        ui.status("GNOME Desktop Environment not detected on this system")
        return StageStatus.SUCCESS, include_all

    pacman.refresh_databases(quiet=True)
    latest: Optional[str] = pacman.available_version(version_pkg)

    ui.status(f"Current GNOME version: {current}")
    ui.status(f"Latest GNOME version available: {latest or 'unknown'}")

    if latest is None:
        ui.warning(f"Could not determine the available version of {version_pkg}; it will be updated normally.")
        return StageStatus.WARNING, include_all

    if current == latest:
        ui.status("GNOME is already at the latest version")
        return StageStatus.SUCCESS, include_all

    if ui.prompt_yes_no("Update GNOME to latest version?", default_yes=False):
        ui.status("Will update GNOME to latest version during system update...")
        return StageStatus.SUCCESS, include_all

    ui.status("GNOME will NOT be updated to the latest version...")
    return StageStatus.SUCCESS, UpdatePlan(exclude_desktop=True, desktop_packages=desktop_pkgs)


def _run_upgrade(plan: UpdatePlan) -> bool:
    helper: str = str(cfg.get_setting("aur_helper"))
    ignore_args: List[str] = plan.ignore_args

    user: Optional[str] = _aur_helper_user()
    if user is not None:
        ui.status(f"Using {helper} for system update (running as {user})")
        result: CommandResult = core.run_as_user([helper, "-Syu", "--noconfirm"] + ignore_args, user, show_spinner=False)
        if result:
            return True
        ui.warning(f"{helper} update failed! Falling back to pacman...")

    # pacman as root whenever the helper path did not succeed
    result = pacman.full_upgrade(ignore_args)
    if not result:
        ui.error(f"pacman update failed! ({result.message})")
        return False
    return True

def perform_update(plan: UpdatePlan) -> StageStatus:
    """
    Refreshes the databases and upgrades the system, preferring the AUR
    helper and falling back to pacman with the same exclusions. Reports any
    kernel package that changed.
    """
    ui.print_section_header("Performing full system update")
    if plan.exclude_desktop:
        ui.status("Excluding GNOME packages from update...")

    kernels_before: Dict[str, str] = kernels.installed_kernels()

    ui.status("Updating pacman databases...")
    refreshed: CommandResult = pacman.refresh_databases()
    if not refreshed:
        ui.warning(f"Database refresh failed: {refreshed.message}")

    upgraded: bool = _run_upgrade(plan)

    changes: Dict[str, str] = kernels.kernel_changes(kernels_before, kernels.installed_kernels())
    if changes:
        for pkg, change in changes.items():
            ui.status(f"Kernel update detected: {pkg} {change}")
    else:
        ui.status("No kernel update detected")

    if not upgraded:
        ui.warning("System update had issues, but we'll continue with kernel checks")
        return StageStatus.FAILURE
    return StageStatus.SUCCESS
