#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Keeps the GDM login screen background after package updates.

Every sub-step is best-effort: a failure is reported and the remaining steps
still run.
"""

import os
import stat
from pathlib import Path
from typing import List

from . import config as cfg
from . import core
from . import ui
from .results import CommandResult, StageStatus

READ_ALL: int = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
TRAVERSE_ALL: int = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def display_manager_is(name: str) -> bool:
    """True when the display-manager.service symlink points at `name`'s unit."""
    unit: Path = Path(str(cfg.get_setting("display_manager_unit")))
    if not unit.exists() and not unit.is_symlink():
        return False
    try:
        target: str = os.readlink(unit) if unit.is_symlink() else unit.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        ui.warning(f"Could not inspect {unit}: {e}")
        return False
    return name in target

def _refresh_theme_config(dm: str) -> bool:
    if core.command_exists("set-gdm-theme"):
        ui.status("Reapplying GDM theme settings using gdm-tools...")
        ok: bool = True
        result: CommandResult = core.run_command(["set-gdm-theme", "-b", "update"], show_spinner=False)
        if not result:
            ui.warning("Failed to update GDM theme backup")
            ok = False
        result = core.run_command(["set-gdm-theme", "-b", "restore"], show_spinner=False)
        if not result:
            ui.warning("Failed to restore GDM theme from backup")
            ok = False
        return ok

    if Path(str(cfg.get_setting("dconf_db_dir"))).exists():
        ui.status(f"Refreshing {dm.upper()} dconf database...")
        result = core.run_command(["dconf", "update"], show_spinner=False)
        if not result:
            ui.warning("Failed to update dconf database")
            return False
    return True

def _reload_display_manager(dm: str) -> None:
    service: str = f"{dm}.service"
    if core.query(["systemctl", "is-active", service]).succeeded:
        ui.status(f"Requesting {dm.upper()} to reload settings...")
        # Reload failures are not actionable here.
        core.run_command(["systemctl", "reload", service], show_spinner=False, capture_output=True)

def _fix_background_permissions(dm_user: str) -> bool:
    ok: bool = True
    dirs: List[Path] = [Path(d) for d in cfg.get_setting("background_dirs") if Path(d).is_dir()]
    for bg_dir in dirs:
        ui.status(f"Ensuring proper permissions on background directory: {bg_dir}")
        if not core.add_mode_recursive(bg_dir, READ_ALL):
            ui.warning(f"Failed to set permissions on {bg_dir}")
            ok = False

    if core.user_exists(dm_user):
        ui.status(f"Ensuring {dm_user} user can access backgrounds...")
        for bg_dir in dirs:
            core.add_mode_recursive(bg_dir, TRAVERSE_ALL, dirs_only=True)
    return ok


def preserve_login_theme() -> StageStatus:
    ui.print_section_header("Preserving login screen background")
    dm: str = str(cfg.get_setting("display_manager_name"))

    if not display_manager_is(dm):
        ui.warning(f"{dm.upper()} display manager not detected. Login background might not be preserved.")
        return StageStatus.WARNING

    ok: bool = _refresh_theme_config(dm)
    _reload_display_manager(dm)
    if not _fix_background_permissions(str(cfg.get_setting("display_manager_user"))):
        ok = False

    ui.status(f"{dm.upper()} background preservation complete")
    return StageStatus.SUCCESS if ok else StageStatus.WARNING
