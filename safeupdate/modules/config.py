#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Global run state, stage list and tunable settings for safe-update.

Settings default to the values the update procedure has always used. A JSON
file passed with --config may override any known key; nothing is read from
disk otherwise.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional

from . import ui


# --- Global Dry Run Flag ---
DRY_RUN_MODE: bool = False

# --- Update Stages, in execution order ---
UPDATE_STAGES: List[str] = [
    "check_root",              # 0
    "check_dependencies",      # 1
    "check_boot_space",        # 2
    "check_news",              # 3
    "check_desktop_version",   # 4
    "perform_update",          # 5
    "check_kernel_files",      # 6
    "rebuild_initramfs",       # 7
    "update_bootloader",       # 8
    "preserve_login_theme",    # 9
    "verify_boot_entries",     # 10
    "cleanup_package_cache",   # 11
    "final_verification",      # 12
    "offer_reboot"             # 13
]


def get_default_settings() -> Dict[str, Any]:
    """Returns a fresh copy of the default settings."""
    return {
        "boot_dir": "/boot",
        "cleanup_threshold_mb": 75,
        "critical_threshold_mb": 25,
        "large_file_min_mb": 10,
        "large_file_exclusions": [],
        "backup_dir_pattern": "backup-*",
        "kernel_packages": ["linux", "linux-lts", "linux-zen", "linux-hardened"],
        "default_kernel": "linux",
        "cache_dependency_package": "pacman-contrib",
        "cache_keep_versions": 1,
        "desktop_version_package": "gnome-shell",
        "desktop_packages": [
            "gnome-shell",
            "gnome-session",
            "gnome-settings-daemon",
            "gnome-control-center",
            "mutter"
        ],
        "aur_helper": "yay",
        "display_manager_unit": "/etc/systemd/system/display-manager.service",
        "display_manager_name": "gdm",
        "display_manager_user": "gdm",
        "dconf_db_dir": "/etc/dconf/db/gdm.d",
        "background_dirs": [
            "/usr/share/backgrounds",
            "/usr/share/gnome-background-properties",
            "/usr/share/gnome/backgrounds",
            "/usr/share/wallpapers",
            "/var/lib/gdm/.local/share/backgrounds"
        ]
    }

SETTINGS: Dict[str, Any] = get_default_settings()


def load_settings(path: Path) -> bool:
    """
    Overrides SETTINGS with the JSON object stored at `path`.
    Unknown keys are reported and skipped. Returns False if the file could
    not be used at all.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, ValueError) as e:  # ValueError covers bad JSON and bad UTF-8
        ui.warning(f"Could not load settings from {path} ({e}). Using defaults.")
        return False

    if not isinstance(data, dict):
        ui.warning(f"Settings file {path} must contain a JSON object. Using defaults.")
        return False

    defaults: Dict[str, Any] = get_default_settings()
    for key, value in data.items():
        if key not in defaults:
            ui.warning(f"Ignoring unknown setting '{key}' in {path}")
            continue
        if type(value) is not type(defaults[key]):
            ui.warning(f"Ignoring setting '{key}' in {path}: expected {type(defaults[key]).__name__}")
            continue
        update_setting(key, value)
    ui.status(f"Loaded settings from {path}")
    return True

def reset_settings() -> None:
    """Restores every setting to its default."""
    SETTINGS.clear()
    SETTINGS.update(get_default_settings())

def get_setting(key: str, default: Optional[Any] = None) -> Any:
    return SETTINGS.get(key, default)

def update_setting(key: str, value: Any) -> None:
    """Sets one setting for the rest of the run; tests use it to point paths at a scratch tree."""
    SETTINGS[key] = value

def get_boot_dir() -> Path:
    return Path(SETTINGS["boot_dir"])

def set_dry_run_mode(mode: bool) -> None:
    """Sets the global DRY_RUN_MODE."""
    global DRY_RUN_MODE
    DRY_RUN_MODE = mode

def get_dry_run_mode() -> bool:
    return DRY_RUN_MODE
