#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Thin wrappers around pacman and paccache. Queries never modify the system
and run even in dry run mode; everything else goes through core.run_command
as a destructive command.
"""

from typing import Dict, List, Optional

from . import core
from .results import CommandResult


def installed_packages(names: List[str]) -> Dict[str, str]:
    """
    Returns {package: version} for those of `names` that are installed.
    pacman exits non-zero when any name is missing but still lists the
    installed ones, so stdout is parsed regardless of the exit code.
    """
    if not names:
        return {}
    result: CommandResult = core.query(["pacman", "-Q"] + list(names))
    found: Dict[str, str] = {}
    for line in result.stdout.splitlines():
        parts: List[str] = line.split()  # "<name> <version>"
        if len(parts) >= 2 and parts[0] in names:
            found[parts[0]] = parts[1]
    return found

def installed_version(name: str) -> Optional[str]:
    return installed_packages([name]).get(name)

def is_installed(name: str) -> bool:
    return installed_version(name) is not None

def available_version(name: str) -> Optional[str]:
    """Version offered by the sync databases, from `pacman -Si`."""
    result: CommandResult = core.query(["pacman", "-Si", name])
    if not result.succeeded:
        return None
    for line in result.stdout.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "Version":
            return value.strip() or None
    return None

def refresh_databases(quiet: bool = False) -> CommandResult:
    return core.run_command(["pacman", "-Sy"], capture_output=quiet, show_spinner=quiet,
                            custom_spinner_message="Refreshing package databases")

def install(packages: List[str], overwrite_all: bool = False) -> CommandResult:
    """
    Installs or reinstalls packages without confirmation. overwrite_all adds
    --overwrite '*', which lets pacman replace files owned by nothing or by
    other packages.
    """
    cmd: List[str] = ["pacman", "-S", "--noconfirm"]
    if overwrite_all:
        cmd += ["--overwrite", "*"]
    return core.run_command(cmd + list(packages))

def full_upgrade(ignore_args: List[str]) -> CommandResult:
    return core.run_command(["pacman", "-Syu", "--noconfirm"] + list(ignore_args))

def prune_cache(keep: int) -> CommandResult:
    return core.run_command(["paccache", f"-rk{keep}"])
