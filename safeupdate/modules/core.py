#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Core helpers for safe-update: command execution with dry run support,
privilege handling and the few filesystem mutations the stages perform.

Nothing in here raises for a failed command. Callers receive a CommandResult
and decide how serious the failure is.
"""

import os
import shutil
import stat
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Dict, Union

from . import config as cfg
from . import ui
from .results import CommandResult


def run_command(
    command: List[str],
    destructive: bool = True,
    capture_output: bool = False,
    show_spinner: bool = True,
    env: Optional[Dict[str, str]] = None,
    retry_count: int = 1,
    retry_delay: float = 3.0,
    custom_spinner_message: Optional[str] = None,
    quiet: bool = False
) -> CommandResult:
    """
    Runs a command and reports the outcome as a CommandResult.

    Destructive commands are only printed in dry run mode. Read-only queries
    (destructive=False) always run. A missing executable is reported as a
    failed result with returncode 127.
    """
    cmd_str: str = ' '.join(command)

    if cfg.get_dry_run_mode() and destructive:
        ui.print_dry_run_command(cmd_str)
        return CommandResult(True, message=f"dry run: {cmd_str}")

    if not quiet:
        ui.print_command_info(cmd_str)

    result: CommandResult = CommandResult(False, message=f"{cmd_str} was not run")
    for attempt in range(max(retry_count, 1)):
        spinner: Optional[ui.Spinner] = None
        if show_spinner and capture_output:
            spinner_msg: str = custom_spinner_message if custom_spinner_message else (cmd_str[:70] + "..." if len(cmd_str) > 70 else cmd_str)
            spinner = ui.Spinner(message=spinner_msg)
            spinner.start()
        try:
            process: subprocess.CompletedProcess = subprocess.run(
                command,
                check=False,
                capture_output=capture_output,
                text=True,
                env=env
            )
        except FileNotFoundError:
            return CommandResult(False, message=f"Command not found: {command[0]}", returncode=127)
        except OSError as e:
            return CommandResult(False, message=f"Could not run {cmd_str}: {e}", returncode=126)
        finally:
            if spinner:
                spinner.stop()

        stdout: str = process.stdout or ""
        stderr: str = process.stderr or ""
        if process.returncode == 0:
            return CommandResult(True, message=f"{cmd_str} succeeded", returncode=0, stdout=stdout, stderr=stderr)

        result = CommandResult(
            False,
            message=f"{cmd_str} failed with exit code {process.returncode}",
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr
        )
        if attempt < retry_count - 1:
            ui.warning(f"Command failed (attempt {attempt + 1}/{retry_count}): {cmd_str}")
            ui.print_color(f"Retrying in {retry_delay} seconds...", ui.Colors.BLUE)
            time.sleep(retry_delay)
    return result

def query(command: List[str]) -> CommandResult:
    """Runs a read-only command silently and captures its output."""
    return run_command(command, destructive=False, capture_output=True, show_spinner=False, quiet=True)

def command_exists(name: str) -> bool:
    return shutil.which(name) is not None

def is_root() -> bool:
    return os.geteuid() == 0

def user_exists(username: str) -> bool:
    if not username or not username.strip():
        return False
    return query(["id", "-u", username]).succeeded

def invoking_user() -> Optional[str]:
    """
    Returns the login name of the person who started the run, looking past
    sudo. None when it cannot be determined.
    """
    logname: CommandResult = query(["logname"])
    if logname.succeeded and logname.stdout.strip():
        return logname.stdout.strip()
    sudo_user: Optional[str] = os.environ.get("SUDO_USER")
    return sudo_user or None

def run_as_user(command: List[str], username: str, **kwargs) -> CommandResult:
    """
    Executes a command as a designated non-root user. Requires root to switch
    identity; refuses to run anything as root itself.
    """
    if username == "root":
        return CommandResult(False, message="Refusing to run user command as root", returncode=1)
    if not user_exists(username):
        return CommandResult(False, message=f"Target user '{username}' does not exist", returncode=1)
    return run_command(["sudo", "-u", username, "--"] + command, **kwargs)

def remove_path(path: Path) -> bool:
    """Deletes a file or a directory tree. Prints the action in dry run mode."""
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"rm -rf {path}")
        return True
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        ui.warning(f"Could not remove {path}: {e}")
        return False

def add_mode_recursive(root: Path, bits: int, dirs_only: bool = False) -> bool:
    """
    ORs `bits` into the mode of `root` and everything below it, like
    `chmod -R a+r`. With dirs_only only directories are touched. Symlinks
    are skipped. Returns False if any entry could not be changed.
    """
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"chmod -R +{oct(bits)} {root}{' (directories)' if dirs_only else ''}")
        return True

    ok: bool = True

    def _chmod(target: Union[str, Path]) -> None:
        nonlocal ok
        try:
            st = os.lstat(target)
            if stat.S_ISLNK(st.st_mode):
                return
            os.chmod(target, stat.S_IMODE(st.st_mode) | bits)
        except OSError as e:
            ui.warning(f"Failed to set permissions on {target}: {e}")
            ok = False

    _chmod(root)
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            _chmod(os.path.join(dirpath, name))
        if not dirs_only:
            for name in filenames:
                _chmod(os.path.join(dirpath, name))
    return ok
