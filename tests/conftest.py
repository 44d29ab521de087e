from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from safeupdate.modules import config as cfg
from safeupdate.modules import core
from safeupdate.modules import ui
from safeupdate.modules.results import CommandResult


class FakeSystem:
    """Stands in for the external tools. Records every command it is asked to run."""

    def __init__(self, boot_dir: Path):
        self.boot_dir = boot_dir
        self.commands: List[List[str]] = []
        self.installed: Dict[str, str] = {}
        self.available: Dict[str, str] = {}
        self.upgrades: Dict[str, str] = {}
        self.failing: Set[Tuple[str, ...]] = set()
        self.tools: Set[str] = set()
        self.users: Set[str] = {"root"}
        self.login: Optional[str] = None
        self.active_units: Set[str] = set()
        self.df_available: List[int] = [500]
        self.install_creates_images = True

    def add_kernel_files(self, pkg: str) -> None:
        self.boot_dir.mkdir(parents=True, exist_ok=True)
        (self.boot_dir / f"vmlinuz-{pkg}").write_bytes(b"kernel")
        (self.boot_dir / f"initramfs-{pkg}.img").write_bytes(b"initramfs")

    def ran(self, *prefix: str) -> bool:
        return any(tuple(cmd[: len(prefix)]) == prefix for cmd in self.commands)

    def commands_starting(self, *prefix: str) -> List[List[str]]:
        return [cmd for cmd in self.commands if tuple(cmd[: len(prefix)]) == prefix]

    def run_command(self, command, destructive=True, capture_output=False, **kwargs) -> CommandResult:
        command = list(command)
        if cfg.get_dry_run_mode() and destructive:
            return CommandResult(True, message="dry run")
        self.commands.append(command)
        for prefix in self.failing:
            if tuple(command[: len(prefix)]) == prefix:
                return CommandResult(False, message=f"{' '.join(command)} failed", returncode=1)

        if command[:2] == ["pacman", "-Q"]:
            names = command[2:]
            lines = [f"{n} {self.installed[n]}" for n in names if n in self.installed]
            all_found = len(lines) == len(names)
            return CommandResult(all_found, returncode=0 if all_found else 1, stdout="\n".join(lines))
        if command[:2] == ["pacman", "-Si"]:
            version = self.available.get(command[2])
            if version is None:
                return CommandResult(False, returncode=1)
            return CommandResult(True, stdout=f"Repository      : extra\nName            : {command[2]}\nVersion         : {version}\n")
        if command[:2] == ["pacman", "-S"]:
            pkgs = [a for a in command[2:] if not a.startswith("-") and a != "*"]
            for pkg in pkgs:
                self.installed.setdefault(pkg, "1.0-1")
                if pkg.startswith("linux") and self.install_creates_images:
                    self.add_kernel_files(pkg)
            return CommandResult(True)
        if command[:2] == ["pacman", "-Syu"] or "-Syu" in command:
            self.installed.update(self.upgrades)
            return CommandResult(True)
        if command[0] == "df":
            avail = self.df_available.pop(0) if len(self.df_available) > 1 else self.df_available[0]
            stdout = (
                "Filesystem     1048576-blocks  Used Available Capacity Mounted on\n"
                f"/dev/nvme0n1p1            511   {511 - avail}       {avail}      50% /boot\n"
            )
            return CommandResult(True, stdout=stdout)
        if command[0] == "id":
            return CommandResult(command[-1] in self.users, returncode=0 if command[-1] in self.users else 1)
        if command[0] == "logname":
            if self.login is None:
                return CommandResult(False, returncode=1)
            return CommandResult(True, stdout=f"{self.login}\n")
        if command[:2] == ["systemctl", "is-active"]:
            return CommandResult(command[2] in self.active_units, returncode=0 if command[2] in self.active_units else 3)
        return CommandResult(True)


class Prompts:
    def __init__(self):
        self.replies: Dict[str, bool] = {}
        self.asked: List[str] = []

    def __call__(self, question: str, default_yes: bool = False) -> bool:
        self.asked.append(question)
        for key, reply in self.replies.items():
            if key in question:
                return reply
        return default_yes


@pytest.fixture(autouse=True)
def clean_state():
    cfg.reset_settings()
    cfg.set_dry_run_mode(False)
    yield
    cfg.reset_settings()
    cfg.set_dry_run_mode(False)


@pytest.fixture(name="boot_dir")
def boot_dir_fixture(tmp_path):
    boot = tmp_path / "boot"
    boot.mkdir()
    cfg.update_setting("boot_dir", str(boot))
    cfg.update_setting("display_manager_unit", str(tmp_path / "display-manager.service"))
    cfg.update_setting("dconf_db_dir", str(tmp_path / "dconf" / "gdm.d"))
    cfg.update_setting("background_dirs", [str(tmp_path / "backgrounds")])
    return boot


@pytest.fixture(name="fake")
def fake_fixture(boot_dir, monkeypatch):
    system = FakeSystem(boot_dir)
    monkeypatch.delenv("SUDO_USER", raising=False)
    monkeypatch.setattr(core, "run_command", system.run_command)
    monkeypatch.setattr(core, "command_exists", lambda name: name in system.tools)
    return system


@pytest.fixture(name="prompts")
def prompts_fixture(monkeypatch):
    answers = Prompts()
    monkeypatch.setattr(ui, "prompt_yes_no", answers)
    return answers
