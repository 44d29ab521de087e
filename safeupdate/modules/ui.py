#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Console output for safe-update: color definitions, status symbols, styled
printing, the command spinner and yes/no prompts.
"""

import sys
import threading
import time
from typing import Optional, List as TypingList, TextIO

class Colors:
    """ANSI escape codes for terminal colors."""
    GREEN: str = '\033[0;32m'
    YELLOW: str = '\033[1;33m'
    RED: str = '\033[0;31m'
    CYAN: str = '\033[0;36m'
    BLUE: str = '\033[0;34m'
    MAGENTA: str = '\033[0;35m'
    GREY: str = '\033[0;90m'
    BOLD: str = '\033[1m'
    RESET: str = '\033[0m'

STATUS_SYMBOL: str = f"{Colors.GREEN}[*]{Colors.RESET}"
WARNING_SYMBOL: str = f"{Colors.YELLOW}[!]{Colors.RESET}"
ERROR_SYMBOL: str = f"{Colors.RED}[ERROR]{Colors.RESET}"
SUCCESS_SYMBOL: str = f"{Colors.GREEN}✓{Colors.RESET}"
PROGRESS_SYMBOL: str = f"{Colors.BLUE}▸{Colors.RESET}"

def print_color(
    text: str,
    color: str,
    bold: bool = False,
    prefix: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> None:
    """Prints text in a specified color and style."""
    out: TextIO = stream if stream is not None else sys.stdout
    style_str: str = Colors.BOLD if bold else ""
    prefix_str: str = f"{prefix} " if prefix else ""
    out.write(f"{prefix_str}{style_str}{color}{text}{Colors.RESET}\n")
    out.flush()

def status(message: str) -> None:
    print_color(message, Colors.GREEN, prefix=STATUS_SYMBOL)

def warning(message: str) -> None:
    print_color(message, Colors.YELLOW, prefix=WARNING_SYMBOL)

def error(message: str) -> None:
    print_color(message, Colors.RED, prefix=ERROR_SYMBOL, stream=sys.stderr)

def print_header(title: str) -> None:
    """Prints the main banner."""
    print_color(f"== {title} ==", Colors.MAGENTA, bold=True)
    sys.stdout.write("\n")
    sys.stdout.flush()

def print_section_header(title: str) -> None:
    """Prints a stage header."""
    print_color(f"-- {title} --", Colors.CYAN, bold=True)

def print_step_info(message: str) -> None:
    """Prints a detail line inside a stage."""
    print_color(message, Colors.CYAN, prefix=STATUS_SYMBOL)

def print_command_info(cmd_str: str) -> None:
    """Prints the command about to be executed."""
    print_color(f"running: {cmd_str}", Colors.GREY, prefix=PROGRESS_SYMBOL)

def print_dry_run_command(cmd_str: str) -> None:
    """Prints a command that dry run mode skipped."""
    print_color(f"Would execute: {cmd_str}", Colors.YELLOW, prefix=f"{Colors.BLUE}[DRY RUN]{Colors.RESET}")

def print_separator(char: str = "-", color: str = Colors.GREY, length: int = 50) -> None:
    print_color(char * length, color)


class Spinner:
    """A simple CLI spinner, active only when stdout is a TTY."""
    def __init__(
        self,
        message: str = "Processing...",
        delay: float = 0.1,
        spinner_chars: Optional[TypingList[str]] = None
    ) -> None:
        self.spinner_chars: TypingList[str] = spinner_chars if spinner_chars else ['|', '/', '-', '\\']
        self.delay: float = delay
        self.message: str = message
        self._thread: Optional[threading.Thread] = None
        self.running: bool = False

    def _spin(self) -> None:
        idx: int = 0
        while self.running:
            spinner_char: str = self.spinner_chars[idx % len(self.spinner_chars)]
            sys.stdout.write(f"\r{Colors.BLUE}{spinner_char}{Colors.RESET} {self.message} ")
            sys.stdout.flush()
            time.sleep(self.delay)
            idx += 1
        sys.stdout.write(f"\r{' ' * (len(self.message) + 5)}\r")
        sys.stdout.flush()

    def start(self) -> None:
        if sys.stdout.isatty():
            self.running = True
            self._thread = threading.Thread(target=self._spin, daemon=True)
            self._thread.start()

    def stop(self) -> None:
        if self.running:
            self.running = False
            if self._thread and self._thread.is_alive():
                self._thread.join(timeout=self.delay * 2)
            sys.stdout.write(f"\r{' ' * (len(self.message) + 5)}\r")
            sys.stdout.flush()

def prompt_yes_no(question: str, default_yes: bool = False) -> bool:
    """
    Asks a yes/no question and blocks until it is answered.
    An empty answer picks the default; an interrupted or closed input stream
    counts as "no".
    """
    suffix: str = " [Y/n]" if default_yes else " [y/N]"
    while True:
        try:
            reply: str = input(f"{Colors.BOLD}{question}{suffix}: {Colors.RESET}").strip().lower()
            if not reply:
                return default_yes
            if reply in ['y', 'yes']:
                return True
            if reply in ['n', 'no']:
                return False
            warning("Invalid input. Please enter 'y' or 'n'.")
        except KeyboardInterrupt:
            warning("\nInput cancelled by user.")
            return False
        except EOFError:
            warning("\nInput stream ended.")
            return False
