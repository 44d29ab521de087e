#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Outcome types shared by the update stages: the result of a single external
command, the status of a stage and the aggregate run severity.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class CommandResult:
    """Outcome of one external-tool invocation."""
    succeeded: bool
    message: str = ""
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    def __bool__(self) -> bool:
        return self.succeeded


class StageStatus(enum.Enum):
    SUCCESS = "success"
    WARNING = "warning"    # advisory only
    FAILURE = "failure"    # recoverable, run continues
    CRITICAL = "critical"  # bootability may be compromised


class Severity(enum.IntEnum):
    CLEAN = 0
    RECOVERABLE = 1
    CRITICAL = 2

    @classmethod
    def for_status(cls, status: StageStatus) -> "Severity":
        if status is StageStatus.CRITICAL:
            return cls.CRITICAL
        if status is StageStatus.FAILURE:
            return cls.RECOVERABLE
        return cls.CLEAN


@dataclass
class RunReport:
    """
    Collects stage outcomes in order. `severity` is the worst level seen so
    far and never decreases; it becomes the process exit status.
    """
    severity: Severity = Severity.CLEAN
    stages: List[Tuple[str, StageStatus]] = field(default_factory=list)

    def record(self, stage: str, status: StageStatus) -> Severity:
        self.stages.append((stage, status))
        self.severity = max(self.severity, Severity.for_status(status))
        return self.severity

    def problems(self) -> List[Tuple[str, StageStatus]]:
        return [(name, st) for name, st in self.stages if st is not StageStatus.SUCCESS]

    @property
    def exit_code(self) -> int:
        return int(self.severity)
