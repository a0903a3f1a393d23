"""Workspace scans — one command across every eligible workspace.

Workspaces are independent, so a failure in one never stops the scan; the
caller gets a single aggregate verdict after every workspace has run.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .runner import CommandRunner, succeeded
from .workspaces import WorkspaceEntry

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    ran: list[WorkspaceEntry] = field(default_factory=list)
    failed: list[WorkspaceEntry] = field(default_factory=list)

    @property
    def any_failed(self) -> bool:
        return bool(self.failed)


def run_across_workspaces(
    entries: Sequence[WorkspaceEntry],
    argv: Sequence[str],
    runner: CommandRunner,
) -> ScanResult:
    """Run argv in each workspace, continuing past failures.

    Spawn faults are not caught and end the scan immediately.
    """
    result = ScanResult()
    for entry in entries:
        logger.info("Running in %s", entry.name)
        exit_code = runner.run(argv, entry.path)
        result.ran.append(entry)
        if not succeeded(exit_code):
            logger.warning("%s failed (exit %d)", entry.name, exit_code)
            result.failed.append(entry)
    return result
