"""Run one external command in a directory with inherited stdio.

Output streams straight to the console. A nonzero exit is an ordinary
result; only a command that cannot be launched raises.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .errors import SpawnError

logger = logging.getLogger(__name__)


def succeeded(exit_code: int) -> bool:
    return exit_code == 0


class CommandRunner:
    """Blocking command execution; no timeout is applied."""

    def run(self, argv: Sequence[str], cwd: Path) -> int:
        """Run argv with working directory cwd and return its exit code.

        Raises:
            SpawnError: If the executable is missing, not executable, or
                cwd does not exist.
        """
        args = list(argv)
        logger.debug("Running `%s` in %s", shlex.join(args), cwd)
        try:
            result = subprocess.run(args, cwd=cwd)
        except OSError as e:
            raise SpawnError(args, cwd, e) from e
        if result.returncode != 0:
            logger.debug("`%s` exited with %d", shlex.join(args), result.returncode)
        return result.returncode
