"""Git update of the prism subtree.

From inside the subtree a plain ``git pull`` is enough. From the host, a
subtree that is a git submodule (its ``.git`` is a file) is updated through
``git submodule update --remote --merge``; any other checkout is pulled.
"""

import logging

from ..context import MountContext
from ..runner import CommandRunner, succeeded

logger = logging.getLogger(__name__)


def is_submodule(ctx: MountContext) -> bool:
    """True when the subtree's .git entry is a gitlink file."""
    return (ctx.subtree_root / ".git").is_file()


def sync_git(ctx: MountContext, runner: CommandRunner) -> bool:
    """Pull the latest subtree changes.

    Returns:
        True if git succeeded, False if the subtree is missing or git failed.
    """
    subtree = ctx.subtree_root
    if not subtree.is_dir():
        logger.error("Prism directory not found at: %s", subtree)
        return False

    if ctx.is_embedded:
        logger.info("Pulling latest changes from prism repository...")
        exit_code = runner.run(["git", "pull"], subtree)
    elif is_submodule(ctx):
        logger.info("Updating prism submodule...")
        exit_code = runner.run(
            ["git", "submodule", "update", "--remote", "--merge", ctx.marker],
            ctx.self_root,
        )
    else:
        logger.info("Pulling prism checkout at %s...", subtree)
        exit_code = runner.run(["git", "pull"], subtree)

    if not succeeded(exit_code):
        logger.error("Failed to sync prism git repository (exit %d)", exit_code)
        return False
    logger.info("Prism repository updated")
    return True
