"""Link the host project's command directory to the subtree's.

The host's ``.cursor/commands`` becomes a relative symlink to
``<subtree>/.cursor/commands`` so commands defined once in prism are
available to every project that embeds it.
"""

import logging

from ..context import MountContext
from ..errors import SymlinkConflictError
from ..settings import ToolSettings
from ..symlink import ensure_link, symlinks_supported

logger = logging.getLogger(__name__)


def sync_commands(ctx: MountContext, settings: ToolSettings) -> bool:
    """Ensure the host command directory links into the subtree.

    Returns:
        True when the link is in place, False on a conflict or OS error.
    """
    subtree = ctx.subtree_root
    if not subtree.is_dir():
        logger.error("Prism directory not found at: %s", subtree)
        return False

    link_path = settings.commands_path(ctx.app_root)
    target_dir = settings.commands_path(subtree)
    try:
        ensure_link(link_path, target_dir)
    except SymlinkConflictError as e:
        logger.error("%s", e)
        return False
    except OSError as e:
        logger.error("Failed to create symlink %s: %s", link_path, e)
        if not symlinks_supported():
            logger.error(
                "This account cannot create symlinks; enable symlink "
                "privileges (e.g. Windows Developer Mode) and rerun."
            )
        return False
    return True
