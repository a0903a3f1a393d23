"""Execution context — embedded prism subtree vs. standalone project.

The tools can run from a prism checkout that lives inside a host project
(``host/prism/...``) or from a project that stands on its own. Which one is
decided purely from the names of the tool directory and its parent; the
result is computed once per invocation and passed to every component.

Key entities:
  - MountContext: frozen dataclass with the resolved roots.
  - resolve_context(): classify a tool directory.
  - context_for_project(): classify a project root found from the working
    directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import AmbiguousContextError

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "prism"

EMBEDDED = "embedded"
STANDALONE = "standalone"


@dataclass(frozen=True)
class MountContext:
    """Resolved roots for one invocation.

    ``host_root`` is set if and only if ``kind`` is ``"embedded"``.
    """

    kind: str  # "embedded" | "standalone"
    self_root: Path
    host_root: Path | None = None
    marker: str = DEFAULT_MARKER

    def __post_init__(self) -> None:
        if self.kind not in (EMBEDDED, STANDALONE):
            raise ValueError(f"Unknown context kind: {self.kind!r}")
        if (self.kind == EMBEDDED) != (self.host_root is not None):
            raise ValueError("host_root must be set exactly when embedded")

    @property
    def is_embedded(self) -> bool:
        return self.kind == EMBEDDED

    @property
    def app_root(self) -> Path:
        """Project that consumes the subtree (the host when embedded)."""
        if self.host_root is not None:
            return self.host_root
        return self.self_root

    @property
    def subtree_root(self) -> Path:
        """Where the prism subtree lives (may not exist when standalone)."""
        if self.is_embedded:
            return self.self_root
        return self.self_root / self.marker


def resolve_context(tool_dir: Path, marker: str = DEFAULT_MARKER) -> MountContext:
    """Classify the directory holding the tool's own code.

    Embedded when the tool directory or its parent is named ``marker``; the
    subtree root is then one level above the tool directory and the host one
    level above that. Only path arithmetic is done here.

    Raises:
        AmbiguousContextError: If both the tool directory and its parent
            are named ``marker``.
    """
    tool_dir = Path(tool_dir).absolute()
    parent_match = tool_dir.parent.name == marker
    self_match = tool_dir.name == marker

    if parent_match and self_match:
        raise AmbiguousContextError(tool_dir, marker)

    self_root = tool_dir.parent
    if parent_match or self_match:
        ctx = MountContext(
            kind=EMBEDDED,
            self_root=self_root,
            host_root=self_root.parent,
            marker=marker,
        )
    else:
        ctx = MountContext(kind=STANDALONE, self_root=self_root, marker=marker)

    logger.debug(
        "Resolved %s context: self_root=%s host_root=%s",
        ctx.kind,
        ctx.self_root,
        ctx.host_root,
    )
    return ctx


def context_for_project(
    project_root: Path, marker: str = DEFAULT_MARKER
) -> MountContext:
    """Classify a project root located from the working directory.

    Used when the tool is installed outside any project. The project is the
    embedded subtree when it is itself named ``marker``.
    """
    project_root = Path(project_root).absolute()
    if project_root.name == marker:
        return MountContext(
            kind=EMBEDDED,
            self_root=project_root,
            host_root=project_root.parent,
            marker=marker,
        )
    return MountContext(kind=STANDALONE, self_root=project_root, marker=marker)
