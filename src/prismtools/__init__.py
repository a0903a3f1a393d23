"""prism-tools — workspace orchestration for the prism shared subtree.

Detects whether the tools run inside an embedded prism subtree or standalone,
discovers manifest workspaces, and drives quality, typecheck, test and sync
pipelines across them.
"""

__version__ = "0.1.0"
