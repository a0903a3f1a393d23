"""Keep a host project in step with its prism subtree.

Submodules: git (pull the subtree), scripts (merge manifest scripts),
commands (link the command directory), pipeline (all of the above plus
dependency installs as one fail-fast stage).
"""
