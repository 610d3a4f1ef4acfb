"""claude-mergetool - resolve merge conflicts with Claude."""

__version__ = "0.3.0"
