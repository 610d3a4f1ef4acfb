"""Custom exceptions for claude-mergetool."""

from pathlib import Path


class MergetoolError(Exception):
    """Base exception for all claude-mergetool errors."""

    pass


class ProtocolError(MergetoolError):
    """Raised when the Claude event stream violates its contract."""

    def __init__(self, message: str, *, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class ResultSubtypeError(ProtocolError):
    """Raised when a result event carries a subtype we do not model."""

    def __init__(self, message: str, *, subtype: str = "", line: str = "") -> None:
        super().__init__(message, line=line)
        self.subtype = subtype


class ConfigError(MergetoolError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.config_path = config_path


class CommandError(MergetoolError):
    """Raised when a subprocess command fails."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        cwd: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.cwd = cwd


class InstallError(MergetoolError):
    """Raised when registering the merge tool with git or jj fails."""

    def __init__(self, message: str, *, program: str = "") -> None:
        super().__init__(message)
        self.program = program


class UsageError(MergetoolError):
    """Raised when command-line arguments are inconsistent."""

    pass
