"""Error types raised by mod-tools.

Library code raises these; the CLI prints them and exits with status 1.
"""


class ModToolsError(RuntimeError):
    """Base error for all mod-tools operations."""


class ConfigError(ModToolsError):
    """A config file is missing or invalid."""


class GitError(ModToolsError):
    """A git command failed.

    Attributes:
        command: The git arguments that were run
        detail: stderr of the failed command, or the OS error
    """
    def __init__(self, command: list[str], detail: str) -> None:
        self.command = command
        self.detail = detail
        super().__init__(f"git {' '.join(command)} failed: {detail}")


class MergeError(ModToolsError):
    """The multi-version merge cannot continue."""


class CopyError(MergeError):
    """Copying a file during the merge failed.

    Attributes:
        source: File being copied
        target: Destination path
        cause: The underlying OS error
    """
    def __init__(self, source: str, target: str, cause: OSError) -> None:
        self.source = source
        self.target = target
        self.cause = cause
        super().__init__(f"Failed to copy {source} to {target}: {cause}")


class FileError(ModToolsError):
    """Writing, removing or archiving files failed."""
