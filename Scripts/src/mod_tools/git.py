"""Thin wrapper around the git executable."""
import subprocess
from typing import Optional

from .errors import GitError


class Git:
    """Runs git commands in one working directory."""

    def __init__(self, repo_path: str, timeout: int = 60):
        self.repo_path = str(repo_path)
        self.timeout = timeout

    def run(self, *args: str) -> str:
        """Run a git command and return its stdout. Raises GitError on failure."""
        command = list(args)
        try:
            result = subprocess.run(
                ["git", *command],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, NotADirectoryError) as e:
            raise GitError(command, str(e)) from e
        if result.returncode != 0:
            raise GitError(command, result.stderr.strip() or f"exit code {result.returncode}")
        return result.stdout

    def branches(self) -> list[str]:
        """Names of all local branches."""
        output = self.run("for-each-ref", "--format=%(refname:short)", "refs/heads")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def current_branch(self) -> Optional[str]:
        """Checked-out branch name, or None on a detached HEAD."""
        branch = self.run("rev-parse", "--abbrev-ref", "HEAD").strip()
        return branch if branch != "HEAD" else None

    def checkout(self, branch: str) -> None:
        self.run("checkout", "--quiet", branch)

    def create_branch(self, branch: str) -> None:
        """Create branch from HEAD and check it out."""
        self.run("checkout", "--quiet", "-b", branch)

    def changed_files(self) -> list[str]:
        """Paths with uncommitted changes, untracked files included."""
        output = self.run("status", "--porcelain", "--untracked-files=all")
        return [line[3:] for line in output.splitlines() if line.strip()]

    def file_exists(self, ref: str, path: str) -> bool:
        """True if path exists in the tree of ref, without checking it out."""
        try:
            self.run("cat-file", "-e", f"{ref}:{path}")
        except GitError:
            return False
        return True

    def config_value(self, key: str) -> Optional[str]:
        """A git config value such as user.name, or None if unset."""
        try:
            value = self.run("config", "--get", key).strip()
        except GitError:
            return None
        return value or None
