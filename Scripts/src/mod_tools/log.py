"""Task status reporting.

Every line looks like:  ``[ OK ] task name   12 ms  message``
"""
import time
from typing import Optional, Union

from .colors import Colors, status_tag


def _print_line(status: str, task: str, message: str = '', info: str = '') -> None:
    line = f"{status_tag(status)} {Colors.CYAN}{task:<25}{Colors.ENDC}"
    if info:
        line += f" {Colors.GRAY}{info:>10}{Colors.ENDC}"
    if message:
        line += f" {message}"
    print(line)


class Task:
    """A named unit of work that reports its progress.

    Long tasks report the elapsed time with every update.
    """

    def __init__(self, name: str, long_task: bool = False):
        self.name = name
        self.long_task = long_task
        self.start = time.monotonic()

    @classmethod
    def long(cls, name: str, message: str = 'starting...') -> 'Task':
        task = cls(name, long_task=True)
        task.update('info', message)
        return task

    @staticmethod
    def log(name: str, status: str = 'success', message: str = '') -> None:
        """Report a one-off task."""
        _print_line(status, name, message)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start) * 1000)

    def update(self, status: str, message: str = '', info: Optional[str] = None) -> None:
        if info is None and self.long_task:
            info = f"{self.elapsed_ms()} ms"
        _print_line(status, self.name, message, info or '')

    def inform(self, message: str = '') -> None:
        self.update('info', message)

    def warn(self, message: str = '') -> None:
        self.update('warning', message)

    def success(self, message: str = '') -> None:
        self.update('success', message)

    def failure(self, error: Union[BaseException, str] = '') -> None:
        self.update('danger', f"{Colors.FAIL}{error}{Colors.ENDC}")
