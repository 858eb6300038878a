"""ANSI color codes for terminal output.

Color scheme:
  GREEN - Success status, files written
  CYAN - Key information (task names, versions, paths)
  BLUE - Status info (progress messages)
  WARNING (yellow) - Warnings and prompts
  FAIL (red) - Errors
  GRAY - Timings and secondary details

Set NO_COLOR in the environment to print plain text.
"""
import os
import sys

_colors_initialized = False


def init_colors() -> None:
    """Initialize console for ANSI color support on Windows, or drop colors if NO_COLOR is set."""
    global _colors_initialized
    if _colors_initialized:
        return
    _colors_initialized = True

    if os.environ.get('NO_COLOR'):
        Colors.disable()
        return

    if sys.platform == 'win32':
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        except (AttributeError, OSError):
            pass


class Colors:
    """ANSI color codes."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    GRAY = '\033[90m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

    @classmethod
    def disable(cls) -> None:
        for name in ('HEADER', 'BLUE', 'CYAN', 'GREEN', 'WARNING', 'FAIL', 'GRAY', 'ENDC', 'BOLD'):
            setattr(cls, name, '')


STATUS_COLORS = {
    'success': ('OK', 'GREEN'),
    'info': ('INFO', 'BLUE'),
    'warning': ('WARN', 'WARNING'),
    'danger': ('ERROR', 'FAIL'),
}


def status_tag(status: str) -> str:
    """Fixed-width colored tag for a task status ('success', 'info', 'warning', 'danger')."""
    label, color_name = STATUS_COLORS[status]
    color = getattr(Colors, color_name)
    return f"{color}{Colors.BOLD}{label:^7}{Colors.ENDC}"
