# ================================================================================
# Section Logger Module
# ================================================================================
#
# Writes human-readable, indented log lines so that nested test phases
# (assembly, class, test, verification blocks) are easy to follow.
#
# Key Features:
#   - Timestamp prefix with millisecond precision
#   - Tab indentation that follows nested sections
#   - Pluggable line writer (Loguru by default)
#
# Usage:
#   section_logger.write_line("Plain line")
#   with section_logger.start_section("Creating customer {}", name):
#       section_logger.write_line("This line is indented")
#
# ================================================================================

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from loguru import logger


WriteLine = Callable[[str], None]


def _write_to_loguru(line: str) -> None:
    logger.opt(depth=2).info(line)


class SectionLogger:
    """
    Writes log entries using indentation to enhance readability.

    Each line is prefixed with the current time (HH:MM:SS.mmm) and
    ``indentation + 1`` tab characters. Sections opened with
    :meth:`start_section` indent every line written inside them.

    Example:
        log = SectionLogger()
        log.write_line("This is an ordinary line")
        with log.start_section("This is the section header"):
            log.write_line("This is an indented line")
        log.write_line("Back at the outer level")
    """

    def __init__(self, write_line: Optional[WriteLine] = None):
        """
        Initialize the section logger.

        Args:
            write_line: Callable that receives each fully formatted line.
                        Defaults to writing through Loguru at INFO level.
        """
        self._write_line_impl = write_line or _write_to_loguru
        self._indentation = 0

    @property
    def indentation(self) -> int:
        return self._indentation

    def reset(self, write_line: Optional[WriteLine] = None) -> None:
        """
        Replace the line writer and reset the indentation to zero.

        Call it once from session initialization code.
        """
        self._write_line_impl = write_line or _write_to_loguru
        self._indentation = 0

    def write_line(self, message: Any, *args: Any) -> None:
        """
        Write a line at the current indentation level.

        Args:
            message: Line text, or a ``str.format`` template when args are given.
                     Non-string objects are written using ``str()``.
            *args: Format arguments for ``message``
        """
        text = str(message)
        if args:
            text = text.format(*args)

        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        self._write_line_impl(timestamp + "\t" * (self._indentation + 1) + text)

    def increase_indent(self) -> None:
        self._indentation += 1

    def decrease_indent(self) -> None:
        if self._indentation == 0:
            raise RuntimeError(
                "Indentation is already at its minimum. Can't decrease any further."
            )
        self._indentation -= 1

    @contextmanager
    def start_section(self, message: Any, *args: Any) -> Iterator["SectionLogger"]:
        """
        Write a header line and indent everything written until the block exits.

        The indentation is restored even if the block raises.
        """
        self.write_line(message, *args)
        self.increase_indent()
        try:
            yield self
        finally:
            self.decrease_indent()


# Shared instance used by the assertion helpers and the pytest plugin
section_logger = SectionLogger()


__all__ = [
    "SectionLogger",
    "WriteLine",
    "section_logger",
]
