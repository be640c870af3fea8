"""
Run log for reconverge.

Every record emitted under the ``reconverge`` logger during a run is also
appended, timestamped, to a single log file. The file normally lives under
/var/log, so when it is not writable by the current user the lines are
piped through a privileged ``tee -a``.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, TextIO

from .infra.command_runner import CommandRunner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s : %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RunLogHandler(logging.Handler):
    """Appends formatted records to an open text stream."""

    def __init__(self, stream: TextIO, level=logging.INFO):
        super().__init__(level)
        self.stream = stream
        self.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.stream.write(self.format(record) + "\n")
            self.stream.flush()
        except (OSError, ValueError):
            self.handleError(record)


class RunLog:
    """
    Append-only, timestamped log file for one run.

    Use as a context manager; records are captured between enter and exit.

    Example:
        with RunLog("/var/log/package_setup.log", runner):
            logging.getLogger("reconverge").info("Starting")
    """

    def __init__(
        self,
        path,
        runner: Optional[CommandRunner] = None,
        level: int = logging.INFO,
        logger_name: str = "reconverge",
    ):
        self.path = Path(path).expanduser()
        self.runner = runner or CommandRunner()
        self.level = level
        self.logger_name = logger_name
        self._stream: Optional[TextIO] = None
        self._tee: Optional[subprocess.Popen] = None
        self._handler: Optional[RunLogHandler] = None

    @property
    def active(self) -> bool:
        return self._handler is not None

    def _open_direct(self) -> Optional[TextIO]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            return open(self.path, 'a', encoding='utf-8')
        except OSError:
            return None

    def _open_tee(self) -> Optional[TextIO]:
        argv = self.runner.privileged_argv(["tee", "-a", str(self.path)])
        try:
            self._tee = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            logger.warning(f"Cannot open run log {self.path}: {e}")
            return None
        return self._tee.stdin

    def open(self) -> 'RunLog':
        """Start capturing records into the log file."""
        if self.active:
            return self
        self._stream = self._open_direct() or self._open_tee()
        if self._stream is None:
            logger.warning(f"Run log disabled; {self.path} is not writable")
            return self
        self._handler = RunLogHandler(self._stream, level=self.level)
        logging.getLogger(self.logger_name).addHandler(self._handler)
        return self

    def close(self) -> None:
        """Stop capturing and release the file or tee process."""
        if self._handler is not None:
            logging.getLogger(self.logger_name).removeHandler(self._handler)
            self._handler = None
        if self._stream is not None:
            try:
                self._stream.close()
            except OSError:
                pass
            self._stream = None
        if self._tee is not None:
            self._tee.wait()
            self._tee = None

    def __enter__(self) -> 'RunLog':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
