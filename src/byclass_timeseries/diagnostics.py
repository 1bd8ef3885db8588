"""
byclass_timeseries/diagnostics.py - Diagnostics Sink

Collects the warnings and fatal error reports emitted while loading time
series. Every diagnostic is forwarded to the standard logging channel and
kept as a record so callers can inspect what happened after the fact.

Author: Simulation Inputs Project
License: MIT
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class DiagnosticLevel(Enum):
    """Severity of a diagnostic."""
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Diagnostic:
    """Record of a single warning or error report."""
    level: DiagnosticLevel
    message: str
    filename: str = ""
    exception: Optional[BaseException] = None

    def to_dict(self) -> Dict:
        return {
            'level': self.level.value,
            'message': self.message,
            'filename': self.filename,
            'exception': repr(self.exception) if self.exception else None,
        }


@dataclass
class DiagnosticsReporter:
    """
    Default diagnostics sink.

    Warnings are non-fatal: they are logged and recorded, nothing else.
    Errors are fatal reports: they carry the causing exception and the
    source filename. The reporter never raises; deciding what to do with a
    fatal report is left to the caller.
    """
    records: List[Diagnostic] = field(default_factory=list)
    log: logging.Logger = field(default=logger, repr=False)

    def warning(self, message: str, filename: str = "") -> Diagnostic:
        """Record a non-fatal warning."""
        record = Diagnostic(DiagnosticLevel.WARNING, message, filename)
        self.records.append(record)
        self.log.warning(message)
        return record

    def error(self, message: str, filename: str = "",
              exception: Optional[BaseException] = None) -> Diagnostic:
        """Record a fatal error report."""
        record = Diagnostic(DiagnosticLevel.ERROR, message, filename, exception)
        self.records.append(record)
        if exception is not None:
            self.log.error(f"{message}: {exception}")
        else:
            self.log.error(message)
        return record

    @property
    def warnings(self) -> List[Diagnostic]:
        return [r for r in self.records if r.level is DiagnosticLevel.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [r for r in self.records if r.level is DiagnosticLevel.ERROR]

    def clear(self) -> None:
        self.records.clear()
