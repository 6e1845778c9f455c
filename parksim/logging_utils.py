"""
Structured Logging

Every parking component owns a module-scoped logger. Each record is:
- A JSON object with timestamp, module, level and message
- Extended with free-form context fields (spots, car ids, counts)
- Kept in memory for tests and summaries
- Optionally appended to <log_dir>/<module>_<timestamp>.jsonl
- Echoed to the console when at or above the console level

Faults carry a suggested_fix so a failed run explains itself.
"""

import json
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

_RESET = "\033[0m"
_CORE_FIELDS = ("timestamp", "module", "level", "message")


class LogLevel(Enum):
    """Log severity levels, lowest first."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        """Parse log level from string (case-insensitive)."""
        normalized = value.upper().strip()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Invalid log level: '{value}'. "
            f"Valid levels: {[m.value for m in cls]}"
        )


_RANKS = {level: rank for rank, level in enumerate(LogLevel)}
_COLORS = {
    LogLevel.DEBUG: "\033[36m",     # Cyan
    LogLevel.INFO: "\033[32m",      # Green
    LogLevel.WARNING: "\033[33m",   # Yellow
    LogLevel.ERROR: "\033[31m",     # Red
    LogLevel.CRITICAL: "\033[35m",  # Magenta
}


def _jsonable(value: Any) -> Any:
    """Reduce domain objects to plain data for a log record."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dict__"):
        return str(value)
    return value


class SimLogger:
    """
    Structured JSON logger for one parking component.

    Records below console_level are still stored and written to file;
    they are only kept off the console.
    """

    def __init__(
        self,
        module_name: str,
        log_dir: Optional[Path] = None,
        console_output: bool = True,
        file_output: bool = True,
        console_level: LogLevel = LogLevel.INFO,
    ):
        """
        Args:
            module_name: Component name, e.g. "Ledger"
            log_dir: Directory for the JSONL file; None disables file output
            console_output: Echo records to stdout/stderr
            file_output: Append records to the JSONL file
            console_level: Lowest level echoed to the console
        """
        self.module_name = module_name
        self.console_output = console_output
        self.console_level = console_level
        self.log_file: Optional[Path] = None
        self._records: list[dict] = []

        if log_dir is not None and file_output:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.log_file = log_dir / f"{module_name.lower()}_{stamp}.jsonl"

    # ========================================
    # EMITTING
    # ========================================

    def log(self, level: LogLevel, message: str, **context: Any) -> dict:
        """Build, store and emit one record. Returns the record."""
        record = {
            "timestamp": datetime.now().isoformat(),
            "module": self.module_name,
            "level": level.value,
            "message": message,
        }
        record.update({key: _jsonable(value) for key, value in context.items()})
        self._records.append(record)

        if self.console_output and level.rank >= self.console_level.rank:
            self._echo(level, record)
        if self.log_file is not None:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, default=str) + "\n")
        return record

    def _echo(self, level: LogLevel, record: dict) -> None:
        stream = sys.stderr if level.rank >= LogLevel.ERROR.rank else sys.stdout
        context = ", ".join(
            f"{key}={value}" for key, value in record.items() if key not in _CORE_FIELDS
        )
        line = f"{level.color}[{self.module_name}] {record['message']}{_RESET}"
        print(f"{line}  ({context})" if context else line, file=stream)

    def debug(self, message: str, **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log(LogLevel.WARNING, message, **context)

    def error(
        self,
        message: str,
        reason: Optional[str] = None,
        suggested_fix: Optional[str] = None,
        **context: Any
    ) -> None:
        """
        Log a fault the caller is about to raise.

        Args:
            message: What went wrong
            reason: Why it went wrong
            suggested_fix: What the caller should do differently
        """
        self.log(LogLevel.ERROR, message, **_fault_context(reason, suggested_fix, context))

    def critical(
        self,
        message: str,
        reason: Optional[str] = None,
        suggested_fix: Optional[str] = None,
        **context: Any
    ) -> None:
        """Log a fault that aborts construction."""
        self.log(LogLevel.CRITICAL, message, **_fault_context(reason, suggested_fix, context))

    def log_init(self, **params: Any) -> None:
        self.info(f"{self.module_name} initialized", **params)

    def log_input(self, description: str, **data: Any) -> None:
        self.debug(f"Input: {description}", **data)

    def log_output(self, description: str, **data: Any) -> None:
        self.debug(f"Output: {description}", **data)

    # ========================================
    # INSPECTION
    # ========================================

    def get_entries(self, level: Optional[LogLevel] = None) -> list[dict]:
        """Stored records, optionally only those of one level."""
        if level is None:
            return list(self._records)
        return [r for r in self._records if r["level"] == level.value]

    def get_error_count(self) -> int:
        return sum(1 for r in self._records if LogLevel(r["level"]).rank >= LogLevel.ERROR.rank)

    def get_summary(self) -> dict:
        by_level = {level.value: 0 for level in LogLevel}
        for record in self._records:
            by_level[record["level"]] += 1
        return {
            "module": self.module_name,
            "total_entries": len(self._records),
            "by_level": by_level,
            "log_file": str(self.log_file) if self.log_file else None,
        }


def _fault_context(reason: Optional[str], suggested_fix: Optional[str], context: dict) -> dict:
    if reason:
        context["reason"] = reason
    if suggested_fix:
        context["suggested_fix"] = suggested_fix
    return context


class SessionLogger:
    """
    One simulation run's loggers.

    Hands out a shared SimLogger per component and rolls their counts up
    into session_summary.json.
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        console_output: bool = True,
        console_level: LogLevel = LogLevel.INFO,
    ):
        self.log_dir = Path(log_dir) if log_dir else None
        self.console_output = console_output
        self.console_level = console_level
        self._loggers: dict[str, SimLogger] = {}

    def get_logger(self, module_name: str) -> SimLogger:
        """Logger for a component, created on first request."""
        logger = self._loggers.get(module_name)
        if logger is None:
            logger = SimLogger(
                module_name,
                log_dir=self.log_dir,
                console_output=self.console_output,
                file_output=self.log_dir is not None,
                console_level=self.console_level,
            )
            self._loggers[module_name] = logger
        return logger

    def get_all_errors(self) -> list[dict]:
        """Error and critical records from every component, oldest first."""
        faults = [
            record
            for logger in self._loggers.values()
            for record in logger.get_entries()
            if LogLevel(record["level"]).rank >= LogLevel.ERROR.rank
        ]
        return sorted(faults, key=lambda r: r["timestamp"])

    def get_session_summary(self) -> dict:
        return {
            "log_directory": str(self.log_dir) if self.log_dir else None,
            "modules": {name: l.get_summary() for name, l in sorted(self._loggers.items())},
            "total_errors": sum(l.get_error_count() for l in self._loggers.values()),
        }

    def write_summary(self) -> Optional[Path]:
        """Write session_summary.json. Returns None without a log directory."""
        if self.log_dir is None:
            return None
        self.log_dir.mkdir(parents=True, exist_ok=True)
        path = self.log_dir / "session_summary.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.get_session_summary(), f, indent=2, default=str)
        return path
