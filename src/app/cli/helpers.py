"""
CLI helper utilities.

This module provides shared utilities for the compiler commands including:
- Configuration loading
- Logging setup (text or JSON, optional rotating log file)
- Input discovery and report writing
"""

import json
import logging
import os
import sys
import tempfile
from datetime import datetime, timezone
from logging import Handler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from constants import FileExtensions, LoggingConfig
from core.validators.input import InputValidator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JSONFormatter(logging.Formatter):
    """Render each log record as one JSON object per line."""

    _STANDARD_ATTRS = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.strftime(LoggingConfig.JSON_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key in self._STANDARD_ATTRS or key.startswith("_") or key in payload:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except TypeError:
                payload[key] = str(value)

        return json.dumps(payload, ensure_ascii=False)


_MANAGED_HANDLERS: List[Handler] = []
_LOGGING_SIGNATURE: Optional[Tuple[Any, ...]] = None
_LAST_LOG_FILE: Optional[str] = None


def get_default_config_path() -> str:
    """Return ``config.json`` in the project root (next to config.sample.json)."""
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    return str(project_root / "config.json")


def _clear_managed_handlers() -> None:
    global _MANAGED_HANDLERS
    root_logger = logging.getLogger()
    for handler in _MANAGED_HANDLERS:
        root_logger.removeHandler(handler)
        handler.close()
    _MANAGED_HANDLERS = []


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _open_log_file(path: str, rotate: bool, max_bytes: int, backup_count: int) -> Handler:
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    if rotate and max_bytes > 0:
        return RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=max(backup_count, 1), encoding="utf-8"
        )
    return logging.FileHandler(path, encoding="utf-8")


def setup_logging(
    level: Optional[LogLevel] = None,
    log_file: Optional[str] = None,
    *,
    config: Optional[Dict[str, Any]] = None,
    include_console: bool = True,
) -> Optional[str]:
    """
    Configure the root logger from the ``logging`` config section.

    When the requested log file cannot be opened the file is tried in the
    system temp directory and then in the user's home directory; if all
    three fail, logging continues on the console only.

    Args:
        level: Level override (wins over the config's ``level``).
        log_file: Log file override (wins over the config's ``file``).
        config: The ``logging`` section of the configuration.
        include_console: Whether to log to stderr as well.

    Returns:
        The log file actually used, or None for console-only logging.
    """
    global _LOGGING_SIGNATURE, _LAST_LOG_FILE

    settings = dict(config or {})
    level_name = str(level or settings.get("level") or LoggingConfig.DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    file_path = log_file if log_file is not None else settings.get("file")

    format_style = str(settings.get("format", LoggingConfig.DEFAULT_FORMAT_STYLE)).lower()
    if format_style not in LoggingConfig.SUPPORTED_FORMATS:
        format_style = LoggingConfig.DEFAULT_FORMAT_STYLE

    rotation = settings.get("rotation") if isinstance(settings.get("rotation"), dict) else {}
    rotate = rotation.get("enabled", LoggingConfig.ROTATION_ENABLED)
    max_bytes = _positive_int(
        rotation.get("max_mb", LoggingConfig.MAX_LOG_FILE_MB), LoggingConfig.MAX_LOG_FILE_MB
    ) * 1024 * 1024
    backup_count = _positive_int(
        rotation.get("backup_count", LoggingConfig.LOG_BACKUP_COUNT), LoggingConfig.LOG_BACKUP_COUNT
    )

    signature = (log_level, file_path, format_style, include_console, rotate, max_bytes, backup_count)
    if _LOGGING_SIGNATURE == signature and _MANAGED_HANDLERS:
        return _LAST_LOG_FILE

    if format_style == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt=settings.get("pattern") or LoggingConfig.LOG_FORMAT,
            datefmt=settings.get("date_format", LoggingConfig.DATE_FORMAT),
        )

    handlers: List[Handler] = []
    used_log_file: Optional[str] = None

    if include_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if file_path:
        file_name = os.path.basename(file_path) or LoggingConfig.DEFAULT_LOG_FILENAME
        candidates = [
            file_path,
            os.path.join(tempfile.gettempdir(), file_name),
            os.path.join(str(Path.home()), file_name),
        ]
        for candidate in candidates:
            try:
                handlers.append(_open_log_file(candidate, bool(rotate), max_bytes, backup_count))
            except OSError as exc:
                print(f"  Could not create log at {candidate}: {exc}", file=sys.stderr)
                continue
            used_log_file = candidate
            if candidate != file_path:
                print(f"Note: Using fallback log file: {candidate}", file=sys.stderr)
            break
        else:
            print(
                f"Warning: Could not write log file {file_path}; logging to console only",
                file=sys.stderr,
            )

    if not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    _clear_managed_handlers()
    root_logger = logging.getLogger()
    logging.captureWarnings(True)
    root_logger.setLevel(log_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
        _MANAGED_HANDLERS.append(handler)

    _LOGGING_SIGNATURE = signature
    _LAST_LOG_FILE = used_log_file

    if used_log_file:
        logging.getLogger(__name__).info(f"Logging to: {used_log_file}")
    return used_log_file


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Dictionary containing the configuration.

    Raises:
        ValueError: If the path is empty, unsafe, or the file is not a JSON object.
        FileNotFoundError: If the configuration file doesn't exist.
        PermissionError: If the file cannot be read or is a symlink.
    """
    if not config_path:
        raise ValueError("config_path cannot be empty")

    try:
        validated_path = InputValidator.validate_file_path(
            config_path,
            allowed_extensions=[".json"],
            check_exists=True,
            reject_symlinks=True,
            allow_relative_up=True,
        )
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Copy config.sample.json to config.json or pass one with --config"
        )

    try:
        with open(validated_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Invalid JSON in configuration file {validated_path} "
            f"at line {e.lineno}, column {e.colno}: {e.msg}"
        )
    except UnicodeDecodeError as e:
        raise ValueError(f"File encoding error in {validated_path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(
            f"Configuration file must contain a JSON object, got {type(config).__name__}"
        )

    compiler = config.get("compiler", {})
    if not isinstance(compiler, dict):
        raise ValueError("The 'compiler' configuration section must be an object")
    threshold = compiler.get("match_threshold")
    if threshold is not None and not (
        isinstance(threshold, (int, float)) and 0.0 <= threshold <= 1.0
    ):
        raise ValueError(f"compiler.match_threshold must be between 0 and 1, got {threshold!r}")

    return config


def collect_erd_files(path: Path, recursive: bool = False) -> List[Path]:
    """
    List ERD files in a directory, sorted by path.

    Args:
        path: Directory to search.
        recursive: Descend into subdirectories.
    """
    files = set()
    for ext in FileExtensions.ERD_EXTENSIONS:
        pattern = f"**/*{ext}" if recursive else f"*{ext}"
        files.update(p for p in path.glob(pattern) if p.is_file())
    return sorted(files)


def write_json_report(data: Dict[str, Any], target: Path) -> None:
    """Write a JSON report, creating parent directories."""
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False)
