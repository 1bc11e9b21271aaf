"""
Centralized configuration constants for the ERD-to-schema compiler.

This module provides a single source of truth for all configuration constants,
default values, and limits used throughout the application.
"""

from enum import IntEnum
from typing import Final

# ============================================================================
# Exit Codes
# ============================================================================

class ExitCode(IntEnum):
    """Standard exit codes for CLI commands.

    Following Unix conventions:
    - 0: Success
    - 1: General error
    - 2: Validation/syntax error
    - 3+: Specific error categories
    """
    SUCCESS = 0
    ERROR = 1
    VALIDATION_ERROR = 2
    CONFIG_ERROR = 3
    REJECTED = 4
    FILE_NOT_FOUND = 5
    PERMISSION_DENIED = 6


# ============================================================================
# Processing Limits
# ============================================================================

class ProcessingLimits:
    """Input and processing limits."""

    MAX_INPUT_MB: Final[int] = 10
    """Largest ERD document accepted (MB)."""

    MAX_ENTITIES: Final[int] = 500
    """Entity count above which a warning is logged."""

    PROGRESS_MIN_FILES: Final[int] = 5
    """Batch size from which CLI progress bars are shown."""


# ============================================================================
# Naming
# ============================================================================

class NamingLimits:
    """Naming policy of the target platform."""

    MAX_ENTITY_NAME_LENGTH: Final[int] = 50
    """Maximum entity name length."""

    MAX_ATTRIBUTE_NAME_LENGTH: Final[int] = 50
    """Maximum attribute name length."""

    NAME_PATTERN: Final[str] = r"^[A-Za-z][A-Za-z0-9_]*$"
    """Valid entity/attribute names."""

    FOREIGN_KEY_SUFFIX: Final[str] = "_id"
    """Conventional foreign key suffix."""


class ReservedNames:
    """Names owned by the target platform."""

    SYSTEM_ATTRIBUTES: Final[frozenset] = frozenset({
        "statecode", "statuscode", "ownerid", "owninguser", "owningteam",
        "owningbusinessunit", "versionnumber", "importsequencenumber",
    })
    """Attributes the platform creates on every entity; user columns must be renamed."""

    SYSTEM_FIELDS: Final[frozenset] = frozenset({
        "createdon", "createdby", "modifiedon", "modifiedby",
    })
    """Audit fields the platform maintains itself; user columns are dropped."""

    STATUS_COLUMNS: Final[frozenset] = frozenset({"status"})
    """Status columns superseded by built-in state handling."""

    ENTITY_NAMES: Final[frozenset] = frozenset({
        "user", "role", "group", "system", "admin",
    })
    """Entity names that collide with platform entities."""

    PRIMARY_NAME_COLUMN: Final[str] = "name"
    """Column the platform creates as each entity's primary name."""


# ============================================================================
# Auto-Fix
# ============================================================================

class FixConfig:
    """Auto-fix naming conventions."""

    SYNTHETIC_KEY_NAME: Final[str] = "id"
    """Name of an injected primary key."""

    SYNTHETIC_KEY_TYPE: Final[str] = "guid"
    """Semantic type of an injected primary key."""

    JUNCTION_SEPARATOR: Final[str] = "_"
    """Joins the two side names of a junction entity."""


# ============================================================================
# Standard-Entity Matching
# ============================================================================

class MatchingConfig:
    """Standard-entity matcher scoring."""

    DEFAULT_THRESHOLD: Final[float] = 0.3
    """Candidates scoring below this are not reported."""

    EXACT_MATCH_SCORE: Final[float] = 1.0
    """Case-insensitive name equality."""

    ALIAS_MATCH_SCORE: Final[float] = 0.85
    """Match on a catalog alias."""

    ALIAS_ATTRIBUTE_BONUS: Final[float] = 0.1
    """Largest attribute-overlap bonus added to an alias match."""

    NAME_WEIGHT: Final[float] = 0.4
    """Weight of name similarity in fuzzy scores."""

    ATTRIBUTE_WEIGHT: Final[float] = 0.6
    """Weight of attribute overlap in fuzzy scores."""

    MAX_ATTRIBUTE_EDIT_DISTANCE: Final[int] = 2
    """Levenshtein distance tolerated between attribute names."""

    MIN_FUZZY_ATTRIBUTE_LENGTH: Final[int] = 5
    """Shorter attribute names must match exactly."""

    HIGH_CONFIDENCE: Final[float] = 0.9
    MEDIUM_CONFIDENCE: Final[float] = 0.7


# ============================================================================
# File Extensions
# ============================================================================

class FileExtensions:
    """Supported file extensions."""

    ERD_EXTENSIONS: Final[tuple] = ('.mmd', '.mermaid', '.erd', '.md', '.txt')
    """Extensions scanned when a directory is given."""

    OUTPUT_EXTENSIONS: Final[tuple] = ('.json', '.mmd', '.md', '.txt')


# ============================================================================
# Logging
# ============================================================================

class LoggingConfig:
    """Logging configuration."""

    DEFAULT_LOG_LEVEL: Final[str] = "INFO"
    """Default logging level."""

    LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    """Default log format string."""

    DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
    """Default date format for logs."""

    DEFAULT_FORMAT_STYLE: Final[str] = "text"
    """Human-readable formatter style."""

    JSON_DATE_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%fZ"
    """ISO-8601 timestamp format for structured logs."""

    SUPPORTED_FORMATS: Final[tuple] = ("text", "json")
    """Supported formatter styles."""

    DEFAULT_LOG_FILENAME: Final[str] = "erd_compiler.log"
    """Log file name used for fallback locations."""

    MAX_LOG_FILE_MB: Final[int] = 10
    """Maximum log file size before rotation (MB)."""

    LOG_BACKUP_COUNT: Final[int] = 5
    """Number of backup log files to keep."""

    ROTATION_ENABLED: Final[bool] = True
    """Enable log rotation by default when a file handler is configured."""
