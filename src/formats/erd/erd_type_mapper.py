"""
ERD Type Mapper.

This module maps the semantic attribute types produced by the entity model
builder to the column types of the target platform.

Semantic types:
- Text: string, memo, email, phone, url, ticker, timezone, language
- Numeric: integer, decimal, float, money, duration
- Other: boolean, datetime, date, guid, file, image
- Structural: choice (option set), lookup (entity reference)

The lookup table is total over SemanticType. Any other type string (an
unknown keyword carried through from the source) falls back to short text
and is reported as unmapped.

Usage:
    from formats.erd.erd_type_mapper import ErdTypeMapper, TargetType

    mapper = ErdTypeMapper()
    result = mapper.map_type("integer")
    print(result.target_type)  # TargetType.WHOLE_NUMBER
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .erd_models import SemanticType

logger = logging.getLogger(__name__)


class TargetType(Enum):
    """Column types of the target platform."""
    SHORT_TEXT = "short text"
    MULTILINE_TEXT = "multiline text"
    WHOLE_NUMBER = "whole number"
    PRECISE_NUMBER = "precise number"
    FLOATING_POINT = "floating point number"
    CURRENCY = "currency"
    TWO_OPTION = "two-option"
    DATE_AND_TIME = "date-and-time"
    DATE_ONLY = "date only"
    UNIQUE_IDENTIFIER = "unique identifier"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    TICKER_SYMBOL = "ticker symbol"
    TIME_ZONE = "time zone"
    LANGUAGE = "language"
    DURATION = "duration"
    FILE = "file"
    IMAGE = "image"
    CHOICE = "choice"
    LOOKUP = "lookup"


# =============================================================================
# Semantic Type Mappings
# =============================================================================

TARGET_TYPE_MAPPINGS: Dict[str, TargetType] = {
    SemanticType.STRING.value: TargetType.SHORT_TEXT,
    SemanticType.MEMO.value: TargetType.MULTILINE_TEXT,
    SemanticType.INTEGER.value: TargetType.WHOLE_NUMBER,
    SemanticType.DECIMAL.value: TargetType.PRECISE_NUMBER,
    SemanticType.FLOAT.value: TargetType.FLOATING_POINT,
    SemanticType.MONEY.value: TargetType.CURRENCY,
    SemanticType.BOOLEAN.value: TargetType.TWO_OPTION,
    SemanticType.DATETIME.value: TargetType.DATE_AND_TIME,
    SemanticType.DATE.value: TargetType.DATE_ONLY,
    SemanticType.GUID.value: TargetType.UNIQUE_IDENTIFIER,
    SemanticType.EMAIL.value: TargetType.EMAIL,
    SemanticType.PHONE.value: TargetType.PHONE,
    SemanticType.URL.value: TargetType.URL,
    SemanticType.TICKER.value: TargetType.TICKER_SYMBOL,
    SemanticType.TIMEZONE.value: TargetType.TIME_ZONE,
    SemanticType.LANGUAGE.value: TargetType.LANGUAGE,
    SemanticType.DURATION.value: TargetType.DURATION,
    SemanticType.FILE.value: TargetType.FILE,
    SemanticType.IMAGE.value: TargetType.IMAGE,
    SemanticType.CHOICE.value: TargetType.CHOICE,
    SemanticType.LOOKUP.value: TargetType.LOOKUP,
}

# Default type when mapping fails
DEFAULT_TARGET_TYPE = TargetType.SHORT_TEXT


@dataclass
class TypeMappingResult:
    """
    Result of semantic to target type mapping.

    Attributes:
        target_type: The mapped target column type.
        original_type: The semantic type string that was mapped.
        is_exact_match: False when the fallback was used.
        warning: Warning message if the type was not mapped.
    """
    target_type: TargetType
    original_type: str
    is_exact_match: bool = True
    warning: Optional[str] = None


class ErdTypeMapper:
    """
    Maps semantic attribute types to target column types.

    Example:
        >>> mapper = ErdTypeMapper()
        >>> mapper.map_type("boolean").target_type
        <TargetType.TWO_OPTION: 'two-option'>

        >>> mapper.map_type("geography").warning
        "Unmapped type 'geography' defaulted to short text"
    """

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the type mapper.

        Args:
            strict_mode: If True, raise errors for unknown types
                        instead of defaulting to short text.
        """
        self.strict_mode = strict_mode
        self._mappings = TARGET_TYPE_MAPPINGS.copy()

    def map_type(self, semantic_type: str) -> TypeMappingResult:
        """
        Map a semantic type to a target type.

        Args:
            semantic_type: Attribute data type (SemanticType value or raw keyword).

        Returns:
            TypeMappingResult with mapping details.

        Raises:
            ValueError: In strict mode when the type is unknown.
        """
        target = self._mappings.get(semantic_type.lower())
        if target is not None:
            return TypeMappingResult(target_type=target, original_type=semantic_type)

        if self.strict_mode:
            raise ValueError(f"Unmapped type: {semantic_type}")

        logger.warning(f"Unmapped type '{semantic_type}', defaulting to short text")
        return TypeMappingResult(
            target_type=DEFAULT_TARGET_TYPE,
            original_type=semantic_type,
            is_exact_match=False,
            warning=f"Unmapped type '{semantic_type}' defaulted to short text",
        )

    def is_supported_type(self, semantic_type: str) -> bool:
        return semantic_type.lower() in self._mappings

    def get_supported_types(self) -> List[str]:
        return list(self._mappings.keys())
