"""
Entity Model Builder.

Converts parsed entity blocks into typed Entity and Attribute values.

Type inference runs in two steps:
1. An explicit type keyword is normalized through TYPE_KEYWORDS.
2. When the keyword is absent, or is a generic type listed by a heuristic,
   NAME_HEURISTICS is evaluated top to bottom and the first match wins.

PK/FK/UK markers are copied verbatim; reconciling missing or multiple keys
is left to the validation and auto-fix engines.

Usage:
    from formats.erd.erd_builder import EntityModelBuilder

    builder = EntityModelBuilder()
    model = builder.build(parse_result)
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from .erd_models import Attribute, Entity, SchemaModel, SemanticType
from .erd_parser import AttributeLineToken, EntityBlockToken, ParseResult

logger = logging.getLogger(__name__)


# =============================================================================
# Type Keywords
# =============================================================================

TYPE_KEYWORDS: Dict[str, SemanticType] = {
    # Text
    "string": SemanticType.STRING,
    "str": SemanticType.STRING,
    "varchar": SemanticType.STRING,
    "nvarchar": SemanticType.STRING,
    "char": SemanticType.STRING,
    "text": SemanticType.MEMO,
    "memo": SemanticType.MEMO,
    "longtext": SemanticType.MEMO,

    # Numbers
    "int": SemanticType.INTEGER,
    "integer": SemanticType.INTEGER,
    "bigint": SemanticType.INTEGER,
    "smallint": SemanticType.INTEGER,
    "long": SemanticType.INTEGER,
    "decimal": SemanticType.DECIMAL,
    "numeric": SemanticType.DECIMAL,
    "float": SemanticType.FLOAT,
    "double": SemanticType.FLOAT,
    "real": SemanticType.FLOAT,
    "money": SemanticType.MONEY,
    "currency": SemanticType.MONEY,

    # Boolean
    "boolean": SemanticType.BOOLEAN,
    "bool": SemanticType.BOOLEAN,
    "bit": SemanticType.BOOLEAN,

    # Date/time
    "datetime": SemanticType.DATETIME,
    "timestamp": SemanticType.DATETIME,
    "date": SemanticType.DATE,
    "dateonly": SemanticType.DATE,

    # Identifiers
    "guid": SemanticType.GUID,
    "uuid": SemanticType.GUID,
    "uniqueidentifier": SemanticType.GUID,

    # Specialized
    "email": SemanticType.EMAIL,
    "phone": SemanticType.PHONE,
    "url": SemanticType.URL,
    "ticker": SemanticType.TICKER,
    "timezone": SemanticType.TIMEZONE,
    "language": SemanticType.LANGUAGE,
    "duration": SemanticType.DURATION,
    "file": SemanticType.FILE,
    "image": SemanticType.IMAGE,
    "choice": SemanticType.CHOICE,
    "lookup": SemanticType.LOOKUP,
}


# =============================================================================
# Name Heuristics
# =============================================================================

DATE_ONLY_NAMES: FrozenSet[str] = frozenset({
    "birthdate", "dateofbirth", "dob", "startdate", "enddate", "duedate",
    "orderdate", "deliverydate", "hiredate", "expirydate", "expirationdate",
})

UNTYPED = frozenset({None})
GENERIC_TEXT = frozenset({None, SemanticType.STRING})


def _words(name: str) -> List[str]:
    """Split snake_case, kebab-case and camelCase names into lower-case words."""
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", name)
    return [w for w in re.split(r"[_\-\s]+", spaced.lower()) if w]


def _compact(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


@dataclass(frozen=True)
class NameHeuristic:
    """A (predicate, target type) rule applied to attribute names."""
    label: str
    predicate: Callable[[str], bool]
    target: SemanticType
    refines: FrozenSet[Optional[SemanticType]] = GENERIC_TEXT

    def applies(self, name: str, current: Optional[SemanticType]) -> bool:
        return current in self.refines and self.predicate(name)


NAME_HEURISTICS: Tuple[NameHeuristic, ...] = (
    NameHeuristic(
        "email",
        lambda n: "email" in _compact(n) or "mail" in _words(n),
        SemanticType.EMAIL,
    ),
    NameHeuristic(
        "phone",
        lambda n: "phone" in _compact(n)
        or bool({"tel", "telephone", "mobile", "fax", "cell"} & set(_words(n))),
        SemanticType.PHONE,
    ),
    NameHeuristic(
        "url",
        lambda n: bool({"url", "website", "homepage", "link", "uri"} & set(_words(n)))
        or _compact(n).endswith("url") or "website" in _compact(n),
        SemanticType.URL,
    ),
    NameHeuristic(
        "date_only",
        lambda n: _compact(n) in DATE_ONLY_NAMES,
        SemanticType.DATE,
        refines=frozenset({None, SemanticType.STRING, SemanticType.DATETIME}),
    ),
    NameHeuristic(
        "flag",
        lambda n: _words(n)[:1] in (["is"], ["has"], ["can"]) and len(_words(n)) > 1,
        SemanticType.BOOLEAN,
        refines=UNTYPED,
    ),
    NameHeuristic(
        "money",
        lambda n: bool({"amount", "price", "cost", "salary", "revenue"} & set(_words(n))),
        SemanticType.MONEY,
        refines=UNTYPED,
    ),
    NameHeuristic(
        "count",
        lambda n: bool({"count", "quantity", "qty"} & set(_words(n))),
        SemanticType.INTEGER,
        refines=UNTYPED,
    ),
    NameHeuristic(
        "timestamp",
        lambda n: _words(n)[-1:] in (["at"], ["on"], ["timestamp"]) and len(_words(n)) > 1,
        SemanticType.DATETIME,
        refines=UNTYPED,
    ),
)


def infer_semantic_type(name: str, type_keyword: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Infer an attribute's semantic type.

    Args:
        name: Attribute name.
        type_keyword: Explicit type keyword, or None.

    Returns:
        Tuple of (data type, heuristic label or None). The data type is a
        SemanticType value, or the lower-cased keyword when it is unknown.
    """
    current: Optional[SemanticType] = None
    if type_keyword is not None:
        keyword = type_keyword.lower()
        current = TYPE_KEYWORDS.get(keyword)
        if current is None:
            logger.debug(f"Unknown type keyword '{type_keyword}' on attribute '{name}'")
            return keyword, None

    for heuristic in NAME_HEURISTICS:
        if heuristic.applies(name, current):
            return heuristic.target.value, heuristic.label

    return (current or SemanticType.STRING).value, None


def parse_choice_options(argument: Optional[str]) -> Tuple[str, ...]:
    """Split ``choice(a, "b c", d)`` arguments into clean option labels."""
    if not argument:
        return ()
    options = []
    for raw in argument.split(","):
        option = raw.strip().strip("\"'").strip()
        if option and option not in options:
            options.append(option)
    return tuple(options)


def option_set_name(entity_name: str, attribute_name: str) -> str:
    return f"{entity_name}_{attribute_name}".lower()


# =============================================================================
# Builder
# =============================================================================

class EntityModelBuilder:
    """
    Build Entity/Attribute values from parsed tokens.

    Example:
        >>> builder = EntityModelBuilder()
        >>> model = builder.build(ErdParser().parse(text))
        >>> model.entities[0].attributes[0].data_type
        'string'
    """

    def build(self, parse_result: ParseResult) -> SchemaModel:
        """
        Build a relationship-free SchemaModel from entity blocks.

        Duplicate blocks are kept in document order.
        """
        entities = [self.build_entity(block) for block in parse_result.entity_blocks]
        logger.debug(f"Built {len(entities)} entities")
        return SchemaModel(entities=tuple(entities), source_name=parse_result.source_name)

    def build_entity(self, block: EntityBlockToken) -> Entity:
        attributes = tuple(
            self.build_attribute(block.name, line) for line in block.attribute_lines
        )
        return Entity(
            name=block.name,
            attributes=attributes,
            display_name=block.display_name,
            line=block.start_line,
        )

    def build_attribute(self, entity_name: str, token: AttributeLineToken) -> Attribute:
        """
        Convert an attribute line into an Attribute.

        Args:
            entity_name: Owning entity name (used for option set naming).
            token: Parsed attribute line.

        Returns:
            Attribute with inferred semantic type and verbatim key flags.
        """
        data_type, heuristic = infer_semantic_type(token.name, token.type_keyword)
        if heuristic:
            logger.debug(f"{entity_name}.{token.name}: inferred '{data_type}' ({heuristic})")

        options: Tuple[str, ...] = ()
        option_set = None
        lookup_target = None
        if data_type == SemanticType.CHOICE.value:
            options = parse_choice_options(token.type_argument)
            if options:
                option_set = option_set_name(entity_name, token.name)
        elif data_type == SemanticType.LOOKUP.value:
            lookup_target = (token.type_argument or "").strip() or None

        constraints = set(token.constraints)
        return Attribute(
            name=token.name,
            data_type=data_type,
            is_primary_key="PK" in constraints,
            is_foreign_key="FK" in constraints,
            is_unique="UK" in constraints,
            is_required="REQUIRED" in constraints,
            description=token.description or None,
            options=options,
            option_set=option_set,
            lookup_target=lookup_target,
            raw_type=token.type_keyword,
            line=token.line,
        )
