"""
ERD Structural Parser.

This module tokenizes Mermaid ``erDiagram`` text into structural tokens:
entity blocks with their raw attribute lines, relationship declarations and
syntax errors. Parsing is best-effort: a malformed entity block becomes a
single SyntaxErrorToken covering its line range and is skipped, and the rest
of the document keeps parsing.

Grammar:
    CUSTOMER {
        string id PK "Customer number"
        string email UK
        choice(active,inactive) state
        lookup(ACCOUNT) parent FK
    }
    CUSTOMER ||--o{ ORDER : "places"

Usage:
    from formats.erd.erd_parser import ErdParser

    parser = ErdParser()
    result = parser.parse(text)
    for block in result.entity_blocks:
        print(block.name, len(block.attribute_lines))
    for error in result.syntax_errors:
        print(error.start_line, error.message)
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# =============================================================================
# Grammar
# =============================================================================

NAME = r"[\w\-]+"

ENTITY_START_PATTERN = re.compile(
    rf'^({NAME})(?:\s*\[\s*"([^"]*)"\s*\])?\s*\{{(.*)$'
)
RELATIONSHIP_PATTERN = re.compile(
    rf"^({NAME})\s+(\|o|\|\||\}}o|\}}\|)(--|\.\.)(o\||\|\||o\{{|\|\{{)\s+({NAME})"
    r"\s*(?::\s*(.*))?$"
)
RELATIONSHIP_LIKE_PATTERN = re.compile(
    rf"^({NAME})\s+([|}}{{o.\-]+)\s+({NAME})(?:\s*:.*)?$"
)
DESCRIPTION_PATTERN = re.compile(r'^(.*?)\s*"([^"]*)"\s*$')
PARAMETERIZED_TYPE_PATTERN = re.compile(r"^(choice|lookup)\s*\(([^)]*)\)\s*(.*)$", re.IGNORECASE)
ATTRIBUTE_NAME_PATTERN = re.compile(rf"^{NAME}$")

CONSTRAINT_KEYWORDS = {"PK", "FK", "UK", "REQUIRED"}
IGNORED_PREFIXES = ("%%", "```", "direction ", "title ", "title:")


class ErdParseError(Exception):
    """Exception raised when an ERD document cannot be read at all."""

    def __init__(self, message: str, file_path: Optional[str] = None, line: Optional[int] = None):
        self.file_path = file_path
        self.line = line
        super().__init__(message)


# =============================================================================
# Tokens
# =============================================================================

@dataclass(frozen=True)
class AttributeLineToken:
    """A parsed attribute line inside an entity block."""
    line: int
    text: str
    name: str
    type_keyword: Optional[str] = None
    type_argument: Optional[str] = None
    constraints: Tuple[str, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class EntityBlockToken:
    """An entity block and its attribute lines."""
    name: str
    start_line: int
    end_line: int
    attribute_lines: Tuple[AttributeLineToken, ...] = ()
    display_name: Optional[str] = None


@dataclass(frozen=True)
class RelationshipToken:
    """A relationship declaration."""
    left: str
    left_marker: str
    separator: str
    right_marker: str
    right: str
    line: int
    label: str = ""


@dataclass(frozen=True)
class SyntaxErrorToken:
    """An unparseable block or line; the covered lines were skipped."""
    start_line: int
    end_line: int
    message: str
    text: str = ""


Token = Union[EntityBlockToken, RelationshipToken, SyntaxErrorToken]


@dataclass
class ParseResult:
    """Tokens in document order."""
    tokens: List[Token] = field(default_factory=list)
    source_name: Optional[str] = None

    @property
    def entity_blocks(self) -> List[EntityBlockToken]:
        return [t for t in self.tokens if isinstance(t, EntityBlockToken)]

    @property
    def relationships(self) -> List[RelationshipToken]:
        return [t for t in self.tokens if isinstance(t, RelationshipToken)]

    @property
    def syntax_errors(self) -> List[SyntaxErrorToken]:
        return [t for t in self.tokens if isinstance(t, SyntaxErrorToken)]

    @property
    def entity_names(self) -> List[str]:
        """Entity names declared by blocks or referenced by relationships."""
        names: List[str] = []
        for token in self.tokens:
            if isinstance(token, EntityBlockToken):
                candidates = [token.name]
            elif isinstance(token, RelationshipToken):
                candidates = [token.left, token.right]
            else:
                continue
            for name in candidates:
                if name not in names:
                    names.append(name)
        return names

    @property
    def is_empty(self) -> bool:
        """True when no entity could be recovered from the document."""
        return not self.entity_names


# =============================================================================
# Parser
# =============================================================================

class _OpenBlock:
    """Mutable accumulator for the block currently being read."""

    def __init__(self, name: str, display_name: Optional[str], start_line: int):
        self.name = name
        self.display_name = display_name
        self.start_line = start_line
        self.attribute_lines: List[AttributeLineToken] = []
        self.error: Optional[str] = None

    def add_line(self, text: str, line_no: int) -> None:
        parsed = parse_attribute_line(text, line_no)
        if isinstance(parsed, str):
            if self.error is None:
                self.error = f"line {line_no}: {parsed}"
        else:
            self.attribute_lines.append(parsed)

    def close(self, end_line: int) -> Token:
        if self.error:
            return SyntaxErrorToken(
                start_line=self.start_line,
                end_line=end_line,
                message=f"Malformed entity block '{self.name}' ({self.error}); block skipped",
                text=self.name,
            )
        return EntityBlockToken(
            name=self.name,
            start_line=self.start_line,
            end_line=end_line,
            attribute_lines=tuple(self.attribute_lines),
            display_name=self.display_name,
        )


def parse_attribute_line(text: str, line_no: int) -> Union[AttributeLineToken, str]:
    """
    Parse one attribute line.

    Args:
        text: Stripped attribute line.
        line_no: 1-based line number.

    Returns:
        AttributeLineToken, or an error message string when the line does
        not follow ``type name [constraints] ["description"]``.
    """
    body = text.strip().rstrip(",;")
    type_keyword: Optional[str] = None
    type_argument: Optional[str] = None
    parameterized = PARAMETERIZED_TYPE_PATTERN.match(body)
    if parameterized:
        type_keyword = parameterized.group(1).lower()
        type_argument = parameterized.group(2).strip()
        body = parameterized.group(3)
    if type_argument is not None and type_argument.count('"') % 2:
        return f"unbalanced quotes in attribute '{text}'"

    description = None
    match = DESCRIPTION_PATTERN.match(body)
    if match:
        body, description = match.group(1), match.group(2)
    if '"' in body:
        return f"unbalanced quotes in attribute '{text}'"

    if parameterized:
        tokens = body.split()
        if not tokens:
            return f"missing attribute name after '{type_keyword}(...)'"
        name, rest = tokens[0], tokens[1:]
    else:
        tokens = body.split()
        if not tokens:
            return "empty attribute line"
        if len(tokens) == 1 or tokens[1].rstrip(",").upper() in CONSTRAINT_KEYWORDS | {"NOT"}:
            name, rest = tokens[0], tokens[1:]
        else:
            type_keyword, name, rest = tokens[0], tokens[1], tokens[2:]

    if not ATTRIBUTE_NAME_PATTERN.match(name):
        return f"invalid attribute name '{name}'"

    constraints: List[str] = []
    words = [w for w in re.split(r"[,\s]+", " ".join(rest)) if w]
    index = 0
    while index < len(words):
        word = words[index].upper()
        if word == "NOT" and index + 1 < len(words) and words[index + 1].upper() == "NULL":
            constraints.append("REQUIRED")
            index += 2
            continue
        if word not in CONSTRAINT_KEYWORDS:
            return f"unknown constraint '{words[index]}' on attribute '{name}'"
        if word not in constraints:
            constraints.append(word)
        index += 1

    return AttributeLineToken(
        line=line_no,
        text=text,
        name=name,
        type_keyword=type_keyword,
        type_argument=type_argument,
        constraints=tuple(constraints),
        description=description,
    )


def _clean_label(raw: Optional[str]) -> str:
    if not raw:
        return ""
    label = raw.strip()
    if len(label) >= 2 and label[0] == label[-1] and label[0] in "\"'":
        label = label[1:-1]
    return label.strip()


class ErdParser:
    """
    Tokenize ERD text with block-level recovery.

    Example:
        >>> parser = ErdParser()
        >>> result = parser.parse('erDiagram\\n CUSTOMER { string name }')
        >>> [b.name for b in result.entity_blocks]
        ['CUSTOMER']
    """

    def parse(self, content: str, source_name: Optional[str] = None) -> ParseResult:
        """
        Parse ERD content.

        Args:
            content: ERD text.
            source_name: Optional file name for log messages.

        Returns:
            ParseResult with tokens in document order.
        """
        result = ParseResult(source_name=source_name)
        block: Optional[_OpenBlock] = None
        lines = content.splitlines()

        for line_no, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line or line.lower() == "erdiagram" or line.startswith(IGNORED_PREFIXES):
                continue

            if block is not None:
                if line == "}":
                    result.tokens.append(block.close(line_no))
                    block = None
                    continue
                if ENTITY_START_PATTERN.match(line) or RELATIONSHIP_PATTERN.match(line):
                    result.tokens.append(SyntaxErrorToken(
                        start_line=block.start_line,
                        end_line=line_no - 1,
                        message=f"Unterminated entity block '{block.name}'; block skipped",
                        text=block.name,
                    ))
                    block = None
                elif line.endswith("}"):
                    inner = line[:-1].strip()
                    if inner:
                        block.add_line(inner, line_no)
                    result.tokens.append(block.close(line_no))
                    block = None
                    continue
                else:
                    block.add_line(line, line_no)
                    continue

            block = self._parse_top_level(line, line_no, result)

        if block is not None:
            result.tokens.append(SyntaxErrorToken(
                start_line=block.start_line,
                end_line=len(lines),
                message=f"Unterminated entity block '{block.name}' at end of input; block skipped",
                text=block.name,
            ))

        logger.debug(
            "Parsed %s: %d entity blocks, %d relationships, %d syntax errors",
            source_name or "<text>",
            len(result.entity_blocks),
            len(result.relationships),
            len(result.syntax_errors),
        )
        return result

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult:
        """
        Parse an ERD file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ErdParseError: If the file is not valid UTF-8.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"ERD file not found: {file_path}")
        try:
            content = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise ErdParseError(f"File is not valid UTF-8: {e}", file_path=str(file_path))
        return self.parse(content, source_name=path.name)

    def _parse_top_level(self, line: str, line_no: int, result: ParseResult) -> Optional[_OpenBlock]:
        """Handle a line outside any block; returns a newly opened block, if any."""
        start = ENTITY_START_PATTERN.match(line)
        if start:
            name, display_name, rest = start.group(1), start.group(2), start.group(3).strip()
            block = _OpenBlock(name, display_name, line_no)
            if "}" in rest:
                inner, _, trailing = rest.rpartition("}")
                if trailing.strip():
                    block.error = f"line {line_no}: unexpected text after '}}'"
                for piece in inner.split(";"):
                    if piece.strip():
                        block.add_line(piece.strip(), line_no)
                result.tokens.append(block.close(line_no))
                return None
            if rest:
                block.add_line(rest, line_no)
            return block

        relationship = RELATIONSHIP_PATTERN.match(line)
        if relationship:
            result.tokens.append(RelationshipToken(
                left=relationship.group(1),
                left_marker=relationship.group(2),
                separator=relationship.group(3),
                right_marker=relationship.group(4),
                right=relationship.group(5),
                line=line_no,
                label=_clean_label(relationship.group(6)),
            ))
            return None

        if RELATIONSHIP_LIKE_PATTERN.match(line):
            message = "Unrecognized cardinality markers in relationship"
        elif line == "}":
            message = "Closing brace without an open entity block"
        else:
            message = "Unrecognized line"
        result.tokens.append(SyntaxErrorToken(
            start_line=line_no, end_line=line_no, message=message, text=line
        ))
        return None
