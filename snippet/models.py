"""
Data models for the C# declaration hierarchy and extracted snippets.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_SPACING_RE = re.compile(r"\s*([,<>\[\]()?*.:])\s*")


class DeclarationKind(Enum):
    """Closed set of declaration kinds the matching engine understands."""

    NAMESPACE = "Namespace"
    TYPE = "Type"
    METHOD = "Method"
    PROPERTY = "Property"
    INDEXER = "Indexer"
    EVENT = "Event"
    CONSTRUCTOR = "Constructor"
    DESTRUCTOR = "Destructor"
    ACCESSOR = "Accessor"


class ExtractionMode(Enum):
    """How much of a matched declaration ends up in the snippet."""

    FULL = "full"
    CONTENT_ONLY = "content_only"
    BLOCK_STRUCTURE_ONLY = "block_structure_only"


@dataclass(frozen=True)
class SourceSpan:
    """Byte range of a declaration inside its source file.

    Attributes:
        start_byte: Offset of the first byte of the line the declaration
            (or its leading comment block) starts on.
        end_byte: Offset one past the declaration's last byte.
        start_line: 1-indexed first line.
        end_line: 1-indexed last line.
    """

    start_byte: int
    end_byte: int
    start_line: int
    end_line: int


@dataclass(eq=False)
class Declaration:
    """A single namespace, type, member or accessor declaration.

    The synthetic root of a file has ``kind`` set to None. Declarations
    compare and hash by identity.
    """

    kind: Optional[DeclarationKind]
    name: str
    span: SourceSpan
    parameter_types: Tuple[str, ...] = ()
    generic_arity: int = 0
    children: List["Declaration"] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.kind is None

    def walk(self):
        """Yield this declaration and all descendants in source order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def describe(self) -> str:
        """Short human readable label used in log lines."""
        if self.kind is None:
            return "<root>"
        label = self.name or f"<{self.kind.value}>"
        if self.generic_arity:
            label += "{" + ",".join(["_"] * self.generic_arity) + "}"
        if self.kind in (
            DeclarationKind.METHOD,
            DeclarationKind.CONSTRUCTOR,
            DeclarationKind.DESTRUCTOR,
        ):
            label += "(" + ",".join(self.parameter_types) + ")"
        elif self.kind is DeclarationKind.INDEXER:
            label += "[" + ",".join(self.parameter_types) + "]"
        return f"{self.kind.value} {label} (line {self.span.start_line})"


@dataclass
class SourceFile:
    """A parsed source file: raw bytes plus its declaration tree."""

    path: str
    source_bytes: bytes
    root: Declaration
    parse_error_count: int = 0

    def declaration_text(self, span: SourceSpan) -> List[str]:
        """Materialize the lines covered by ``span``."""
        text = self.source_bytes[span.start_byte:span.end_byte].decode("utf-8")
        return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


@dataclass(frozen=True)
class Snippet:
    """Immutable result of one extraction request."""

    content: str
    file_path: str = ""
    pattern: str = ""

    def __str__(self) -> str:
        return self.content


def normalize_type_name(type_name: str) -> str:
    """Canonicalize a parameter type spelling for comparison.

    Whitespace around punctuation is dropped and inner runs collapse, so
    ``Dictionary<string, int>`` and ``Dictionary<string,int>`` compare equal.

    Args:
        type_name: Raw type text from source or from a member pattern.

    Returns:
        Canonical type text.
    """
    normalized = _WHITESPACE_RE.sub(" ", type_name.strip())
    return _PUNCTUATION_SPACING_RE.sub(r"\1", normalized)
