"""
Member pattern parsing.

A member pattern is an optional extraction mode sigil followed by a dotted
chunk sequence, for instance ``NS.OneClass.Foo(string, int)``,
``=Options.Event.add``, ``C{T, U}.CMethod{X, Y}`` or ``D.[string,int].get``.
Dots inside ``()``, ``[]``, ``{}`` and ``<>`` do not split chunks.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

from snippet.config import (
    ACCESSOR_KEYWORDS,
    BLOCK_STRUCTURE_ONLY_SIGIL,
    CONSTRUCTOR_MARKER,
    CONTENT_ONLY_SIGIL,
    DESTRUCTOR_MARKER,
)
from snippet.errors import InvalidPatternError
from snippet.models import ExtractionMode, normalize_type_name
from snippet.trie import KeyKind, TrieKey

logger = logging.getLogger(__name__)

_BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_CLOSING_BRACKETS = set(_BRACKET_PAIRS.values())

_SEGMENT_RE = re.compile(
    r"^(?:(?P<reserved><\w+>)|(?P<name>@?[^\W\d]\w*)(?:\s*\{(?P<generic>.*?)\})?)?"
    r"\s*(?:\((?P<parameters>.*)\)|\[(?P<indexer>.*)\])?$",
    re.DOTALL,
)

_RESERVED_KINDS = {
    CONSTRUCTOR_MARKER: KeyKind.CONSTRUCTOR,
    DESTRUCTOR_MARKER: KeyKind.DESTRUCTOR,
}


@dataclass(frozen=True)
class IdentifierChunk:
    """Plain name; matches every arity declared under that name."""

    name: str

    def matches(self, key: TrieKey) -> bool:
        return key.kind is KeyKind.NAME and key.name == self.name


@dataclass(frozen=True)
class GenericChunk:
    """``Name{P1, P2}``; placeholder names are only counted."""

    name: str
    arity: int

    def matches(self, key: TrieKey) -> bool:
        return key.kind is KeyKind.NAME and key.name == self.name and key.arity == self.arity


@dataclass(frozen=True)
class ParameterListChunk:
    """``(T1, T2)``; exact ordered parameter types."""

    types: Tuple[str, ...]

    def matches(self, key: TrieKey) -> bool:
        return key.kind is KeyKind.PARAMETERS and key.parameters == self.types


@dataclass(frozen=True)
class IndexerChunk:
    """``[T1, T2]``; exact ordered indexer parameter types."""

    types: Tuple[str, ...]

    def matches(self, key: TrieKey) -> bool:
        return key.kind is KeyKind.INDEXER and key.parameters == self.types


@dataclass(frozen=True)
class ReservedChunk:
    """``<Constructor>`` or ``<Destructor>``."""

    kind: KeyKind

    def matches(self, key: TrieKey) -> bool:
        return key.kind is self.kind


@dataclass(frozen=True)
class AccessorChunk:
    """``get``, ``set``, ``init``, ``add`` or ``remove``."""

    name: str

    def matches(self, key: TrieKey) -> bool:
        return key.kind is KeyKind.ACCESSOR and key.name == self.name


@dataclass(frozen=True)
class MemberPattern:
    """A parsed member pattern."""

    text: str
    chunks: tuple
    mode: ExtractionMode = ExtractionMode.FULL

    @property
    def is_whole_file(self) -> bool:
        return not self.chunks


def split_segments(text: str) -> List[str]:
    """Split pattern text on dots that sit outside any bracket pair.

    Raises:
        InvalidPatternError: On unterminated or mismatched brackets.
    """
    segments: List[str] = []
    expected: List[str] = []
    current: List[str] = []

    for position, char in enumerate(text):
        if char in _BRACKET_PAIRS:
            expected.append(_BRACKET_PAIRS[char])
        elif char in _CLOSING_BRACKETS:
            if not expected or expected[-1] != char:
                raise InvalidPatternError(
                    f"Invalid extraction rule: unexpected '{char}' at position {position}",
                    pattern=text,
                )
            expected.pop()
        elif char == "." and not expected:
            segments.append("".join(current))
            current = []
            continue
        current.append(char)

    if expected:
        raise InvalidPatternError(
            f"Invalid extraction rule: missing '{expected[-1]}'",
            pattern=text,
        )
    segments.append("".join(current))
    return segments


def split_type_list(text: str, pattern: str) -> Tuple[str, ...]:
    """Split a comma separated type list, honoring nested generic arguments."""
    if not text.strip():
        return ()

    items: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char in _BRACKET_PAIRS:
            depth += 1
        elif char in _CLOSING_BRACKETS:
            depth -= 1
            if depth < 0:
                raise InvalidPatternError(
                    f"Invalid extraction rule: unexpected '{char}' in list '{text}'",
                    pattern=pattern,
                )
        elif char == "," and depth == 0:
            items.append("".join(current))
            current = []
            continue
        current.append(char)
    items.append("".join(current))

    normalized = tuple(normalize_type_name(item) for item in items)
    if not all(normalized):
        raise InvalidPatternError("Invalid extraction rule: empty list item", pattern=pattern)
    return normalized


def parse_chunks(segment: str, pattern: str) -> list:
    """Classify one dotted segment into one or two matching chunks."""
    segment = segment.strip()
    if not segment:
        raise InvalidPatternError("Invalid extraction rule: empty member name", pattern=pattern)

    if segment in ACCESSOR_KEYWORDS:
        return [AccessorChunk(segment)]

    match = _SEGMENT_RE.match(segment)
    if match is None:
        raise InvalidPatternError(
            f"Invalid extraction rule: cannot parse '{segment}'",
            pattern=pattern,
        )

    chunks: list = []
    reserved = match.group("reserved")
    name = match.group("name")
    generic = match.group("generic")
    parameters = match.group("parameters")
    indexer = match.group("indexer")

    if reserved is not None:
        if reserved not in _RESERVED_KINDS:
            raise InvalidPatternError(
                f"Invalid extraction rule: unknown marker '{reserved}'",
                pattern=pattern,
            )
        if indexer is not None:
            raise InvalidPatternError(
                f"Invalid extraction rule: '{reserved}' cannot take an indexer list",
                pattern=pattern,
            )
        chunks.append(ReservedChunk(_RESERVED_KINDS[reserved]))
    elif name is not None:
        if indexer is not None:
            raise InvalidPatternError(
                f"Invalid extraction rule: indexer list must stand alone in '{segment}'",
                pattern=pattern,
            )
        if generic is None:
            chunks.append(IdentifierChunk(name))
        else:
            placeholders = split_type_list(generic, pattern)
            if not placeholders:
                raise InvalidPatternError(
                    f"Invalid extraction rule: empty generic list in '{segment}'",
                    pattern=pattern,
                )
            chunks.append(GenericChunk(name, len(placeholders)))

    if parameters is not None:
        chunks.append(ParameterListChunk(split_type_list(parameters, pattern)))
    elif indexer is not None:
        chunks.append(IndexerChunk(split_type_list(indexer, pattern)))

    if not chunks:
        raise InvalidPatternError(
            f"Invalid extraction rule: cannot parse '{segment}'",
            pattern=pattern,
        )
    return chunks


def parse_pattern(text: str) -> MemberPattern:
    """Parse a member pattern into matching chunks and an extraction mode.

    Args:
        text: The raw member pattern. None or blank selects the whole file.

    Returns:
        The parsed MemberPattern.

    Raises:
        InvalidPatternError: If the text is malformed.

    Example:
        >>> parse_pattern("-Foo(string, int)").chunks
        (IdentifierChunk(name='Foo'), ParameterListChunk(types=('string', 'int')))
    """
    if text is None or not text.strip():
        return MemberPattern(text=text or "", chunks=())

    body = text.strip()
    mode = ExtractionMode.FULL
    if body.startswith(CONTENT_ONLY_SIGIL):
        mode = ExtractionMode.CONTENT_ONLY
        body = body[1:]
    elif body.startswith(BLOCK_STRUCTURE_ONLY_SIGIL):
        mode = ExtractionMode.BLOCK_STRUCTURE_ONLY
        body = body[1:]

    if not body.strip():
        raise InvalidPatternError(
            "Invalid extraction rule: missing member after extraction mode",
            pattern=text,
        )

    chunks: list = []
    for segment in split_segments(body):
        chunks.extend(parse_chunks(segment, text))

    logger.debug("Parsed pattern '%s' into %d chunk(s), mode=%s", text, len(chunks), mode.value)
    return MemberPattern(text=text, chunks=tuple(chunks), mode=mode)
