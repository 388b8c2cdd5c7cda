"""
High-level orchestrator for snippet extraction.

This module provides the extractors resolving files against the configured
source roots, the language factory, and batch extraction over many
requests.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from core.structured_logging import request_scope
from snippet.config import (
    DEFAULT_BLOCK_ELLIPSIS,
    DEFAULT_ELLIPSIS_INDENT,
    LANGUAGE_EXTENSIONS,
)
from snippet.declarations import load_source_file
from snippet.errors import (
    InvalidPatternError,
    MemberNotFoundError,
    ParseError,
    SnippetExtractionError,
    SnippetFileNotFoundError,
)
from snippet.formatter import build_snippet
from snippet.models import Snippet, SourceFile
from snippet.pattern import parse_pattern
from snippet.settings import ExtractionRequest, ExtractorSettings
from snippet.trie import MatchingTrie, build_matching_trie

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class DefaultSnippetExtractor:
    """Extractor returning whole files, whatever the pattern.

    Files resolve against an ordered list of source roots; the first root
    containing the file wins.
    """

    language = "default"

    def __init__(self, source_roots: Sequence[PathLike]):
        if source_roots is None or len(source_roots) == 0:
            raise ValueError("At least one source directory is required")
        self.source_roots: Tuple[Path, ...] = tuple(Path(root).resolve() for root in source_roots)

    def resolve_path(self, file_path: Optional[PathLike], pattern: Optional[str] = None) -> Path:
        """Resolve a requested file against the source roots.

        Raises:
            SnippetFileNotFoundError: If the path is blank or no root holds it.
        """
        if file_path is None or not str(file_path).strip():
            raise SnippetFileNotFoundError("Cannot find file", file_path="", pattern=pattern)

        for root in self.source_roots:
            candidate = (root / file_path).resolve()
            if candidate.is_file() and candidate.is_relative_to(root):
                logger.debug("Resolved %s to %s", file_path, candidate)
                return candidate

        raise SnippetFileNotFoundError("Cannot find file", file_path=str(file_path), pattern=pattern)

    def load_file(self, path: Path) -> str:
        """Read a whole file as text, without byte order mark.

        Raises:
            ParseError: If the file is not valid UTF-8.
        """
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ParseError(f"Source is not valid UTF-8 ({e.reason})", file_path=str(path)) from e

    def extract(self, file_path: Optional[PathLike], pattern: Optional[str] = None) -> Snippet:
        """Extract the whole content of a file."""
        with request_scope(str(file_path) if file_path is not None else None, pattern):
            path = self.resolve_path(file_path, pattern)
            content = self.load_file(path)
            logger.info("Extracted whole file %s", path)
            return Snippet(content=content, file_path=str(file_path), pattern=pattern or "")


@dataclass
class ParsedSource:
    """Cache entry: a parsed file and the trie built over it."""

    source_file: SourceFile
    trie: MatchingTrie


class CSharpSnippetExtractor(DefaultSnippetExtractor):
    """Extractor resolving member patterns inside C# files.

    The declaration tree and matching trie of each file are built on first
    use and cached in the instance. Instances are not thread-safe.
    """

    language = "csharp"

    def __init__(
        self,
        source_roots: Sequence[PathLike],
        strict_parsing: bool = False,
        block_ellipsis: str = DEFAULT_BLOCK_ELLIPSIS,
        ellipsis_indent: str = DEFAULT_ELLIPSIS_INDENT,
    ):
        super().__init__(source_roots)
        self.strict_parsing = strict_parsing
        self.block_ellipsis = block_ellipsis
        self.ellipsis_indent = ellipsis_indent
        self._cache: Dict[Path, ParsedSource] = {}

    @property
    def cached_files(self) -> List[Path]:
        return list(self._cache)

    def load_parsed_source(self, path: Path) -> ParsedSource:
        """Return the cached parse of ``path``, building it on first use."""
        entry = self._cache.get(path)
        if entry is None:
            source_file = load_source_file(str(path), strict_parsing=self.strict_parsing)
            trie = build_matching_trie(source_file.root)
            entry = ParsedSource(source_file=source_file, trie=trie)
            self._cache[path] = entry
            logger.info("Cached matching trie for %s (%d declarations)", path, trie.declaration_count)
        return entry

    def extract(self, file_path: Optional[PathLike], pattern: Optional[str] = None) -> Snippet:
        """Extract the declaration(s) addressed by a member pattern.

        Args:
            file_path: File path relative to one of the source roots.
            pattern: Member pattern; None or blank returns the whole file.

        Returns:
            The extracted snippet.

        Raises:
            InvalidPatternError: If the pattern is malformed.
            SnippetFileNotFoundError: If the file cannot be resolved.
            MemberNotFoundError: If no declaration matches.
            ParseError: If the file cannot be parsed.
        """
        label = str(file_path) if file_path is not None else None
        with request_scope(label, pattern):
            try:
                member_pattern = parse_pattern(pattern)
            except InvalidPatternError as e:
                raise e.with_context(file_path=label, pattern=pattern) from e

            if member_pattern.is_whole_file:
                return super().extract(file_path, pattern)

            path = self.resolve_path(file_path, pattern)
            parsed = self.load_parsed_source(path)

            declarations = parsed.trie.match(member_pattern.chunks)
            if not declarations:
                raise MemberNotFoundError("Cannot find member", file_path=label, pattern=pattern)
            logger.debug(
                "Pattern matched %d declaration(s): %s",
                len(declarations),
                ", ".join(d.describe() for d in declarations),
            )

            content = build_snippet(
                [parsed.source_file.declaration_text(d.span) for d in declarations],
                member_pattern.mode,
                block_ellipsis=self.block_ellipsis,
                ellipsis_indent=self.ellipsis_indent,
            )
            return Snippet(content=content, file_path=label, pattern=pattern or "")


EXTRACTOR_TYPES = {
    "csharp": CSharpSnippetExtractor,
}


def detect_language(file_path: PathLike) -> Optional[str]:
    """Guess the extractor language from a file extension."""
    return LANGUAGE_EXTENSIONS.get(os.path.splitext(str(file_path))[1].lower())


def create_extractor(
    language: Optional[str],
    source_roots: Sequence[PathLike],
    settings: Optional[ExtractorSettings] = None,
) -> DefaultSnippetExtractor:
    """Create the extractor matching a snippet language.

    Unknown or missing languages get the whole-file extractor.

    Args:
        language: Language name such as ``csharp``.
        source_roots: Ordered source directories.
        settings: Optional settings carrying parsing and formatting options.

    Returns:
        An extractor instance.
    """
    extractor_type = EXTRACTOR_TYPES.get((language or "").lower())
    if extractor_type is None:
        logger.debug("No dedicated extractor for language %r, using default", language)
        return DefaultSnippetExtractor(source_roots)

    settings = settings or ExtractorSettings()
    return extractor_type(
        source_roots,
        strict_parsing=settings.strict_parsing,
        block_ellipsis=settings.block_ellipsis,
        ellipsis_indent=settings.ellipsis_indent,
    )


class ExtractionStats:
    """Statistics for a batch extraction."""

    def __init__(self):
        self.requests_processed = 0
        self.requests_failed = 0
        self.snippets_extracted = 0
        self.files_parsed = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert stats to dictionary."""
        return {
            "requests_processed": self.requests_processed,
            "requests_failed": self.requests_failed,
            "snippets_extracted": self.snippets_extracted,
            "files_parsed": self.files_parsed,
        }

    def __str__(self) -> str:
        """String representation of stats."""
        return (
            f"ExtractionStats(processed={self.requests_processed}, "
            f"failed={self.requests_failed}, snippets={self.snippets_extracted}, "
            f"files_parsed={self.files_parsed})"
        )


@dataclass
class ExtractionResult:
    """Outcome of one request: a snippet or the error that prevented it."""

    request: ExtractionRequest
    snippet: Optional[Snippet] = None
    error: Optional[SnippetExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "file": self.request.file_path,
            "pattern": self.request.pattern,
            "content": self.snippet.content if self.snippet else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class BatchExtraction:
    """Results of a batch extraction, in request order."""

    results: List[ExtractionResult] = field(default_factory=list)
    stats: ExtractionStats = field(default_factory=ExtractionStats)

    @property
    def failures(self) -> List[ExtractionResult]:
        return [result for result in self.results if not result.ok]


def extract_many(
    requests: Sequence[ExtractionRequest],
    settings: ExtractorSettings,
    continue_on_error: bool = True,
) -> BatchExtraction:
    """Extract many snippets, sharing one extractor per language.

    Args:
        requests: The snippet requests, in the order results are wanted.
        settings: Source roots plus parsing and formatting options.
        continue_on_error: If True, record failures and keep going.
            If False, raise on the first failure.

    Returns:
        A BatchExtraction with per-request results and statistics.

    Raises:
        ValueError: If ``settings`` has no source roots.
        SnippetExtractionError: On the first failure when
            ``continue_on_error`` is False.
    """
    extractors: Dict[str, DefaultSnippetExtractor] = {}
    batch = BatchExtraction()

    for request in requests:
        language = request.language or detect_language(request.file_path) or settings.language
        extractor = extractors.get(language)
        if extractor is None:
            extractor = create_extractor(language, settings.source_roots, settings)
            extractors[language] = extractor

        batch.stats.requests_processed += 1
        try:
            snippet = extractor.extract(request.file_path, request.pattern)
            batch.results.append(ExtractionResult(request=request, snippet=snippet))
            batch.stats.snippets_extracted += 1
        except SnippetExtractionError as e:
            logger.error("Snippet extraction failed: %s", e)
            batch.results.append(ExtractionResult(request=request, error=e))
            batch.stats.requests_failed += 1
            if not continue_on_error:
                raise

    batch.stats.files_parsed = sum(
        len(extractor.cached_files)
        for extractor in extractors.values()
        if isinstance(extractor, CSharpSnippetExtractor)
    )
    logger.info("Batch extraction complete: %s", batch.stats)
    return batch
