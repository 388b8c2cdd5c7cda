"""
Snippet Extraction Engine

Tree-sitter-based C# member pattern resolver. Resolves patterns such as
``NS.OneClass.Foo(string, int)`` to the declarations they name and returns
their cleaned source text.
"""

from snippet.models import (
    Declaration,
    DeclarationKind,
    ExtractionMode,
    Snippet,
    SourceFile,
    SourceSpan,
)
from snippet.errors import (
    EmptySpanSetError,
    InvalidPatternError,
    MemberNotFoundError,
    ParseError,
    SnippetExtractionError,
    SnippetFileNotFoundError,
)
from snippet.parser import create_parser, parse_bytes, parse_file, count_error_nodes
from snippet.declarations import build_declaration_tree, load_source_file
from snippet.pattern import MemberPattern, parse_pattern
from snippet.trie import MatchingTrie, build_matching_trie
from snippet.formatter import build_snippet
from snippet.settings import (
    ConfigValidationError,
    ExtractionRequest,
    ExtractorSettings,
    load_requests,
    load_settings,
)
from snippet.extractor import (
    BatchExtraction,
    CSharpSnippetExtractor,
    DefaultSnippetExtractor,
    ExtractionResult,
    ExtractionStats,
    create_extractor,
    detect_language,
    extract_many,
)

__all__ = [
    # Data models
    "Declaration",
    "DeclarationKind",
    "ExtractionMode",
    "Snippet",
    "SourceFile",
    "SourceSpan",
    # Errors
    "SnippetExtractionError",
    "InvalidPatternError",
    "MemberNotFoundError",
    "SnippetFileNotFoundError",
    "EmptySpanSetError",
    "ParseError",
    "ConfigValidationError",
    # Low-level parsing
    "create_parser",
    "parse_bytes",
    "parse_file",
    "count_error_nodes",
    # Declaration model and matching
    "build_declaration_tree",
    "load_source_file",
    "MemberPattern",
    "parse_pattern",
    "MatchingTrie",
    "build_matching_trie",
    "build_snippet",
    # Settings
    "ExtractionRequest",
    "ExtractorSettings",
    "load_requests",
    "load_settings",
    # High-level orchestration
    "DefaultSnippetExtractor",
    "CSharpSnippetExtractor",
    "create_extractor",
    "detect_language",
    "extract_many",
    "ExtractionResult",
    "ExtractionStats",
    "BatchExtraction",
]
