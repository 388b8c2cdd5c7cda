"""
Tree-sitter parser initialization and file parsing utilities.

This module provides functions to initialize the C# parser and parse source files.
"""

import logging
from typing import Tuple

import tree_sitter_c_sharp as tscsharp
from tree_sitter import Language, Node, Parser, Tree

from snippet.errors import ParseError

# Configure logging
logger = logging.getLogger(__name__)

# Module-level language constant
CSHARP_LANGUAGE = Language(tscsharp.language())


def create_parser() -> Parser:
    """Create and configure a tree-sitter parser for C#.

    Returns:
        A Parser instance configured with the C# language.

    Example:
        >>> parser = create_parser()
        >>> tree = parser.parse(b"class A { }")
    """
    parser = Parser(CSHARP_LANGUAGE)
    logger.debug("Created tree-sitter C# parser")
    return parser


def parse_bytes(source: bytes) -> Tree:
    """Parse raw bytes of C# source code.

    Args:
        source: UTF-8 encoded bytes of C# source code.

    Returns:
        A Tree object representing the parsed AST.

    Raises:
        TypeError: If source is not bytes.

    Example:
        >>> tree = parse_bytes(b"class A { void Foo() {} }")
        >>> tree.root_node.type
        'compilation_unit'
    """
    if not isinstance(source, bytes):
        raise TypeError(f"Source must be bytes, got {type(source).__name__}")

    parser = create_parser()
    tree = parser.parse(source)

    if tree.root_node.has_error:
        logger.debug("Parsed tree contains syntax errors")

    logger.debug("Parsed %d bytes of C# code", len(source))
    return tree


def read_source(file_path: str) -> bytes:
    """Read a source file as UTF-8 bytes without a byte order mark.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the file is not valid UTF-8.
    """
    try:
        with open(file_path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        logger.error("File not found: %s", file_path)
        raise

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"Source is not valid UTF-8 ({e.reason})", file_path=file_path) from e
    return text.encode("utf-8")


def parse_file(file_path: str) -> Tuple[Tree, bytes]:
    """Parse a C# source file from disk.

    Args:
        file_path: Path to the .cs file.

    Returns:
        A tuple of (Tree, source_bytes) where:
        - Tree is the parsed AST
        - source_bytes is the file content as UTF-8 bytes, BOM stripped

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the file cannot be decoded.
    """
    source_bytes = read_source(file_path)
    tree = parse_bytes(source_bytes)

    if tree.root_node.has_error:
        logger.debug("File %s contains syntax errors", file_path)

    logger.info("Successfully parsed file: %s", file_path)
    return tree, source_bytes


def count_error_nodes(tree: Tree) -> int:
    """Count ERROR and missing nodes in a parsed tree."""
    count = 0
    stack: list[Node] = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            count += 1
        stack.extend(node.children)
    return count
