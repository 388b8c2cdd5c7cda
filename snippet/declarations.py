"""
AST traversal and declaration model construction.

This module walks the tree-sitter C# AST and builds the declaration
hierarchy (namespaces, types, members, accessors) the matching trie is
built from. Each declaration keeps a span covering its text plus the
comment block directly above it.
"""

import logging
from typing import List, Optional, Sequence

from tree_sitter import Node, Tree

from snippet.config import (
    ACCESSOR_KEYWORDS,
    ACCESSOR_LIST_NODE,
    ACCESSOR_NODE,
    BRACKETED_PARAMETER_LIST_NODE,
    COMMENT_NODE,
    CONSTRUCTOR_NODE,
    CONTAINER_TYPES,
    DESTRUCTOR_NODE,
    EVENT_FIELD_NODE,
    EVENT_NODE,
    FILE_SCOPED_NAMESPACE_NODE,
    INDEXER_NODE,
    METHOD_NODE,
    NAMESPACE_NODE,
    PARAMETER_ARRAY_NODE,
    PARAMETER_LIST_NODE,
    PARAMETER_NODE,
    PREPROCESSOR_CONTAINERS,
    PROPERTY_NODE,
    TYPE_NODES,
    TYPE_PARAMETER_LIST_NODE,
    TYPE_PARAMETER_NODE,
    VARIABLE_DECLARATION_NODE,
    VARIABLE_DECLARATOR_NODE,
)
from snippet.errors import ParseError
from snippet.models import (
    Declaration,
    DeclarationKind,
    SourceFile,
    SourceSpan,
    normalize_type_name,
)
from snippet.parser import count_error_nodes, parse_file

logger = logging.getLogger(__name__)

# Leading words of a parameter that are not part of its type
_PARAMETER_MODIFIERS = {"this", "ref", "out", "in", "params", "scoped", "readonly"}


def _text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8")


def _child_of_type(node: Node, node_type: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _field_or_child(node: Node, field_name: str, node_type: str) -> Optional[Node]:
    """Look a child up by field name, falling back to its node type."""
    child = node.child_by_field_name(field_name)
    if child is not None:
        return child
    return _child_of_type(node, node_type)


def _starts_line(node: Node, source_bytes: bytes) -> bool:
    """Check whether only whitespace precedes ``node`` on its first line."""
    line_start = source_bytes.rfind(b"\n", 0, node.start_byte) + 1
    return not source_bytes[line_start:node.start_byte].strip()


def get_leading_comment_node(node: Node, source_bytes: bytes) -> Node:
    """Find the first comment of the block directly above a declaration.

    Walks backward through comment siblings that each start their own line,
    allowing no blank line between consecutive comments and the declaration.

    Args:
        node: The declaration node.
        source_bytes: The raw source file bytes.

    Returns:
        The earliest adjacent comment node, or ``node`` itself.
    """
    first = node
    sibling = node.prev_named_sibling
    expected_row = node.start_point.row

    while sibling is not None and sibling.type == COMMENT_NODE:
        if expected_row - sibling.end_point.row > 1:
            break
        if not _starts_line(sibling, source_bytes):
            break
        first = sibling
        expected_row = sibling.start_point.row
        sibling = sibling.prev_named_sibling

    return first


def compute_span(
    node: Node,
    source_bytes: bytes,
    end_node: Optional[Node] = None,
) -> SourceSpan:
    """Compute the text span of a declaration.

    The span starts at the beginning of the line holding the declaration's
    leading comment block (or the declaration itself) when nothing but
    indentation precedes it there, so the first line keeps its indentation.

    Args:
        node: The declaration node.
        source_bytes: The raw source file bytes.
        end_node: Node whose end closes the span, defaults to ``node``.
    """
    first = get_leading_comment_node(node, source_bytes)
    if _starts_line(first, source_bytes):
        start_byte = source_bytes.rfind(b"\n", 0, first.start_byte) + 1
    else:
        start_byte = first.start_byte

    last = end_node if end_node is not None else node
    return SourceSpan(
        start_byte=start_byte,
        end_byte=last.end_byte,
        start_line=first.start_point.row + 1,
        end_line=last.end_point.row + 1,
    )


def extract_name(node: Node, source_bytes: bytes) -> str:
    """Extract the declared name, dropping whitespace inside qualified names."""
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return ""
    return "".join(_text(name_node, source_bytes).split())


def extract_generic_arity(node: Node) -> int:
    """Count the type parameters declared on a type or method."""
    type_parameters = _field_or_child(node, "type_parameters", TYPE_PARAMETER_LIST_NODE)
    if type_parameters is None:
        return 0
    return sum(1 for child in type_parameters.named_children if child.type == TYPE_PARAMETER_NODE)


def _parameter_type(parameter: Node, source_bytes: bytes) -> str:
    type_node = parameter.child_by_field_name("type")
    if type_node is not None:
        text = _text(type_node, source_bytes)
    else:
        # Untyped forms (params arrays in older grammars): cut the name off the text
        name_node = parameter.child_by_field_name("name")
        end = name_node.start_byte if name_node is not None else parameter.end_byte
        start = parameter.start_byte
        for child in parameter.named_children:
            if child.type == "attribute_list":
                start = max(start, child.end_byte)
        text = source_bytes[start:end].decode("utf-8")

    words = text.split()
    while words and words[0] in _PARAMETER_MODIFIERS:
        words = words[1:]
    return normalize_type_name(" ".join(words))


def extract_parameter_types(parameter_list: Optional[Node], source_bytes: bytes) -> tuple:
    """Extract the ordered, normalized parameter types of a parameter list."""
    if parameter_list is None:
        return ()

    types = []
    for index, child in enumerate(parameter_list.children):
        if child.type in (PARAMETER_NODE, PARAMETER_ARRAY_NODE):
            types.append(_parameter_type(child, source_bytes))
        elif parameter_list.field_name_for_child(index) == "type":
            # params arrays are inlined: their type and name hang off the list
            types.append(normalize_type_name(_text(child, source_bytes)))
    return tuple(types)


def extract_accessor_name(node: Node, source_bytes: bytes) -> str:
    """Extract the accessor keyword (get, set, init, add, remove)."""
    name_node = node.child_by_field_name("name")
    if name_node is not None:
        return _text(name_node, source_bytes).strip()
    for child in node.children:
        if child.type in ACCESSOR_KEYWORDS:
            return child.type
    return ""


def _build_accessors(node: Node, source_bytes: bytes) -> List[Declaration]:
    accessor_list = _field_or_child(node, "accessors", ACCESSOR_LIST_NODE)
    if accessor_list is None:
        return []

    accessors = []
    for child in accessor_list.named_children:
        if child.type != ACCESSOR_NODE:
            continue
        name = extract_accessor_name(child, source_bytes)
        if name not in ACCESSOR_KEYWORDS:
            logger.debug("Skipping unknown accessor '%s' at line %d", name, child.start_point.row + 1)
            continue
        accessors.append(
            Declaration(
                kind=DeclarationKind.ACCESSOR,
                name=name,
                span=compute_span(child, source_bytes),
            )
        )
    return accessors


def _build_event_fields(node: Node, source_bytes: bytes) -> List[Declaration]:
    """One event declaration per declarator of an event field."""
    variable_declaration = _child_of_type(node, VARIABLE_DECLARATION_NODE)
    if variable_declaration is None:
        return []

    span = compute_span(node, source_bytes)
    events = []
    for declarator in variable_declaration.named_children:
        if declarator.type != VARIABLE_DECLARATOR_NODE:
            continue
        name = extract_name(declarator, source_bytes)
        if not name:
            identifier = _child_of_type(declarator, "identifier")
            name = _text(identifier, source_bytes) if identifier is not None else ""
        if name:
            events.append(Declaration(kind=DeclarationKind.EVENT, name=name, span=span))
    return events


def build_declaration(node: Node, source_bytes: bytes) -> List[Declaration]:
    """Build the declaration(s) for a single AST node.

    Args:
        node: A named child of a compilation unit, namespace or type body.
        source_bytes: The raw source file bytes.

    Returns:
        Zero or more declarations; event fields may declare several names.
    """
    node_type = node.type

    if node_type == NAMESPACE_NODE:
        body = node.child_by_field_name("body")
        return [
            Declaration(
                kind=DeclarationKind.NAMESPACE,
                name=extract_name(node, source_bytes),
                span=compute_span(node, source_bytes),
                children=collect_declarations(body.named_children, source_bytes) if body else [],
            )
        ]

    if node_type in TYPE_NODES:
        name = extract_name(node, source_bytes)
        if not name:
            logger.debug("Skipping anonymous %s at line %d", node_type, node.start_point.row + 1)
            return []
        children: List[Declaration] = []
        parameters: tuple = ()
        if TYPE_NODES[node_type]:
            body = _field_or_child(node, "body", "declaration_list")
            if body is not None:
                children = collect_declarations(body.named_children, source_bytes)
        else:
            parameters = extract_parameter_types(
                _field_or_child(node, "parameters", PARAMETER_LIST_NODE), source_bytes
            )
        return [
            Declaration(
                kind=DeclarationKind.TYPE,
                name=name,
                span=compute_span(node, source_bytes),
                parameter_types=parameters,
                generic_arity=extract_generic_arity(node),
                children=children,
            )
        ]

    if node_type in (METHOD_NODE, CONSTRUCTOR_NODE, DESTRUCTOR_NODE):
        kind = {
            METHOD_NODE: DeclarationKind.METHOD,
            CONSTRUCTOR_NODE: DeclarationKind.CONSTRUCTOR,
            DESTRUCTOR_NODE: DeclarationKind.DESTRUCTOR,
        }[node_type]
        return [
            Declaration(
                kind=kind,
                name=extract_name(node, source_bytes) if kind is DeclarationKind.METHOD else "",
                span=compute_span(node, source_bytes),
                parameter_types=extract_parameter_types(
                    _field_or_child(node, "parameters", PARAMETER_LIST_NODE), source_bytes
                ),
                generic_arity=extract_generic_arity(node) if kind is DeclarationKind.METHOD else 0,
            )
        ]

    if node_type in (PROPERTY_NODE, EVENT_NODE):
        kind = DeclarationKind.PROPERTY if node_type == PROPERTY_NODE else DeclarationKind.EVENT
        return [
            Declaration(
                kind=kind,
                name=extract_name(node, source_bytes),
                span=compute_span(node, source_bytes),
                children=_build_accessors(node, source_bytes),
            )
        ]

    if node_type == INDEXER_NODE:
        return [
            Declaration(
                kind=DeclarationKind.INDEXER,
                name="",
                span=compute_span(node, source_bytes),
                parameter_types=extract_parameter_types(
                    _field_or_child(node, "parameters", BRACKETED_PARAMETER_LIST_NODE), source_bytes
                ),
                children=_build_accessors(node, source_bytes),
            )
        ]

    if node_type == EVENT_FIELD_NODE:
        return _build_event_fields(node, source_bytes)

    return []


def _build_file_scoped_namespace(
    node: Node,
    following: Sequence[Node],
    source_bytes: bytes,
) -> Declaration:
    """Build a file-scoped namespace owning every declaration after it."""
    members = [child for child in node.named_children if child.type != COMMENT_NODE]
    members.extend(following)
    children = collect_declarations(members, source_bytes)
    last = following[-1] if following else node
    return Declaration(
        kind=DeclarationKind.NAMESPACE,
        name=extract_name(node, source_bytes),
        span=compute_span(node, source_bytes, end_node=last),
        children=children,
    )


def collect_declarations(nodes: Sequence[Node], source_bytes: bytes) -> List[Declaration]:
    """Recursively build declarations from a sequence of sibling nodes.

    Container and preprocessor nodes are transparent: their children are
    collected as if they were siblings.

    Args:
        nodes: Sibling AST nodes in source order.
        source_bytes: The raw source file bytes.

    Returns:
        Declarations in source order.
    """
    declarations: List[Declaration] = []
    nodes = list(nodes)

    for index, child in enumerate(nodes):
        if not child.is_named or child.type == COMMENT_NODE:
            continue

        if child.type == FILE_SCOPED_NAMESPACE_NODE:
            declarations.append(
                _build_file_scoped_namespace(child, nodes[index + 1:], source_bytes)
            )
            break

        if child.type in CONTAINER_TYPES or child.type in PREPROCESSOR_CONTAINERS:
            declarations.extend(collect_declarations(child.named_children, source_bytes))
            continue

        for declaration in build_declaration(child, source_bytes):
            logger.debug("Found %s", declaration.describe())
            declarations.append(declaration)

    return declarations


def build_declaration_tree(tree: Tree, source_bytes: bytes) -> Declaration:
    """Build the declaration hierarchy of a parsed C# file.

    This is the main entry point for declaration model construction.

    Args:
        tree: The parsed AST tree.
        source_bytes: The raw source file bytes.

    Returns:
        The synthetic root declaration spanning the whole file.
    """
    root_node = tree.root_node
    return Declaration(
        kind=None,
        name="",
        span=SourceSpan(
            start_byte=0,
            end_byte=len(source_bytes),
            start_line=1,
            end_line=root_node.end_point.row + 1,
        ),
        children=collect_declarations(root_node.named_children, source_bytes),
    )


def load_source_file(file_path: str, strict_parsing: bool = False) -> SourceFile:
    """Parse a C# file and build its declaration tree.

    Args:
        file_path: Path of the file to load.
        strict_parsing: Reject files whose syntax tree contains errors.

    Returns:
        The parsed SourceFile.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the file cannot be decoded, or contains syntax
            errors while ``strict_parsing`` is enabled.
    """
    tree, source_bytes = parse_file(file_path)
    parse_error_count = count_error_nodes(tree)

    if tree.root_node.has_error:
        if strict_parsing:
            raise ParseError(
                f"Source contains {parse_error_count} syntax error node(s)",
                file_path=file_path,
            )
        logger.warning(
            "File %s contains syntax errors (%d error nodes)",
            file_path,
            parse_error_count,
        )

    root = build_declaration_tree(tree, source_bytes)
    logger.info(
        "Built declaration tree for %s (%d declarations)",
        file_path,
        sum(1 for _ in root.walk()) - 1,
    )
    return SourceFile(
        path=file_path,
        source_bytes=source_bytes,
        root=root,
        parse_error_count=parse_error_count,
    )
