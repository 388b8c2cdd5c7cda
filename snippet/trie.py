"""
Matching trie construction and member pattern resolution.

Every declaration is reachable through the chain of keys naming it from the
top of its file (namespaces, types, member, parameter list, accessor). Each
suffix of such a chain is registered from the trie root as well, so a
pattern may start at any depth of the qualification: ``Foo``,
``OneClass.Foo`` and ``NS.OneClass.Foo`` all resolve the same method.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from snippet.models import Declaration, DeclarationKind

logger = logging.getLogger(__name__)


class KeyKind(Enum):
    """Kinds of trie edges."""

    NAME = "name"
    PARAMETERS = "parameters"
    INDEXER = "indexer"
    CONSTRUCTOR = "constructor"
    DESTRUCTOR = "destructor"
    ACCESSOR = "accessor"


@dataclass(frozen=True)
class TrieKey:
    """Edge label of the matching trie."""

    kind: KeyKind
    name: str = ""
    arity: int = 0
    parameters: Tuple[str, ...] = ()


@dataclass(eq=False)
class TrieNode:
    """One trie node: keyed children plus declarations ending here."""

    children: Dict[TrieKey, "TrieNode"] = field(default_factory=dict)
    declarations: List[Declaration] = field(default_factory=list)

    def ensure_child(self, key: TrieKey) -> "TrieNode":
        child = self.children.get(key)
        if child is None:
            child = TrieNode()
            self.children[key] = child
        return child

    def add_declaration(self, declaration: Declaration) -> None:
        if not any(existing is declaration for existing in self.declarations):
            self.declarations.append(declaration)

    def count_nodes(self) -> int:
        return 1 + sum(child.count_nodes() for child in self.children.values())


def declaration_keys(declaration: Declaration) -> Tuple[List[TrieKey], Set[int]]:
    """Derive the trie keys a declaration adds below its parent.

    Args:
        declaration: A non-root declaration.

    Returns:
        A tuple of (keys, anchors) where ``anchors`` holds the indexes into
        ``keys`` at which the declaration itself is recorded.

    Raises:
        ValueError: For the synthetic root or an unknown kind.
    """
    kind = declaration.kind

    if kind is DeclarationKind.NAMESPACE:
        parts = declaration.name.split(".")
        return [TrieKey(KeyKind.NAME, part) for part in parts], {len(parts) - 1}

    if kind is DeclarationKind.TYPE:
        return [TrieKey(KeyKind.NAME, declaration.name, declaration.generic_arity)], {0}

    if kind is DeclarationKind.METHOD:
        return [
            TrieKey(KeyKind.NAME, declaration.name, declaration.generic_arity),
            TrieKey(KeyKind.PARAMETERS, parameters=declaration.parameter_types),
        ], {0, 1}

    if kind is DeclarationKind.CONSTRUCTOR:
        return [
            TrieKey(KeyKind.CONSTRUCTOR),
            TrieKey(KeyKind.PARAMETERS, parameters=declaration.parameter_types),
        ], {0, 1}

    if kind is DeclarationKind.DESTRUCTOR:
        return [
            TrieKey(KeyKind.DESTRUCTOR),
            TrieKey(KeyKind.PARAMETERS, parameters=declaration.parameter_types),
        ], {0, 1}

    if kind in (DeclarationKind.PROPERTY, DeclarationKind.EVENT):
        return [TrieKey(KeyKind.NAME, declaration.name)], {0}

    if kind is DeclarationKind.INDEXER:
        return [TrieKey(KeyKind.INDEXER, parameters=declaration.parameter_types)], {0}

    if kind is DeclarationKind.ACCESSOR:
        return [TrieKey(KeyKind.ACCESSOR, declaration.name)], {0}

    raise ValueError(f"Cannot derive trie keys for declaration kind {kind!r}")


@dataclass
class MatchingTrie:
    """Immutable-after-build lookup structure for one source file."""

    root: TrieNode
    declaration_count: int = 0

    def match(self, chunks: Sequence) -> List[Declaration]:
        return match_declarations(self.root, chunks)


class MatchingTrieBuilder:
    """Builds a MatchingTrie from a declaration tree in a single walk."""

    def __init__(self) -> None:
        self.root = TrieNode()
        self.declaration_count = 0

    def _register(self, path: List[TrieKey], owner_depth: int, anchors: Set[int], declaration: Declaration) -> None:
        # Every suffix of the path hangs off the root
        for start in range(len(path)):
            node = self.root
            for index in range(start, len(path)):
                node = node.ensure_child(path[index])
                if index - owner_depth in anchors:
                    node.add_declaration(declaration)

    def visit(self, declaration: Declaration, path: Optional[List[TrieKey]] = None) -> None:
        """Register a declaration and its descendants below ``path``."""
        if path is None:
            path = []

        if declaration.is_root:
            child_path = path
        else:
            keys, anchors = declaration_keys(declaration)
            child_path = path + keys
            self._register(child_path, len(path), anchors, declaration)
            self.declaration_count += 1

        for child in declaration.children:
            self.visit(child, child_path)

    def build(self, root: Declaration) -> MatchingTrie:
        self.visit(root)
        logger.debug(
            "Built matching trie: %d declarations, %d nodes",
            self.declaration_count,
            self.root.count_nodes(),
        )
        return MatchingTrie(root=self.root, declaration_count=self.declaration_count)


def build_matching_trie(root: Declaration) -> MatchingTrie:
    """Build the matching trie of a declaration tree."""
    return MatchingTrieBuilder().build(root)


def _unique_in_source_order(declarations: Iterable[Declaration]) -> List[Declaration]:
    seen: Set[int] = set()
    unique = []
    for declaration in declarations:
        if id(declaration) in seen:
            continue
        seen.add(id(declaration))
        unique.append(declaration)
    unique.sort(key=lambda d: (d.span.start_byte, -d.span.end_byte))
    return unique


def match_declarations(root: TrieNode, chunks: Sequence) -> List[Declaration]:
    """Resolve matching chunks against a trie.

    Each chunk advances every node of the current frontier through all the
    child edges it accepts, so an identifier reaches every arity declared
    under that name and ambiguous suffixes fan out. The declarations
    recorded at the final frontier form the (possibly aggregated) match.

    Args:
        root: The trie root.
        chunks: Parsed matching chunks, each exposing ``matches(key)``.

    Returns:
        Matched declarations in source order; empty when nothing matched.
    """
    frontier = [root]
    for chunk in chunks:
        frontier = [
            child
            for node in frontier
            for key, child in node.children.items()
            if chunk.matches(key)
        ]
        if not frontier:
            logger.debug("No trie edge accepts %r", chunk)
            return []

    return _unique_in_source_order(
        declaration for node in frontier for declaration in node.declarations
    )
