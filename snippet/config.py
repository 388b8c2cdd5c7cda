"""
Configuration constants for C# snippet extraction.

Defines the tree-sitter node type strings used to build the declaration
model, and the pattern language keywords.
"""

from typing import Dict, Set

# Namespace declarations (block-bodied and file-scoped)
NAMESPACE_NODE: str = "namespace_declaration"
FILE_SCOPED_NAMESPACE_NODE: str = "file_scoped_namespace_declaration"

# Type declarations; the value tells whether the body holds member declarations
TYPE_NODES: Dict[str, bool] = {
    "class_declaration": True,
    "struct_declaration": True,
    "interface_declaration": True,
    "record_declaration": True,
    "record_struct_declaration": True,
    "enum_declaration": False,
    "delegate_declaration": False,
}

METHOD_NODE: str = "method_declaration"
CONSTRUCTOR_NODE: str = "constructor_declaration"
DESTRUCTOR_NODE: str = "destructor_declaration"
PROPERTY_NODE: str = "property_declaration"
INDEXER_NODE: str = "indexer_declaration"
EVENT_NODE: str = "event_declaration"
EVENT_FIELD_NODE: str = "event_field_declaration"
ACCESSOR_NODE: str = "accessor_declaration"

# Comment node type (includes //, /* */, ///)
COMMENT_NODE: str = "comment"

# Container types whose children we scan
CONTAINER_TYPES: Set[str] = {
    "compilation_unit",
    "declaration_list",
}

# Preprocessor blocks that may wrap member declarations
PREPROCESSOR_CONTAINERS: Set[str] = {
    "preproc_if",
    "preproc_elif",
    "preproc_else",
    "preproc_region",
}

# Child node types carrying parameter and type parameter lists
PARAMETER_LIST_NODE: str = "parameter_list"
BRACKETED_PARAMETER_LIST_NODE: str = "bracketed_parameter_list"
PARAMETER_NODE: str = "parameter"
PARAMETER_ARRAY_NODE: str = "parameter_array"
TYPE_PARAMETER_LIST_NODE: str = "type_parameter_list"
TYPE_PARAMETER_NODE: str = "type_parameter"
ACCESSOR_LIST_NODE: str = "accessor_list"
VARIABLE_DECLARATION_NODE: str = "variable_declaration"
VARIABLE_DECLARATOR_NODE: str = "variable_declarator"

# Accessor keywords, both as declaration names and as pattern chunks
ACCESSOR_KEYWORDS: Set[str] = {"get", "set", "init", "add", "remove"}

# Reserved pattern chunks
CONSTRUCTOR_MARKER: str = "<Constructor>"
DESTRUCTOR_MARKER: str = "<Destructor>"

# Extraction mode sigils
CONTENT_ONLY_SIGIL: str = "-"
BLOCK_STRUCTURE_ONLY_SIGIL: str = "="

# Block structure placeholder body
DEFAULT_BLOCK_ELLIPSIS: str = "// ..."
DEFAULT_ELLIPSIS_INDENT: str = "    "

# Source file extension -> extractor language
LANGUAGE_EXTENSIONS: Dict[str, str] = {
    ".cs": "csharp",
    ".csx": "csharp",
}

DEFAULT_LANGUAGE: str = "csharp"
