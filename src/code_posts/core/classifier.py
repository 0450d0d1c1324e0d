"""Which syntax node kinds may own a documentation comment.

A comment is attributed once, to the outermost declaration that claims it.
Wrapper and keyword nodes (``accessibility_modifier``, ``statement_block``...)
are deliberately absent, otherwise a comment in front of ``public foo()``
would be found for both the modifier and the method.
"""

DOCUMENTABLE_KINDS: frozenset[str] = frozenset(
    {
        # functions and methods
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
        "method_signature",
        "abstract_method_signature",
        # classes, interfaces, enums
        "class_declaration",
        "abstract_class_declaration",
        "class",
        "interface_declaration",
        "enum_declaration",
        "enum_assignment",
        # members and properties
        "public_field_definition",
        "field_definition",
        "property_signature",
        "pair",
        "shorthand_property_identifier",
        "pair_pattern",
        "shorthand_property_identifier_pattern",
        "jsx_attribute",
        # parameters
        "required_parameter",
        "optional_parameter",
        "type_parameter",
        # variables
        "lexical_declaration",
        "variable_declaration",
        "variable_declarator",
        # imports and exports
        "import_statement",
        "import_clause",
        "import_specifier",
        "namespace_import",
        "import_alias",
        "export_statement",
        "export_specifier",
        "namespace_export",
        # types and namespaces
        "type_alias_declaration",
        "module",
        "internal_module",
        "ambient_declaration",
    }
)

# Kinds whose doc comment may sit on the same line right after the previous
# token, e.g. ``foo(/** the id */ id: string)``.
TRAILING_COMMENT_KINDS: frozenset[str] = frozenset(
    {
        "required_parameter",
        "optional_parameter",
        "type_parameter",
        "function_expression",
        "function",
        "arrow_function",
        "parenthesized_expression",
    }
)


def is_documentable(kind: str) -> bool:
    return kind in DOCUMENTABLE_KINDS


def reads_trailing_comments(kind: str) -> bool:
    return kind in TRAILING_COMMENT_KINDS
