class CodePostsError(Exception):
    """Base class for errors raised by code-posts."""


class ParseError(CodePostsError):
    """Source text could not be tokenized into a syntax tree."""


class SourceReadError(CodePostsError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not read {path}: {reason}")
        self.path = path


class OutputWriteError(CodePostsError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not write {path}: {reason}")
        self.path = path


class TagRegistryError(CodePostsError):
    pass


class DuplicateTagError(TagRegistryError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tag '{name}' is already defined in this registry")
        self.name = name


class TagDefinitionError(TagRegistryError):
    pass
