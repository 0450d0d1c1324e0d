import re
from collections.abc import Iterable, Iterator, Mapping
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator

from code_posts.errors import DuplicateTagError, TagDefinitionError

_TAG_NAME_RE = re.compile(r"^@[A-Za-z][A-Za-z0-9]*$")


class TagSyntaxKind(StrEnum):
    INLINE = "inline"
    BLOCK = "block"
    MODIFIER = "modifier"


class TagDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    syntax_kind: TagSyntaxKind
    allow_multiple: bool = False
    takes_parameter: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _TAG_NAME_RE.match(value):
            raise ValueError(f"Tag name must look like '@tagName', got '{value}'")
        return value

    @property
    def key(self) -> str:
        return self.name.lower()


def _inline(name: str, allow_multiple: bool = False) -> TagDefinition:
    return TagDefinition(name=name, syntax_kind=TagSyntaxKind.INLINE, allow_multiple=allow_multiple)


def _block(name: str, allow_multiple: bool = False, takes_parameter: bool = False) -> TagDefinition:
    return TagDefinition(
        name=name,
        syntax_kind=TagSyntaxKind.BLOCK,
        allow_multiple=allow_multiple,
        takes_parameter=takes_parameter,
    )


def _modifier(name: str) -> TagDefinition:
    return TagDefinition(name=name, syntax_kind=TagSyntaxKind.MODIFIER)


BUILTIN_TAGS: tuple[TagDefinition, ...] = (
    _inline("@link", allow_multiple=True),
    _inline("@linkcode", allow_multiple=True),
    _inline("@linkplain", allow_multiple=True),
    _inline("@inheritDoc"),
    _inline("@label"),
    _block("@remarks"),
    _block("@privateRemarks"),
    _block("@param", allow_multiple=True, takes_parameter=True),
    _block("@typeParam", allow_multiple=True, takes_parameter=True),
    _block("@returns"),
    _block("@throws", allow_multiple=True),
    _block("@example", allow_multiple=True),
    _block("@see", allow_multiple=True),
    _block("@deprecated"),
    _block("@defaultValue"),
    _modifier("@alpha"),
    _modifier("@beta"),
    _modifier("@experimental"),
    _modifier("@public"),
    _modifier("@internal"),
    _modifier("@readonly"),
    _modifier("@virtual"),
    _modifier("@override"),
    _modifier("@sealed"),
    _modifier("@eventProperty"),
    _modifier("@packageDocumentation"),
)

EXAMPLE_CUSTOM_TAGS: tuple[TagDefinition, ...] = (
    _inline("@customInline", allow_multiple=True),
    # A defined block tag gets its own section instead of staying inline in @remarks.
    _block("@customBlock"),
    # A defined modifier is lifted out of its section into the modifier set.
    _modifier("@customModifier"),
)


class TagRegistry(Mapping[str, TagDefinition]):
    """Immutable, case-insensitive table of tag definitions.

    Registries are plain values: build one, pass it to every parse call, and
    share it freely between threads.
    """

    def __init__(self, definitions: Iterable[TagDefinition] = ()) -> None:
        table: dict[str, TagDefinition] = {}
        for definition in definitions:
            if definition.key in table:
                raise DuplicateTagError(definition.name)
            table[definition.key] = definition
        self._table: Mapping[str, TagDefinition] = MappingProxyType(table)

    @classmethod
    def default(cls) -> "TagRegistry":
        return cls(BUILTIN_TAGS)

    @classmethod
    def with_builtins(cls, definitions: Iterable[TagDefinition]) -> "TagRegistry":
        return cls.default().extend(definitions)

    def extend(self, definitions: Iterable[TagDefinition]) -> "TagRegistry":
        return TagRegistry([*self._table.values(), *definitions])

    def __getitem__(self, name: str) -> TagDefinition:
        return self._table[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._table

    def __iter__(self) -> Iterator[str]:
        return (definition.name for definition in self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"TagRegistry({len(self)} tags)"

    def lookup(self, name: str) -> TagDefinition | None:
        return self._table.get(name.lower())

    def of_kind(self, kind: TagSyntaxKind) -> list[TagDefinition]:
        return [definition for definition in self._table.values() if definition.syntax_kind == kind]


def parse_tag_spec(spec: str) -> TagDefinition:
    """Build a definition from ``@name:kind[:multiple][:param]``, e.g. ``@customBlock:block``."""
    name, _, rest = spec.strip().partition(":")
    if not rest:
        raise TagDefinitionError(f"Tag spec '{spec}' must look like '@name:inline|block|modifier[:multiple]'")
    kind, *flags = (part.strip().lower() for part in rest.split(":"))
    unknown = set(flags) - {"multiple", "param"}
    if unknown:
        raise TagDefinitionError(f"Unknown flag(s) {sorted(unknown)} in tag spec '{spec}'")
    try:
        return TagDefinition(
            name=name if name.startswith("@") else f"@{name}",
            syntax_kind=TagSyntaxKind(kind),
            allow_multiple="multiple" in flags,
            takes_parameter="param" in flags,
        )
    except ValueError as exc:
        raise TagDefinitionError(f"Invalid tag spec '{spec}': {exc}") from exc
