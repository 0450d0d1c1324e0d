import os
from dataclasses import dataclass, field, replace

from code_posts.core.render import SUMMARY_ONLY, RenderTarget
from code_posts.core.tags import TagDefinition

_DEFAULT_EXTENSIONS = (".ts",)
_DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class Settings:
    extensions: tuple[str, ...] = _DEFAULT_EXTENSIONS
    render_targets: tuple[RenderTarget, ...] = SUMMARY_ONLY
    max_workers: int = _DEFAULT_MAX_WORKERS
    output_suffix: str = ".html"
    document_separator: str = "\n"
    log_level: str = "WARNING"
    custom_tags: tuple[TagDefinition, ...] = field(default=())

    @classmethod
    def from_env(cls) -> "Settings":
        extensions = os.getenv("CODE_POSTS_EXTENSIONS")
        max_workers = os.getenv("CODE_POSTS_MAX_WORKERS")
        return cls(
            extensions=_parse_extensions(extensions) if extensions else _DEFAULT_EXTENSIONS,
            max_workers=_parse_workers(max_workers) if max_workers else _DEFAULT_MAX_WORKERS,
            log_level=os.getenv("CODE_POSTS_LOG_LEVEL", "WARNING").upper(),
        )

    def override(self, **changes: object) -> "Settings":
        """Copy with every non-``None`` value of ``changes`` applied."""
        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied)  # type: ignore[arg-type]


def _parse_extensions(raw: str) -> tuple[str, ...]:
    parts = [part.strip() for part in raw.split(",") if part.strip()]
    return tuple(part if part.startswith(".") else f".{part}" for part in parts)


def _parse_workers(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"CODE_POSTS_MAX_WORKERS must be an integer, got '{raw}'") from None
    if value < 1:
        raise ValueError(f"CODE_POSTS_MAX_WORKERS must be at least 1, got {value}")
    return value
