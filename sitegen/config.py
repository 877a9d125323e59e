from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

from sitegen.errors import ConfigError
from sitegen.paths import CONFIG_FILENAME


@dataclass(frozen=True)
class SiteConfig:
    title: str = "Site Title"
    base_url: str = "http://localhost/"
    theme: str = "default"
    description: str | None = None
    author: str | None = None
    tag_page_size: int = 20

    def as_context(self) -> dict:
        """Values exposed to templates as ``site``."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


_STRING_KEYS = ("title", "base_url", "theme")
_OPTIONAL_KEYS = ("description", "author")


def config_path(source_root: Path) -> Path:
    return source_root / CONFIG_FILENAME


def load_config(source_root: Path) -> SiteConfig:
    """Load site.toml from the source root, defaults if it is absent."""
    path = config_path(source_root)
    if not path.exists():
        return SiteConfig()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: invalid TOML: {exc}") from exc

    values: dict[str, object] = {}
    for key in _STRING_KEYS:
        if key in data:
            if not isinstance(data[key], str):
                raise ConfigError(f"{path}: '{key}' must be a string")
            values[key] = data[key]
    for key in _OPTIONAL_KEYS:
        if key in data:
            if not isinstance(data[key], str):
                raise ConfigError(f"{path}: '{key}' must be a string")
            values[key] = data[key]
    if "tag_page_size" in data:
        size = data["tag_page_size"]
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise ConfigError(f"{path}: 'tag_page_size' must be a positive integer")
        values["tag_page_size"] = size

    return SiteConfig(**values)
