from __future__ import annotations

import tomllib

import yaml

from sitegen.errors import ContentError

YAML_FENCE = "---"
TOML_FENCE = "+++"


def normalize_text(content: str) -> str:
    """Strip a leading BOM and normalize line endings to ``\\n``."""
    if content.startswith("\ufeff"):
        content = content.lstrip("\ufeff")
    if "\r" in content:
        content = content.replace("\r\n", "\n").replace("\r", "\n")
    return content


def split_fence(content: str) -> tuple[str | None, str, str]:
    """Split raw text into (fence, front matter text, body).

    ``fence`` is None when the document carries no front matter.
    """
    text = normalize_text(content)
    lines = text.split("\n")

    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines):
        return None, "", text

    fence = lines[start].strip()
    if fence not in (YAML_FENCE, TOML_FENCE):
        return None, "", text

    for index in range(start + 1, len(lines)):
        if lines[index].strip() == fence:
            fm = "\n".join(lines[start + 1 : index])
            body = "\n".join(lines[index + 1 :])
            return fence, fm, body

    kind = "YAML" if fence == YAML_FENCE else "TOML"
    raise ContentError(f"Unclosed {kind} front matter ({fence})")


def parse_block(fence: str, raw: str) -> dict:
    if fence == YAML_FENCE:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ContentError(f"YAML front matter: {exc}") from exc
    else:
        try:
            data = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ContentError(f"TOML front matter: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ContentError("front matter must be a mapping")
    return data


def split_frontmatter(content: str) -> tuple[dict | None, str]:
    """Split content into parsed front matter and body.

    Front matter is None when the document has no fenced block.
    """
    fence, raw, body = split_fence(content)
    if fence is None:
        return None, body
    return parse_block(fence, raw), body
