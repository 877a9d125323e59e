from __future__ import annotations

CACHE_FILENAME = ".sitegen-cache.json"
TEMPLATES_DIRNAME = "templates"
CONFIG_FILENAME = "site.toml"
INDEX_FILENAME = "index.html"
DEFAULT_TEMPLATE = "post.html"
TAG_TEMPLATE = "tag.html"
TAGS_INDEX_TEMPLATE = "tags.html"

DEFAULT_SOURCE = "src"
DEFAULT_OUTPUT = "dist"

BIND_HOST = "127.0.0.1"
BIND_PORT = 4000

# Extensions that can trigger a rebuild in the dev loop.
WATCHED_EXTENSIONS = frozenset({"md", "toml", "html", "css", "js"})
DEBOUNCE_MS = 500
SETTLE_SECONDS = 0.1
