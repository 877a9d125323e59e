"""Error hierarchy for sitegen.

Every sitegen-specific error inherits from SiteGenError.
"""


class SiteGenError(Exception):
    """Base error for all sitegen operations."""


class ConfigError(SiteGenError):
    """Site configuration could not be read or parsed."""


class TemplateSetError(SiteGenError):
    """Template set could not be loaded."""


class ContentError(SiteGenError):
    """A content file could not be parsed."""


class RenderError(SiteGenError):
    """A page could not be rendered through its template."""
