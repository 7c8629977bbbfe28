"""Exceptions raised while ingesting site content."""


class ContentError(Exception):
    """Base class for per-item content failures."""


class ParseError(ContentError):
    """Front matter or a config block could not be parsed."""


class MissingContentFile(ContentError):
    """A post folder has no index.md."""

    def __init__(self, path):
        self.path = path
        super().__init__(f'missing content file: {path.name}')


class MissingField(ContentError):
    """A required front-matter or config field is absent or empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f'missing required field: {field}')


class InvalidConfig(ContentError):
    """A book.toml parsed but holds values we can't use."""
