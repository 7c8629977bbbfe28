"""
Front-matter and book.toml parsing.

Two front-matter conventions are recognized at the head of a markdown file:

    +++                     ---
    title = "Hello"         title: Hello
    date = 2024-01-01       date: 2024-01-01
    +++                     ---

The TOML block is read with tomllib, the YAML block with yaml.safe_load.
Date and time values are converted to ISO strings so the results can go
straight into a JSON manifest.
"""

import re
import tomllib
from datetime import date, datetime, time

import yaml

from .errors import ParseError

TOML_DELIMITER = '+++'
YAML_DELIMITER = '---'

_YAML_CLOSE = re.compile(r'^---[ \t]*\r?$', re.MULTILINE)
_CONFIG_LINE = re.compile(r'^(\w+)\s*=\s*(.+)$')


def normalize_value(value):
    """Make a parsed value JSON-safe (dates become ISO strings)."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    return value


def _parse_toml_block(content: str) -> tuple[dict, str]:
    end = content.find(TOML_DELIMITER, len(TOML_DELIMITER))
    if end == -1:
        raise ParseError('unterminated TOML front matter (no closing +++)')

    block = content[len(TOML_DELIMITER):end]
    body = content[end + len(TOML_DELIMITER):]
    try:
        metadata = tomllib.loads(block)
    except tomllib.TOMLDecodeError as e:
        raise ParseError(f'invalid TOML front matter: {e}') from e
    return metadata, body


def _parse_yaml_block(content: str) -> tuple[dict, str]:
    first_newline = content.find('\n')
    match = _YAML_CLOSE.search(content, first_newline + 1) if first_newline != -1 else None
    if match is None:
        raise ParseError('unterminated YAML front matter (no closing ---)')

    block = content[first_newline + 1:match.start()]
    body = content[match.end():]
    try:
        metadata = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise ParseError(f'invalid YAML front matter: {e}') from e

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ParseError('YAML front matter is not a mapping')
    return metadata, body


def parse_frontmatter(content: str) -> tuple[dict, str]:
    """Split a markdown file into (metadata, body).

    Files without a front-matter block return ({}, content) unchanged.
    Raises ParseError when a block is opened but never closed, or its
    contents don't parse.
    """
    content = content.lstrip('\ufeff')

    if content.startswith(TOML_DELIMITER):
        metadata, body = _parse_toml_block(content)
    elif content.split('\n', 1)[0].rstrip() == YAML_DELIMITER:
        metadata, body = _parse_yaml_block(content)
    else:
        return {}, content

    return normalize_value(metadata), body.strip()


def strip_frontmatter(content: str) -> str:
    """Return the body of a markdown file, ignoring unparseable front matter."""
    try:
        _, body = parse_frontmatter(content)
    except ParseError:
        return content
    return body


def _parse_config_value(value: str):
    value = value.strip()
    if value.startswith('[') and value.endswith(']'):
        items = [v.strip().strip('"\'') for v in value[1:-1].split(',')]
        return [v for v in items if v]
    return value.strip('"\'')


def parse_book_config(content: str, section: str = 'book') -> dict:
    """Read the [book] section of a book.toml file.

    Only `key = value` lines are understood. Bracketed values become lists
    (split on commas, quotes stripped); everything else is a string. Lines
    that are neither a section header nor a key/value pair are ignored,
    including a "[" line with no closing "]".
    """
    config = {}
    current_section = ''

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue

        if stripped.startswith('[') and stripped.endswith(']'):
            current_section = stripped[1:-1].strip()
            continue

        if current_section != section:
            continue

        match = _CONFIG_LINE.match(stripped)
        if match:
            key, value = match.groups()
            config[key] = _parse_config_value(value)

    return config
