"""
Pytest configuration and shared fixtures
"""

import sys
from pathlib import Path

import pytest

# Allow running the tests without installing the package
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))

from sitecontent.config import SiteConfig  # noqa: E402


@pytest.fixture
def site_root(tmp_path):
    """Empty project root with src/posts and src/books"""
    root = tmp_path.resolve()
    (root / 'src' / 'posts').mkdir(parents=True)
    (root / 'src' / 'books').mkdir(parents=True)
    return root


@pytest.fixture
def config(site_root):
    return SiteConfig(root=site_root, hostname='https://example.com')


@pytest.fixture
def make_post(config):
    """Create src/posts/<slug>/index.md (content=None leaves out index.md)"""
    def _make(slug, content=None, files=None):
        folder = config.posts_dir / slug
        folder.mkdir(parents=True)
        if content is not None:
            (folder / 'index.md').write_text(content, encoding='utf-8')
        for name, data in (files or {}).items():
            path = folder / name
            if isinstance(data, bytes):
                path.write_bytes(data)
            else:
                path.write_text(data, encoding='utf-8')
        return folder
    return _make


@pytest.fixture
def make_book(config):
    """Create src/books/<id>/ with an optional book.toml and chapter files.

    `chapters` maps relative paths ('10-intro/index.md') to file contents.
    """
    def _make(book_id, toml=None, chapters=None):
        folder = config.books_dir / book_id
        folder.mkdir(parents=True)
        if toml is not None:
            (folder / 'book.toml').write_text(toml, encoding='utf-8')
        for rel_path, content in (chapters or {}).items():
            path = folder / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if content is not None:
                path.write_text(content, encoding='utf-8')
        return folder
    return _make


def book_toml(title='My Book', description='A book', author='Alice',
              ref='book', link=None, image=None):
    lines = ['[book]', f'title = "{title}"', f'description = "{description}"']
    if isinstance(author, list):
        lines.append('author = [' + ', '.join(f'"{a}"' for a in author) + ']')
    else:
        lines.append(f'author = "{author}"')
    lines.append(f'ref = "{ref}"')
    if link:
        lines.append(f'link = "{link}"')
    if image:
        lines.append(f'image = "{image}"')
    return '\n'.join(lines) + '\n'


@pytest.fixture
def toml_for():
    return book_toml
