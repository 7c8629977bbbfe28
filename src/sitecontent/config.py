"""Paths and settings for a site build."""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

CONFIG_FILENAME = 'site.yaml'

POST_CONTENT_FILE = 'index.md'
BOOK_CONFIG_FILE = 'book.toml'
CHAPTER_CONTENT_FILES = ('index.md', 'README.md')

DEFAULT_STATIC_ROUTES = [
    {'path': '/', 'changefreq': 'daily', 'priority': 1.0},
    {'path': '/about', 'changefreq': 'monthly', 'priority': 0.8},
    {'path': '/projects', 'changefreq': 'weekly', 'priority': 0.8},
    {'path': '/blog', 'changefreq': 'daily', 'priority': 0.9},
    {'path': '/book', 'changefreq': 'weekly', 'priority': 0.8},
]


@dataclass
class SiteConfig:
    """Where content lives and where generated files go.

    Relative directories are resolved against `root`.
    """
    root: Path = field(default_factory=Path.cwd)
    posts_dir: Path = Path('src/posts')
    books_dir: Path = Path('src/books')
    public_dir: Path = Path('public')
    hostname: str = 'https://example.com'
    static_routes: list[dict] = field(default_factory=lambda: list(DEFAULT_STATIC_ROUTES))
    post_template: str = 'template'
    cache_ttl: float = 300.0  # seconds

    def __post_init__(self):
        self.root = Path(self.root).resolve()
        for name in ('posts_dir', 'books_dir', 'public_dir'):
            path = Path(getattr(self, name))
            if not path.is_absolute():
                path = self.root / path
            setattr(self, name, path)
        self.hostname = self.hostname.rstrip('/')

    @property
    def posts_manifest(self) -> Path:
        return self.public_dir / 'posts.json'

    @property
    def books_manifest(self) -> Path:
        return self.public_dir / 'books.json'

    @property
    def public_posts_dir(self) -> Path:
        return self.public_dir / 'posts'

    @property
    def public_books_dir(self) -> Path:
        return self.public_dir / 'books'

    @classmethod
    def load(cls, root: Path = None, overrides: Optional[dict] = None) -> 'SiteConfig':
        """Build a config from site.yaml (if present) plus explicit overrides.

        Overrides with a value of None are ignored.
        """
        root = Path(root) if root else Path.cwd()
        values = {}

        config_file = root / CONFIG_FILENAME
        if config_file.exists():
            with open(config_file, encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f'{config_file} must contain a mapping')
            known = {f.name for f in fields(cls)} - {'root'}
            for key, value in data.items():
                key = str(key).replace('-', '_')
                if key in known:
                    values[key] = value

        for key, value in (overrides or {}).items():
            if value is not None:
                values[key] = value

        return cls(root=root, **values)
