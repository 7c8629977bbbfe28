"""
sitecontent - Build-time content tooling for a personal site

Modules:
- frontmatter: TOML/YAML front matter and book.toml parsing
- posts: posts.json manifest and post asset mirroring
- books: books.json manifest and chapter tree scanning
- sitemap: sitemap.xml / robots.txt from the manifests
- catalog, server, watch: development-time preview and rebuilds
"""

from .books import (
    build_books_manifest,
    calculate_book_stats,
    parse_chapter_name,
    process_book_folder,
    scan_chapters,
)
from .cache import TTLCache
from .catalog import ContentCatalog
from .config import SiteConfig
from .errors import (
    ContentError,
    InvalidConfig,
    MissingContentFile,
    MissingField,
    ParseError,
)
from .frontmatter import parse_book_config, parse_frontmatter
from .manifest import load_manifest, write_manifest
from .models import (
    BookConfig,
    BookEntry,
    BookManifest,
    ChapterNode,
    ItemError,
    PostEntry,
    PostFrontMatter,
    PostManifest,
    PostStats,
)
from .posts import build_posts_manifest, derive_description, process_post_folder
from .sitemap import build_sitemap

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'SiteConfig',
    # Records
    'PostFrontMatter',
    'PostEntry',
    'PostStats',
    'PostManifest',
    'ItemError',
    'ChapterNode',
    'BookConfig',
    'BookEntry',
    'BookManifest',
    # Errors
    'ContentError',
    'ParseError',
    'MissingContentFile',
    'MissingField',
    'InvalidConfig',
    # Parsing
    'parse_frontmatter',
    'parse_book_config',
    # Pipelines
    'build_posts_manifest',
    'process_post_folder',
    'derive_description',
    'build_books_manifest',
    'process_book_folder',
    'scan_chapters',
    'parse_chapter_name',
    'calculate_book_stats',
    'write_manifest',
    'load_manifest',
    'build_sitemap',
    # Preview
    'TTLCache',
    'ContentCatalog',
]
