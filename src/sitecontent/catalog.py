"""
Lookups over the generated manifests, for the preview server.

Manifests and chapter files are read from the public root and kept in a
TTLCache, so repeated requests don't hit the disk. Call clear_cache() after
regenerating a manifest.
"""

from typing import Optional

from .cache import TTLCache
from .config import CHAPTER_CONTENT_FILES, SiteConfig
from .manifest import load_manifest


def _is_path_segment(name: str) -> bool:
    """True for a single folder name (no separators, not . or ..)."""
    return name not in ('', '.', '..') and '/' not in name and '\\' not in name


class ContentCatalog:
    """Read-side view of posts.json / books.json."""

    def __init__(self, config: SiteConfig, cache: Optional[TTLCache] = None):
        self.config = config
        self.cache = cache if cache is not None else TTLCache(ttl=config.cache_ttl)

    def fetch_posts(self) -> dict:
        return self.cache.get_or_compute('posts', lambda: load_manifest(self.config.posts_manifest))

    def fetch_post(self, slug: str) -> dict:
        """A single post, with its markdown under 'content' when available.

        Raises KeyError for an unknown slug.
        """
        def load():
            for post in self.fetch_posts().get('posts', []):
                if post['slug'] == slug:
                    post = dict(post)
                    content_file = self.config.public_posts_dir / slug / 'index.md'
                    if content_file.is_file():
                        post['content'] = content_file.read_text(encoding='utf-8')
                    return post
            raise KeyError(slug)

        return self.cache.get_or_compute(('post', slug), load)

    def fetch_books(self) -> dict:
        return self.cache.get_or_compute('books', lambda: load_manifest(self.config.books_manifest))

    def fetch_book(self, book_id: str) -> dict:
        """Raises KeyError for an unknown book id."""
        def load():
            for book in self.fetch_books().get('books', []):
                if book['id'] == book_id:
                    return book
            raise KeyError(book_id)

        return self.cache.get_or_compute(('book', book_id), load)

    def fetch_chapter(self, book_id: str, chapter_path: str) -> str:
        """Markdown of a chapter, addressed as '<chapter>/<sub-chapter>/...'.

        Raises KeyError when no content file exists for it, or when the book
        id or chapter path would leave the book's public folder.
        """
        def load():
            if not _is_path_segment(book_id):
                raise KeyError(book_id)
            books_root = self.config.public_books_dir.resolve()
            book_dir = (books_root / book_id).resolve()
            chapter_dir = (book_dir / chapter_path).resolve()
            if book_dir.parent != books_root or not chapter_dir.is_relative_to(book_dir):
                raise KeyError(chapter_path)
            for name in CHAPTER_CONTENT_FILES:
                candidate = chapter_dir / name
                if candidate.is_file():
                    return candidate.read_text(encoding='utf-8')
            raise KeyError(chapter_path)

        return self.cache.get_or_compute(('chapter', book_id, chapter_path), load)

    def search(self, query: str) -> list[dict]:
        """Case-insensitive substring search over published posts and books."""
        needle = query.lower().strip()
        if not needle:
            return []

        def matches(*fields) -> bool:
            for value in fields:
                values = value if isinstance(value, list) else [value]
                if any(needle in (v or '').lower() for v in values):
                    return True
            return False

        results = []
        for post in self._manifest_items(self.fetch_posts, 'posts'):
            if post.get('draft'):
                continue
            if not matches(post['title'], post.get('description'),
                           post.get('tags', []), post.get('categories', [])):
                continue
            results.append({
                'id': f"post-{post['slug']}",
                'type': 'blog',
                'title': post['title'],
                'description': post.get('description', ''),
                'link': f"/blog/{post['slug']}",
                'date': post.get('date'),
                'tags': post.get('tags', []),
                'categories': post.get('categories', []),
            })

        for book in self._manifest_items(self.fetch_books, 'books'):
            if not matches(book['title'], book.get('description'), book.get('author', [])):
                continue
            link = f"/book/{book['id']}" if book.get('ref') == 'book' else book.get('link') or '#'
            results.append({
                'id': f"book-{book['id']}",
                'type': 'book',
                'title': book['title'],
                'description': book.get('description', ''),
                'link': link,
                'author': book.get('author', []),
            })

        return results

    @staticmethod
    def _manifest_items(fetch, key: str) -> list[dict]:
        # A missing manifest just means nothing to search yet
        try:
            return fetch().get(key, [])
        except FileNotFoundError:
            return []

    def clear_cache(self) -> None:
        self.cache.clear()
