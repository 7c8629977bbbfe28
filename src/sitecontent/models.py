"""
Record types for the post and book manifests.

Front matter and book.toml values arrive as loosely typed mappings. They are
turned into PostFrontMatter / BookConfig by from_mapping(), which rejects
missing required fields, before anything else looks at them. Everything
downstream works with these records and serializes them with to_dict() into
the camelCase JSON shape the frontend reads.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .errors import InvalidConfig, MissingField, ParseError

BOOK_REFS = ('book', 'link')

# Tried after datetime.fromisoformat()
DATE_FORMATS_TO_TRY = [
    '%Y/%m/%d',
    '%Y/%m/%d %H:%M',
    '%Y-%m-%d %H:%M:%S %z',
]


def as_list(value) -> list[str]:
    """Normalize a scalar-or-list field to a list of strings."""
    if value is None or value == '':
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and v != '']
    return [str(value)]


def parse_post_date(value: str) -> datetime:
    """Parse a front-matter date into a naive UTC datetime for sorting."""
    text = value.strip()
    parsed = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in DATE_FORMATS_TO_TRY:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        raise ParseError(f'invalid date: {value}')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class PostFrontMatter:
    """Validated post metadata."""
    title: str
    date: str
    description: str = ''
    image: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    draft: bool = False

    @classmethod
    def from_mapping(cls, data: dict) -> 'PostFrontMatter':
        title = data.get('title')
        if title is None or not str(title).strip():
            raise MissingField('title')
        date = data.get('date')
        if date is None or not str(date).strip():
            raise MissingField('date')

        image = data.get('image')
        return cls(
            title=str(title),
            date=str(date),
            description=str(data.get('description') or ''),
            image=str(image) if image else None,
            categories=as_list(data.get('categories')),
            tags=as_list(data.get('tags')),
            draft=data.get('draft') is True,
        )


@dataclass
class PostEntry:
    """One post as listed in posts.json."""
    slug: str  # folder name
    title: str
    description: str
    date: str
    image: Optional[str] = None  # public URL, only when the file exists
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    draft: bool = False
    word_count: int = 0
    reading_time: int = 1
    last_modified: str = ''

    # Parsed from date at build time, not serialized
    published: Optional[datetime] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            'slug': self.slug,
            'title': self.title,
            'description': self.description,
            'date': self.date,
            'image': self.image,
            'categories': list(self.categories),
            'tags': list(self.tags),
            'draft': self.draft,
            'wordCount': self.word_count,
            'readingTime': self.reading_time,
            'lastModified': self.last_modified,
        }


@dataclass
class PostStats:
    total: int = 0
    published: int = 0
    draft: int = 0
    categories: list[dict] = field(default_factory=list)  # [{name, count}]
    tags: list[dict] = field(default_factory=list)  # [{name, count}]
    years: list[dict] = field(default_factory=list)  # [{year, count}]
    total_words: int = 0
    average_reading_time: int = 0

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'published': self.published,
            'draft': self.draft,
            'categories': self.categories,
            'tags': self.tags,
            'years': self.years,
            'totalWords': self.total_words,
            'averageReadingTime': self.average_reading_time,
        }


@dataclass
class ItemError:
    """A folder that failed processing."""
    folder: str
    error: str

    def to_dict(self) -> dict:
        return {'folder': self.folder, 'error': self.error}


@dataclass
class PostManifest:
    posts: list[PostEntry]
    stats: PostStats
    errors: list[ItemError]
    generated: str

    def to_dict(self) -> dict:
        return {
            'posts': [p.to_dict() for p in self.posts],
            'stats': self.stats.to_dict(),
            'errors': [e.to_dict() for e in self.errors],
            'generated': self.generated,
        }


@dataclass
class ChapterNode:
    """A chapter folder, with its nested sub-chapters."""
    id: str  # folder name
    title: str
    order: int
    level: int
    has_content: bool = False
    word_count: int = 0
    children: list['ChapterNode'] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'title': self.title,
            'order': self.order,
            'level': self.level,
            'hasContent': self.has_content,
            'wordCount': self.word_count,
        }
        if self.children:
            data['children'] = [c.to_dict() for c in self.children]
        return data


@dataclass
class BookConfig:
    """Validated book.toml contents."""
    title: str
    description: str
    author: list[str]
    ref: str  # 'book' (hosted here) or 'link' (external)
    link: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: dict) -> 'BookConfig':
        for name in ('title', 'description', 'ref'):
            value = data.get(name)
            if value is None or not str(value).strip():
                raise MissingField(name)
        author = as_list(data.get('author'))
        if not author:
            raise MissingField('author')

        ref = str(data['ref']).strip()
        if ref not in BOOK_REFS:
            raise InvalidConfig(f"ref must be one of {', '.join(BOOK_REFS)}, got {ref!r}")
        link = data.get('link') or None
        if ref == 'link' and not link:
            raise MissingField('link')

        image = data.get('image') or None
        return cls(
            title=str(data['title']),
            description=str(data['description']),
            author=author,
            ref=ref,
            link=str(link) if link else None,
            image=str(image) if image else None,
        )


@dataclass
class BookStats:
    total_chapters: int
    total_words: int
    last_modified: str  # generation date, YYYY-MM-DD

    def to_dict(self) -> dict:
        return {
            'totalChapters': self.total_chapters,
            'totalWords': self.total_words,
            'lastModified': self.last_modified,
        }


@dataclass
class BookEntry:
    """One book (hosted or external) as listed in books.json."""
    id: str  # folder name
    title: str
    description: str
    author: list[str]
    ref: str
    link: Optional[str] = None
    image: Optional[str] = None
    chapters: Optional[list[ChapterNode]] = None
    stats: Optional[BookStats] = None

    @property
    def is_local(self) -> bool:
        return self.ref == 'book'

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'author': list(self.author),
        }
        if self.image:
            data['image'] = self.image
        data['ref'] = self.ref
        if self.link:
            data['link'] = self.link
        if self.chapters:
            data['chapters'] = [c.to_dict() for c in self.chapters]
        if self.stats:
            data['stats'] = self.stats.to_dict()
        return data


@dataclass
class BookManifest:
    books: list[BookEntry]
    errors: list[ItemError]
    generated: str

    @property
    def stats(self) -> dict:
        return {
            'total': len(self.books),
            'localBooks': sum(1 for b in self.books if b.ref == 'book'),
            'externalLinks': sum(1 for b in self.books if b.ref == 'link'),
            'totalChapters': sum(b.stats.total_chapters if b.stats else 0
                                 for b in self.books),
        }

    def to_dict(self) -> dict:
        return {
            'books': [b.to_dict() for b in self.books],
            'stats': self.stats,
            'errors': [e.to_dict() for e in self.errors],
            'generated': self.generated,
        }
