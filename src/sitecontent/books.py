"""
Build books.json from book folders.

    src/books/my-book/
        book.toml                 [book] title/description/author/ref/link/image
        10-intro/
            index.md              or README.md
            10-background/        nested chapters, any depth
                index.md
        20-conclusion/
            README.md

Books with ref = "book" are hosted here: their chapter folders are scanned
into a tree and their markdown is mirrored to public/books/<id>/. Books with
ref = "link" only point elsewhere and never get a chapter tree.

Chapter folders are named "<order>-<title>". The first "# heading" in a
chapter's content file overrides the folder-derived title, so chapters can
be renamed without renaming folders.
"""

import re
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import BOOK_CONFIG_FILE, CHAPTER_CONTENT_FILES, SiteConfig
from .frontmatter import parse_book_config, strip_frontmatter
from .manifest import generated_timestamp, write_manifest
from .models import BookConfig, BookEntry, BookManifest, BookStats, ChapterNode, ItemError
from .posts import files_are_identical

CHAPTER_ORDER_SENTINEL = 999

_CHAPTER_NAME = re.compile(r'^(\d+)-(.+)$')
_FIRST_HEADING = re.compile(r'^#[ \t]+(.+)$', re.MULTILINE)


def parse_chapter_name(folder_name: str) -> tuple[int, str]:
    """Split '10-introduction' into (10, 'introduction').

    Names that don't fit the pattern sort last and keep their raw name.
    """
    match = _CHAPTER_NAME.match(folder_name)
    if match:
        return int(match.group(1)), match.group(2)
    return CHAPTER_ORDER_SENTINEL, folder_name


def find_chapter_content(folder: Path) -> Optional[Path]:
    """index.md if present, else README.md, else None."""
    for name in CHAPTER_CONTENT_FILES:
        candidate = folder / name
        if candidate.is_file():
            return candidate
    return None


def extract_first_heading(content: str) -> Optional[str]:
    """Text of the first top-level heading after the front matter."""
    match = _FIRST_HEADING.search(strip_frontmatter(content))
    if match:
        return match.group(1).strip()
    return None


def count_words(body: str) -> int:
    return len(body.split())


def scan_chapters(directory: Path, level: int = 0, quiet: bool = True) -> list[ChapterNode]:
    """Build the chapter tree below `directory`.

    Only subdirectories are chapters. Siblings come back sorted by order;
    ties keep folder-name order.
    """
    if not directory.is_dir():
        return []

    chapters = []
    for folder in sorted(p for p in directory.iterdir() if p.is_dir()):
        order, title = parse_chapter_name(folder.name)
        node = ChapterNode(id=folder.name, title=title, order=order, level=level)

        content_file = find_chapter_content(folder)
        if content_file:
            node.has_content = True
            try:
                content = content_file.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                print(f"Warning: could not read {content_file}: {e}", file=sys.stderr)
            else:
                node.word_count = count_words(strip_frontmatter(content))
                heading = extract_first_heading(content)
                if heading:
                    if not quiet and heading != title:
                        print(f"  Chapter title from heading: {title} -> {heading}")
                    node.title = heading

        children = scan_chapters(folder, level + 1, quiet=quiet)
        if children:
            node.children = children
        chapters.append(node)

    chapters.sort(key=lambda c: c.order)
    return chapters


def calculate_book_stats(chapters: list[ChapterNode]) -> tuple[int, int]:
    """(chapters with content, total words) over the whole tree."""
    total_chapters = 0
    total_words = 0
    for chapter in chapters:
        if chapter.has_content:
            total_chapters += 1
            total_words += chapter.word_count
        if chapter.children:
            sub_chapters, sub_words = calculate_book_stats(chapter.children)
            total_chapters += sub_chapters
            total_words += sub_words
    return total_chapters, total_words


def copy_chapter_files(book_id: str, book_dir: Path, target_dir: Path,
                       quiet: bool = False) -> int:
    """Mirror every markdown file of a book (nested paths kept) to target_dir."""
    copied = 0
    for source_file in sorted(book_dir.rglob('*.md')):
        if source_file.name == BOOK_CONFIG_FILE or not source_file.is_file():
            continue
        relative = source_file.relative_to(book_dir)
        target_file = target_dir / relative
        try:
            if files_are_identical(source_file, target_file):
                continue
            target_file.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_file, target_file)
            copied += 1
        except OSError as e:
            print(f"Warning: failed to copy {book_id}/{relative.as_posix()}: {e}", file=sys.stderr)
    if copied and not quiet:
        print(f"  Copied {copied} chapter files for {book_id}")
    return copied


def process_book_folder(folder: Path, public_books_dir: Path, today: str,
                        quiet: bool = False) -> Optional[BookEntry]:
    """Turn one book folder into a BookEntry.

    Returns None (with a warning) when the folder has no book.toml. Raises
    ParseError, MissingField or InvalidConfig for a bad config.
    """
    config_path = folder / BOOK_CONFIG_FILE
    if not config_path.is_file():
        print(f"Warning: skipping {folder.name}: no {BOOK_CONFIG_FILE}", file=sys.stderr)
        return None

    config = BookConfig.from_mapping(
        parse_book_config(config_path.read_text(encoding='utf-8')))

    book = BookEntry(
        id=folder.name,
        title=config.title,
        description=config.description,
        author=config.author,
        ref=config.ref,
        link=config.link,
        image=config.image,
    )

    if book.is_local:
        chapters = scan_chapters(folder, quiet=quiet)
        if chapters:
            book.chapters = chapters
            total_chapters, total_words = calculate_book_stats(chapters)
            book.stats = BookStats(
                total_chapters=total_chapters,
                total_words=total_words,
                last_modified=today,
            )
        copy_chapter_files(folder.name, folder, public_books_dir / folder.name, quiet=quiet)

    return book


def list_book_folders(books_dir: Path) -> list[Path]:
    return sorted(
        p for p in books_dir.iterdir()
        if p.is_dir() and not p.name.startswith('.')
    )


def build_books_manifest(config: SiteConfig, quiet: bool = False) -> Optional[BookManifest]:
    """Scan the books root and write books.json.

    Returns the manifest, or None when the books root doesn't exist (any
    existing books.json is left as it was).
    """
    books_dir = config.books_dir
    if not books_dir.is_dir():
        print(f"Error: books directory not found: {books_dir}", file=sys.stderr)
        return None

    today = datetime.now(timezone.utc).date().isoformat()
    books = []
    errors = []
    for folder in list_book_folders(books_dir):
        try:
            book = process_book_folder(folder, config.public_books_dir, today, quiet=quiet)
        except Exception as e:
            errors.append(ItemError(folder=folder.name, error=str(e)))
            continue
        if book is None:
            continue
        books.append(book)
        if not quiet:
            print(f"  Processed book: {book.title}")

    manifest = BookManifest(books=books, errors=errors, generated=generated_timestamp())
    output_file = write_manifest(manifest.to_dict(), config.books_manifest)

    stats = manifest.stats
    print(f"Built {stats['total']} books -> {output_file}")
    if not quiet:
        print(f"  Hosted: {stats['localBooks']}")
        print(f"  External links: {stats['externalLinks']}")
        print(f"  Chapters: {stats['totalChapters']}")
    if errors:
        print(f"Warning: {len(errors)} book folders failed:", file=sys.stderr)
        for err in errors:
            print(f"  {err.folder}: {err.error}", file=sys.stderr)

    return manifest
