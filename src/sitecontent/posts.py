"""
Build posts.json from post folders.

Each post is a folder under the posts root:

    src/posts/hello-world/
        index.md          front matter (+++ TOML or --- YAML) and body
        cover.jpg         any other files are copied alongside

The folder name is the slug. Every regular file in the folder is mirrored
to public/posts/<slug>/ so the frontend can fetch index.md and its images.
A folder that fails to process is listed in the manifest's errors and left
out of the posts list; the rest of the run carries on.
"""

import math
import re
import shutil
import sys
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import POST_CONTENT_FILE, SiteConfig
from .errors import MissingContentFile
from .frontmatter import parse_frontmatter
from .manifest import generated_timestamp, iso_utc, write_manifest
from .models import (
    ItemError,
    PostEntry,
    PostFrontMatter,
    PostManifest,
    PostStats,
    parse_post_date,
)

DESCRIPTION_LENGTH = 200
CHARS_PER_MINUTE = 1000

_CODE_FENCE = re.compile(r'```[\s\S]*?```')
_HEADING_MARK = re.compile(r'#+\s+')
_EMPHASIS = re.compile(r'[*_`]')
_IMAGE = re.compile(r'!\[.*?\]\(.*?\)')
_LINK = re.compile(r'\[.*?\]\(.*?\)')
_WHITESPACE = re.compile(r'\s+')


def derive_description(body: str) -> str:
    """Plain-text summary of a markdown body, at most 200 chars plus '...'."""
    text = _CODE_FENCE.sub('', body)
    text = _HEADING_MARK.sub('', text)
    text = _EMPHASIS.sub('', text)
    text = _IMAGE.sub('', text)
    text = _LINK.sub('', text)
    text = _WHITESPACE.sub(' ', text).strip()

    if len(text) > DESCRIPTION_LENGTH:
        return text[:DESCRIPTION_LENGTH] + '...'
    return text


def reading_time(word_count: int) -> int:
    """Minutes to read, at least 1."""
    return max(1, math.ceil(word_count / CHARS_PER_MINUTE))


def files_are_identical(source: Path, target: Path) -> bool:
    """True when target exists with the same size and bytes as source."""
    if not target.is_file():
        return False
    if source.stat().st_size != target.stat().st_size:
        return False
    return source.read_bytes() == target.read_bytes()


def copy_post_assets(slug: str, source_dir: Path, target_dir: Path,
                     quiet: bool = False) -> int:
    """Mirror the regular files of a post folder into the public tree.

    Files already identical at the destination are left alone. Copy
    failures are reported and skipped. Returns the number of files copied.
    """
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Warning: could not create {target_dir}: {e}", file=sys.stderr)
        return 0

    copied = 0
    for source_file in sorted(source_dir.iterdir()):
        if not source_file.is_file():
            continue
        target_file = target_dir / source_file.name
        try:
            if files_are_identical(source_file, target_file):
                continue
            shutil.copy2(source_file, target_file)
            copied += 1
            if not quiet:
                print(f"  Copied {slug}/{source_file.name}")
        except OSError as e:
            print(f"Warning: failed to copy {slug}/{source_file.name}: {e}", file=sys.stderr)
    return copied


def list_post_folders(posts_dir: Path, template: str = 'template') -> list[Path]:
    """Post folders under posts_dir, skipping templates and dot-folders."""
    skipped = {'template', '_template', template}
    return sorted(
        p for p in posts_dir.iterdir()
        if p.is_dir() and p.name not in skipped and not p.name.startswith('.')
    )


def process_post_folder(folder: Path, public_posts_dir: Path,
                        quiet: bool = False) -> PostEntry:
    """Turn one post folder into a PostEntry, copying its files on the way.

    Raises MissingContentFile, MissingField or ParseError.
    """
    slug = folder.name
    index_path = folder / POST_CONTENT_FILE
    if not index_path.is_file():
        raise MissingContentFile(index_path)

    content = index_path.read_text(encoding='utf-8')
    metadata, body = parse_frontmatter(content)
    front = PostFrontMatter.from_mapping(metadata)
    published = parse_post_date(front.date)

    copy_post_assets(slug, folder, public_posts_dir / slug, quiet=quiet)

    image = None
    if front.image:
        image_name = front.image.removeprefix('./')
        if (folder / image_name).is_file():
            image = f'/posts/{slug}/{image_name}'

    description = front.description
    if not description and body:
        description = derive_description(body)

    word_count = len(body)
    mtime = datetime.fromtimestamp(index_path.stat().st_mtime, tz=timezone.utc)

    return PostEntry(
        slug=slug,
        title=front.title,
        description=description,
        date=front.date,
        image=image,
        categories=front.categories,
        tags=front.tags,
        draft=front.draft,
        word_count=word_count,
        reading_time=reading_time(word_count),
        last_modified=iso_utc(mtime),
        published=published,
    )


def _frequency_table(labels_per_post: list[list[str]]) -> list[dict]:
    counts = Counter()
    for labels in labels_per_post:
        counts.update(dict.fromkeys(labels))
    # most_common keeps first-seen order among equal counts
    return [{'name': name, 'count': count} for name, count in counts.most_common()]


def generate_post_stats(posts: list[PostEntry]) -> PostStats:
    years = Counter(p.published.year for p in posts if p.published)
    total_reading = sum(p.reading_time for p in posts)

    return PostStats(
        total=len(posts),
        published=sum(1 for p in posts if not p.draft),
        draft=sum(1 for p in posts if p.draft),
        categories=_frequency_table([p.categories for p in posts]),
        tags=_frequency_table([p.tags for p in posts]),
        years=[{'year': year, 'count': count}
               for year, count in sorted(years.items(), reverse=True)],
        total_words=sum(p.word_count for p in posts),
        average_reading_time=math.ceil(total_reading / len(posts)) if posts else 0,
    )


def build_posts_manifest(config: SiteConfig, quiet: bool = False) -> Optional[PostManifest]:
    """Scan the posts root and write posts.json.

    Returns the manifest, or None when the posts root doesn't exist (in
    which case any existing posts.json is left untouched).
    """
    posts_dir = config.posts_dir
    if not posts_dir.is_dir():
        print(f"Error: posts directory not found: {posts_dir}", file=sys.stderr)
        return None

    folders = list_post_folders(posts_dir, config.post_template)
    if not quiet:
        print(f"Found {len(folders)} post folders in {posts_dir}")

    posts = []
    errors = []
    for folder in folders:
        try:
            post = process_post_folder(folder, config.public_posts_dir, quiet=quiet)
        except Exception as e:
            errors.append(ItemError(folder=folder.name, error=str(e)))
            continue
        posts.append(post)

    # Newest first; equal dates keep folder-name order
    posts.sort(key=lambda p: p.published, reverse=True)

    manifest = PostManifest(
        posts=posts,
        stats=generate_post_stats(posts),
        errors=errors,
        generated=generated_timestamp(),
    )
    output_file = write_manifest(manifest.to_dict(), config.posts_manifest)

    print(f"Built {len(posts)} posts -> {output_file}")
    if not quiet:
        print(f"  Categories: {len(manifest.stats.categories)}")
        print(f"  Tags: {len(manifest.stats.tags)}")
    if errors:
        print(f"Warning: {len(errors)} post folders failed:", file=sys.stderr)
        for err in errors:
            print(f"  {err.folder}: {err.error}", file=sys.stderr)

    return manifest
