"""Write sitemap.xml and robots.txt from the post and book manifests."""

import json
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import quote
from xml.sax.saxutils import escape

from .config import SiteConfig
from .manifest import load_manifest


@dataclass
class SitemapUrl:
    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None


def _date_part(timestamp: Optional[str], fallback: str) -> str:
    if not timestamp:
        return fallback
    try:
        moment = datetime.fromisoformat(timestamp)
    except ValueError:
        return fallback
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


def _chapter_urls(hostname: str, book_id: str, chapters: list[dict], today: str) -> list[SitemapUrl]:
    urls = []
    for chapter in chapters:
        if chapter.get('hasContent'):
            urls.append(SitemapUrl(
                loc=f"{hostname}/book/{book_id}/{chapter['id']}",
                lastmod=today,
                changefreq='monthly',
                priority=0.6,
            ))
        if chapter.get('children'):
            urls.extend(_chapter_urls(hostname, book_id, chapter['children'], today))
    return urls


def collect_urls(hostname: str, static_routes: list[dict],
                 posts_data: Optional[dict] = None,
                 books_data: Optional[dict] = None,
                 today: Optional[str] = None) -> list[SitemapUrl]:
    """All sitemap URLs: static routes, then posts, then hosted books and chapters."""
    hostname = hostname.rstrip('/')
    today = today or datetime.now(timezone.utc).date().isoformat()
    urls = []

    for route in static_routes:
        urls.append(SitemapUrl(
            loc=f"{hostname}{route['path']}",
            lastmod=today,
            changefreq=route.get('changefreq', 'weekly'),
            priority=route.get('priority', 0.8),
        ))

    for post in (posts_data or {}).get('posts', []):
        urls.append(SitemapUrl(
            loc=f"{hostname}/blog/{quote(post['slug'], safe='')}",
            lastmod=_date_part(post.get('lastModified'), today),
            changefreq='monthly',
            priority=0.9,
        ))

    for book in (books_data or {}).get('books', []):
        if book.get('ref') != 'book':
            continue
        urls.append(SitemapUrl(
            loc=f"{hostname}/book/{book['id']}",
            lastmod=today,
            changefreq='monthly',
            priority=0.7,
        ))
        urls.extend(_chapter_urls(hostname, book['id'], book.get('chapters') or [], today))

    return urls


def render_sitemap(urls: list[SitemapUrl]) -> str:
    entries = []
    for url in urls:
        lines = ['  <url>', f'    <loc>{escape(url.loc)}</loc>']
        if url.lastmod:
            lines.append(f'    <lastmod>{url.lastmod}</lastmod>')
        if url.changefreq:
            lines.append(f'    <changefreq>{url.changefreq}</changefreq>')
        if url.priority is not None:
            lines.append(f'    <priority>{url.priority:.1f}</priority>')
        lines.append('  </url>')
        entries.append('\n'.join(lines))

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + '\n'.join(entries)
        + ('\n' if entries else '')
        + '</urlset>\n'
    )


def render_robots(hostname: str) -> str:
    hostname = hostname.rstrip('/')
    return f"""User-agent: *
Allow: /

Sitemap: {hostname}/sitemap.xml

Crawl-delay: 1

Disallow: /admin/
Disallow: /api/
Disallow: /*.json$
Disallow: /*?*utm_*
Disallow: /*?*fbclid*
Disallow: /*?*gclid*
"""


def _read_optional(path: Path) -> Optional[dict]:
    try:
        return load_manifest(path)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Warning: could not read {path.name} for sitemap: {e}", file=sys.stderr)
        return None


def build_sitemap(config: SiteConfig) -> Path:
    """Write sitemap.xml and robots.txt into the public root."""
    urls = collect_urls(
        config.hostname,
        config.static_routes,
        posts_data=_read_optional(config.posts_manifest),
        books_data=_read_optional(config.books_manifest),
    )

    config.public_dir.mkdir(parents=True, exist_ok=True)
    sitemap_file = config.public_dir / 'sitemap.xml'
    sitemap_file.write_text(render_sitemap(urls), encoding='utf-8')
    (config.public_dir / 'robots.txt').write_text(render_robots(config.hostname), encoding='utf-8')

    print(f"Sitemap generated with {len(urls)} URLs -> {sitemap_file}")
    return sitemap_file
