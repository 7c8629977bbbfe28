"""
Command-line entry point.

Usage:
    sitecontent build                 # posts.json, books.json, sitemap.xml
    sitecontent posts
    sitecontent books
    sitecontent sitemap --hostname https://example.com
    sitecontent new-post "My Post"
    sitecontent watch
    sitecontent serve --port 8000
"""

import argparse
import sys
from pathlib import Path

from .books import build_books_manifest
from .config import SiteConfig
from .posts import build_posts_manifest
from .scaffold import create_post
from .server import run_server
from .sitemap import build_sitemap
from .watch import watch


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='sitecontent',
        description='Generate post/book manifests for the site frontend',
    )
    parser.add_argument('--root', type=Path, default=None,
                        help='Project root (default: current directory)')
    parser.add_argument('--posts-dir', type=Path, help='Posts source directory')
    parser.add_argument('--books-dir', type=Path, help='Books source directory')
    parser.add_argument('--public-dir', type=Path, help='Public output directory')
    parser.add_argument('--hostname', help='Site URL used in sitemap.xml')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Only print summaries and warnings')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('build', help='Build both manifests and the sitemap')
    subparsers.add_parser('posts', help='Build posts.json')
    subparsers.add_parser('books', help='Build books.json')
    subparsers.add_parser('sitemap', help='Write sitemap.xml and robots.txt from the manifests')

    new_post = subparsers.add_parser('new-post', help='Create a post folder from the template')
    new_post.add_argument('title', help='Post title (also the folder name)')

    subparsers.add_parser('watch', help='Rebuild manifests when content changes')

    serve = subparsers.add_parser('serve', help='Serve the public directory with a JSON API')
    serve.add_argument('--port', type=int, default=8000, help='Port (default: 8000)')
    serve.add_argument('--no-watch', action='store_true',
                       help='Do not rebuild manifests on content changes')
    return parser


def load_config(args) -> SiteConfig:
    return SiteConfig.load(args.root, overrides={
        'posts_dir': args.posts_dir,
        'books_dir': args.books_dir,
        'public_dir': args.public_dir,
        'hostname': args.hostname,
    })


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args)

    if args.command == 'posts':
        return 0 if build_posts_manifest(config, quiet=args.quiet) is not None else 1

    if args.command == 'books':
        return 0 if build_books_manifest(config, quiet=args.quiet) is not None else 1

    if args.command == 'build':
        posts = build_posts_manifest(config, quiet=args.quiet)
        books = build_books_manifest(config, quiet=args.quiet)
        build_sitemap(config)
        return 0 if posts is not None and books is not None else 1

    if args.command == 'sitemap':
        build_sitemap(config)
        return 0

    if args.command == 'new-post':
        try:
            post_dir = create_post(args.title, config)
        except (FileExistsError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Created post: {post_dir.name}")
        print(f"  -> {post_dir / 'index.md'}")
        print("Run 'sitecontent posts' to rebuild posts.json")
        return 0

    if args.command == 'watch':
        watch(config)
        return 0

    if args.command == 'serve':
        run_server(config, port=args.port, watch=not args.no_watch)
        return 0

    return 1


if __name__ == '__main__':
    sys.exit(main())
