"""
Local preview server for the generated site data.

Serves the public root as static files, plus:

    GET  /api/posts                 posts.json
    GET  /api/posts/<slug>          one post, with its markdown as 'content'
    GET  /api/books                 books.json
    GET  /api/books/<id>            one book
    GET  /api/chapters/<id>/<path>  {'content': chapter markdown}
    GET  /api/search?q=<query>      search results
    GET|POST /generate-posts        rerun the post pipeline
    GET|POST /generate-books        rerun the book pipeline
"""

import json
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import parse_qs, unquote, urlparse

from .books import build_books_manifest
from .catalog import ContentCatalog
from .config import SiteConfig
from .posts import build_posts_manifest
from .watch import start_observer, stop_observer

GENERATORS = {
    '/generate-posts': ('posts', build_posts_manifest),
    '/generate-books': ('books', build_books_manifest),
}


class PreviewServer(ThreadingHTTPServer):
    """HTTP server carrying the site config and a shared catalog."""

    def __init__(self, address, config: SiteConfig, catalog: Optional[ContentCatalog] = None):
        self.config = config
        self.catalog = catalog or ContentCatalog(config)
        handler = partial(PreviewHandler, directory=str(config.public_dir))
        super().__init__(address, handler)


class PreviewHandler(SimpleHTTPRequestHandler):
    """Static files from the public root plus the JSON API."""

    def do_GET(self):
        parsed = urlparse(self.path)
        path = parsed.path

        if path in GENERATORS:
            self.regenerate(path)
        elif path.startswith('/api/'):
            self.serve_api(path[len('/api/'):], parse_qs(parsed.query))
        else:
            super().do_GET()

    def do_POST(self):
        path = urlparse(self.path).path
        if path in GENERATORS:
            self.regenerate(path)
        else:
            self.send_error(404)

    def serve_api(self, route: str, query: dict):
        catalog = self.server.catalog
        parts = [unquote(p) for p in route.strip('/').split('/') if p]
        try:
            if parts == ['posts']:
                data = catalog.fetch_posts()
            elif len(parts) == 2 and parts[0] == 'posts':
                data = catalog.fetch_post(parts[1])
            elif parts == ['books']:
                data = catalog.fetch_books()
            elif len(parts) == 2 and parts[0] == 'books':
                data = catalog.fetch_book(parts[1])
            elif len(parts) >= 3 and parts[0] == 'chapters':
                data = {'content': catalog.fetch_chapter(parts[1], '/'.join(parts[2:]))}
            elif parts == ['search']:
                data = catalog.search(query.get('q', [''])[0])
            else:
                self.send_json_response({'success': False, 'error': 'Unknown endpoint'}, status=404)
                return
        except (KeyError, FileNotFoundError) as e:
            self.send_json_response({'success': False, 'error': f'Not found: {e}'}, status=404)
            return

        self.send_json_response(data)

    def regenerate(self, path: str):
        """Rerun one pipeline and drop cached manifest data."""
        kind, build = GENERATORS[path]
        manifest = build(self.server.config, quiet=True)
        self.server.catalog.clear_cache()

        if manifest is None:
            self.send_json_response(
                {'success': False, 'error': f'{kind} directory not found'}, status=500)
            return
        self.send_json_response({'success': True, 'message': f'{kind} data generated'})

    def send_json_response(self, data, status: int = 200):
        body = json.dumps(data, ensure_ascii=False).encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'application/json; charset=utf-8')
        self.send_header('Content-Length', str(len(body)))
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(body)


def run_server(config: SiteConfig, port: int = 8000, watch: bool = True):
    """Serve the public root until interrupted, optionally rebuilding on changes."""
    server = PreviewServer(('', port), config)

    watcher = None
    if watch:
        build_posts_manifest(config, quiet=True)
        build_books_manifest(config, quiet=True)
        watcher = start_observer(config, on_rebuild=lambda kind: server.catalog.clear_cache())

    print(f"Serving {config.public_dir} at http://localhost:{port}/")
    print("Press Ctrl+C to stop")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        server.server_close()
        if watcher is not None:
            stop_observer(*watcher)
