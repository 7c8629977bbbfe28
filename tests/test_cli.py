"""Tests for cli.py: subcommands against a temporary project."""

import json

import pytest

from sitecontent.cli import build_parser, main


def run(config, *args):
    return main(['--root', str(config.root), *args])


class TestParser:

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_serve_options(self):
        args = build_parser().parse_args(['serve', '--port', '9000', '--no-watch'])
        assert args.port == 9000
        assert args.no_watch is True


class TestCommands:

    def test_posts(self, config, make_post, capsys):
        make_post('hello', '---\ntitle: "Hello"\ndate: "2024-01-01"\n---\nHi')
        assert run(config, 'posts') == 0
        assert 'Built 1 posts' in capsys.readouterr().out
        assert json.loads(config.posts_manifest.read_text(encoding='utf-8'))['stats']['total'] == 1

    def test_books_missing_root_fails(self, config):
        config.books_dir.rmdir()
        assert run(config, 'books') == 1

    def test_build_writes_everything(self, config, make_post, make_book, toml_for):
        make_post('hello', '---\ntitle: "Hello"\ndate: "2024-01-01"\n---\nHi')
        make_book('guide', toml=toml_for(), chapters={'1-a/index.md': 'x'})
        assert run(config, '--hostname', 'https://me.dev', '-q', 'build') == 0
        assert config.posts_manifest.exists()
        assert config.books_manifest.exists()
        sitemap = (config.public_dir / 'sitemap.xml').read_text(encoding='utf-8')
        assert 'https://me.dev/blog/hello' in sitemap

    def test_custom_posts_dir(self, config, tmp_path):
        other = tmp_path / 'elsewhere'
        (other / 'p').mkdir(parents=True)
        (other / 'p' / 'index.md').write_text('---\ntitle: "P"\ndate: "2024-01-01"\n---\n',
                                              encoding='utf-8')
        assert run(config, '--posts-dir', str(other), 'posts') == 0
        data = json.loads(config.posts_manifest.read_text(encoding='utf-8'))
        assert [p['slug'] for p in data['posts']] == ['p']

    def test_new_post(self, config, capsys):
        assert run(config, 'new-post', 'First Post') == 0
        assert (config.posts_dir / 'First Post' / 'index.md').exists()
        assert 'Created post: First Post' in capsys.readouterr().out

    def test_new_post_exists(self, config, capsys):
        run(config, 'new-post', 'Dup')
        assert run(config, 'new-post', 'Dup') == 1
        assert 'already exists' in capsys.readouterr().err
