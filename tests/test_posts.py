"""Tests for posts.py: post folder processing and posts.json."""

import json

import pytest

from sitecontent.errors import MissingContentFile, MissingField
from sitecontent.posts import (
    build_posts_manifest,
    copy_post_assets,
    derive_description,
    files_are_identical,
    generate_post_stats,
    process_post_folder,
    reading_time,
)


def yaml_post(title='Hello', date='2024-01-01', extra='', body='Some body text.'):
    return f'---\ntitle: "{title}"\ndate: "{date}"\n{extra}---\n\n{body}\n'


class TestDeriveDescription:

    def test_strips_markdown(self):
        body = (
            '# Heading\n\n'
            'Some **bold** and _italic_ text.\n\n'
            '```python\nprint("hidden")\n```\n\n'
            '![alt](img.png) See [the docs](https://example.com).'
        )
        assert derive_description(body) == 'Heading Some bold and italic text. See .'

    def test_truncates_long_text(self):
        description = derive_description('word ' * 100)
        assert len(description) == 203
        assert description.endswith('...')

    def test_short_text_untouched(self):
        assert derive_description('Short.') == 'Short.'


class TestReadingTime:

    def test_minimum_one_minute(self):
        assert reading_time(0) == 1
        assert reading_time(10) == 1

    def test_rounds_up(self):
        assert reading_time(1001) == 2


class TestFilesAreIdentical:

    def test_missing_target(self, tmp_path):
        source = tmp_path / 'a.txt'
        source.write_text('x')
        assert not files_are_identical(source, tmp_path / 'missing.txt')

    def test_same_size_different_content(self, tmp_path):
        (tmp_path / 'a').write_bytes(b'abc')
        (tmp_path / 'b').write_bytes(b'abd')
        assert not files_are_identical(tmp_path / 'a', tmp_path / 'b')

    def test_identical(self, tmp_path):
        (tmp_path / 'a').write_bytes(b'abc')
        (tmp_path / 'b').write_bytes(b'abc')
        assert files_are_identical(tmp_path / 'a', tmp_path / 'b')


class TestCopyPostAssets:

    def test_copies_files_not_subfolders(self, make_post, config):
        folder = make_post('p', yaml_post(), files={'cover.jpg': b'\x89PNG'})
        (folder / 'drafts').mkdir()
        target = config.public_posts_dir / 'p'

        copied = copy_post_assets('p', folder, target, quiet=True)

        assert copied == 2
        assert (target / 'index.md').exists()
        assert (target / 'cover.jpg').read_bytes() == b'\x89PNG'
        assert not (target / 'drafts').exists()

    def test_skips_identical_files(self, make_post, config):
        folder = make_post('p', yaml_post())
        target = config.public_posts_dir / 'p'
        assert copy_post_assets('p', folder, target, quiet=True) == 1
        assert copy_post_assets('p', folder, target, quiet=True) == 0

    def test_recopies_changed_files(self, make_post, config):
        folder = make_post('p', yaml_post())
        target = config.public_posts_dir / 'p'
        copy_post_assets('p', folder, target, quiet=True)
        (folder / 'index.md').write_text(yaml_post(body='Changed'), encoding='utf-8')
        assert copy_post_assets('p', folder, target, quiet=True) == 1
        assert 'Changed' in (target / 'index.md').read_text(encoding='utf-8')


class TestProcessPostFolder:

    def test_slug_is_folder_name(self, make_post, config):
        folder = make_post('my-first-post', yaml_post())
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.slug == 'my-first-post'

    def test_missing_content_file(self, make_post, config):
        folder = make_post('empty')
        with pytest.raises(MissingContentFile):
            process_post_folder(folder, config.public_posts_dir)

    def test_missing_date(self, make_post, config):
        folder = make_post('nodate', '---\ntitle: "Hello"\n---\nbody')
        with pytest.raises(MissingField, match='date'):
            process_post_folder(folder, config.public_posts_dir)

    def test_toml_front_matter(self, make_post, config):
        content = '+++\ntitle = "Toml Post"\ndate = 2023-06-01\ncategories = "Tech"\n+++\n\nHello'
        folder = make_post('toml', content)
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.title == 'Toml Post'
        assert post.date == '2023-06-01'
        assert post.categories == ['Tech']
        assert post.word_count == len('Hello')

    def test_explicit_description_kept(self, make_post, config):
        folder = make_post('d', yaml_post(extra='description: "Given"\n'))
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.description == 'Given'

    def test_image_url_when_file_exists(self, make_post, config):
        folder = make_post('img', yaml_post(extra='image: "./cover.png"\n'),
                           files={'cover.png': b'png'})
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.image == '/posts/img/cover.png'
        assert (config.public_posts_dir / 'img' / 'cover.png').exists()

    def test_image_missing_file(self, make_post, config):
        folder = make_post('noimg', yaml_post(extra='image: "cover.png"\n'))
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.image is None

    def test_word_count_is_body_length(self, make_post, config):
        body = 'x' * 2500
        folder = make_post('long', yaml_post(body=body))
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.word_count == 2500
        assert post.reading_time == 3

    def test_last_modified_is_utc_iso(self, make_post, config):
        folder = make_post('m', yaml_post())
        post = process_post_folder(folder, config.public_posts_dir, quiet=True)
        assert post.last_modified.endswith('Z')


class TestGeneratePostStats:

    def posts(self, make_post, config, specs):
        result = []
        for slug, date, extra in specs:
            folder = make_post(slug, yaml_post(date=date, extra=extra))
            result.append(process_post_folder(folder, config.public_posts_dir, quiet=True))
        return result

    def test_counts(self, make_post, config):
        posts = self.posts(make_post, config, [
            ('a', '2024-01-01', 'categories: [Tech]\ntags: [py, web]\n'),
            ('b', '2023-05-01', 'categories: Tech\ntags: [py]\ndraft: true\n'),
            ('c', '2024-03-01', 'categories: [Life]\n'),
        ])
        stats = generate_post_stats(posts)
        assert stats.total == 3
        assert stats.published == 2
        assert stats.draft == 1
        assert stats.categories == [{'name': 'Tech', 'count': 2}, {'name': 'Life', 'count': 1}]
        assert stats.tags == [{'name': 'py', 'count': 2}, {'name': 'web', 'count': 1}]
        assert stats.years == [{'year': 2024, 'count': 2}, {'year': 2023, 'count': 1}]
        assert stats.total_words == sum(p.word_count for p in posts)
        assert stats.average_reading_time == 1

    def test_empty(self):
        stats = generate_post_stats([])
        assert stats.total == 0
        assert stats.average_reading_time == 0


class TestBuildPostsManifest:

    def test_hello_world_scenario(self, make_post, config):
        make_post('hello-world', yaml_post(title='Hello', date='2024-01-01',
                                           body='Welcome to my **new** blog.'))
        manifest = build_posts_manifest(config, quiet=True)

        data = json.loads(config.posts_manifest.read_text(encoding='utf-8'))
        assert data['posts'][0]['slug'] == 'hello-world'
        assert data['posts'][0]['title'] == 'Hello'
        assert data['posts'][0]['description'] == 'Welcome to my new blog.'
        assert data['stats']['total'] == 1
        assert data['errors'] == []
        assert 'generated' in data
        assert manifest.posts[0].slug == 'hello-world'

    def test_sorted_newest_first(self, make_post, config):
        make_post('old', yaml_post(date='2022-01-01'))
        make_post('new', yaml_post(date='2024-06-01'))
        make_post('mid', yaml_post(date='2023-03-01'))
        manifest = build_posts_manifest(config, quiet=True)
        assert [p.slug for p in manifest.posts] == ['new', 'mid', 'old']

    def test_failed_folder_only_in_errors(self, make_post, config, capsys):
        make_post('good', yaml_post())
        make_post('no-index')
        make_post('no-title', '---\ndate: "2024-01-01"\n---\nbody')

        manifest = build_posts_manifest(config, quiet=True)

        slugs = [p.slug for p in manifest.posts]
        assert slugs == ['good']
        errors = {e.folder: e.error for e in manifest.errors}
        assert set(errors) == {'no-index', 'no-title'}
        assert 'index.md' in errors['no-index']
        assert 'title' in errors['no-title']
        assert 'no-index' in capsys.readouterr().err

    def test_template_and_hidden_folders_skipped(self, make_post, config):
        make_post('template', yaml_post(title='{{title}}', date='{{date}}'))
        make_post('.hidden', yaml_post())
        make_post('real', yaml_post())
        manifest = build_posts_manifest(config, quiet=True)
        assert [p.slug for p in manifest.posts] == ['real']
        assert manifest.errors == []

    def test_idempotent_apart_from_generated(self, make_post, config):
        make_post('a', yaml_post(extra='tags: [x]\n'), files={'pic.png': b'1'})
        make_post('b', yaml_post(date='2023-01-01'))
        make_post('broken')

        build_posts_manifest(config, quiet=True)
        first = json.loads(config.posts_manifest.read_text(encoding='utf-8'))
        build_posts_manifest(config, quiet=True)
        second = json.loads(config.posts_manifest.read_text(encoding='utf-8'))

        first.pop('generated')
        second.pop('generated')
        assert first == second

    def test_missing_root_keeps_previous_manifest(self, config, capsys):
        config.public_dir.mkdir(parents=True)
        config.posts_manifest.write_text('{"previous": true}', encoding='utf-8')
        config.posts_dir.rmdir()

        assert build_posts_manifest(config) is None
        assert config.posts_manifest.read_text(encoding='utf-8') == '{"previous": true}'
        assert 'posts directory not found' in capsys.readouterr().err
