"""
Create a new post folder from the post template.

The template is src/posts/template/index.md. These placeholders are filled:
{{date}}, {{title}}, {{image}}, {{description}}, {{categories}}, {{tags}}.
Without a template folder, a YAML front-matter stub is written instead.
"""

from datetime import date
from pathlib import Path

import yaml

from .config import POST_CONTENT_FILE, SiteConfig

PLACEHOLDER_DEFAULTS = {
    'image': './navigation.jpg',
    'description': 'Write a short description here...',
    'categories': 'Tech',
    'tags': 'notes',
}


def render_template(template: str, values: dict) -> str:
    for key, value in values.items():
        template = template.replace('{{' + key + '}}', str(value))
    return template


def default_post(title: str, post_date: str) -> str:
    front = {
        'title': title,
        'date': post_date,
        'description': PLACEHOLDER_DEFAULTS['description'],
        'categories': [PLACEHOLDER_DEFAULTS['categories']],
        'tags': [PLACEHOLDER_DEFAULTS['tags']],
        'draft': True,
    }
    front_matter = yaml.dump(front, default_flow_style=False,
                             allow_unicode=True, sort_keys=False)
    return f"---\n{front_matter}---\n\n# {title}\n"


def create_post(title: str, config: SiteConfig, today: date = None) -> Path:
    """Create src/posts/<title>/index.md and return the folder.

    Raises FileExistsError if a post folder with that name already exists.
    """
    title = title.strip()
    if not title:
        raise ValueError('post title must not be empty')

    post_dir = config.posts_dir / title
    if post_dir.exists():
        raise FileExistsError(f'post folder already exists: {post_dir}')

    post_date = (today or date.today()).isoformat()
    template_file = config.posts_dir / config.post_template / POST_CONTENT_FILE
    if template_file.is_file():
        values = dict(PLACEHOLDER_DEFAULTS, date=post_date, title=title)
        content = render_template(template_file.read_text(encoding='utf-8'), values)
    else:
        content = default_post(title, post_date)

    post_dir.mkdir(parents=True)
    (post_dir / POST_CONTENT_FILE).write_text(content, encoding='utf-8')
    return post_dir
