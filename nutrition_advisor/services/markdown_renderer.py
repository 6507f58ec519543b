"""
Renders analysis text returned by the model as HTML.
"""

from typing import Optional

import markdown
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup


MARKDOWN_EXTENSIONS = ['tables', 'fenced_code', 'def_list', 'sane_lists']
UNSAFE_URL_SCHEMES = ('javascript:', 'vbscript:', 'data:')


class SafeLinkTreeprocessor(Treeprocessor):
    """Blank out link and image targets that would run script."""

    def run(self, root):
        for element in root.iter():
            for attribute in ('href', 'src'):
                value = element.get(attribute)
                if value and value.strip().lower().startswith(UNSAFE_URL_SCHEMES):
                    element.set(attribute, '#')


def create_markdown() -> markdown.Markdown:
    """Build a converter that treats raw HTML in the text as plain text."""
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
    md.preprocessors.deregister('html_block')
    md.inlinePatterns.deregister('html')
    md.treeprocessors.register(SafeLinkTreeprocessor(md), 'safe_links', 0)
    return md


def render_markdown(text: Optional[str]) -> Markup:
    """
    Convert lightweight markup to HTML safe for inline display.

    Args:
        text: Analysis text from the model

    Returns:
        Markup ready to be placed in a template
    """
    if not text or not text.strip():
        return Markup("")

    return Markup(create_markdown().convert(text))
