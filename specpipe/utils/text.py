"""String helpers shared by the postprocessing passes."""

import re

_WHITESPACE_RE = re.compile(r'\s+')


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text or '').strip()


def normalize_term(term: str) -> str:
    """Lookup key for a term: lower-cased, whitespace-collapsed."""
    return collapse_whitespace(term).lower()


def slugify(text: str) -> str:
    """Convert heading or term text to an id (word characters kept)."""
    text = (text or '').strip().lower()
    text = re.sub(r'[^\w]+', '-', text)
    return text.strip('-')


def idl_slug(text: str) -> str:
    """Stricter slug for IDL anchors: ASCII letters and digits only."""
    text = (text or '').strip().lower()
    text = re.sub(r'[^a-z0-9]+', '-', text)
    return text.strip('-')


def heading_slug(text: str) -> str:
    """Slug used by the markdown renderer for heading ids."""
    text = (text or '').lower().strip()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'\s+', '-', text)
    return re.sub(r'-+', '-', text)


def truncate(text: str, limit: int = 200) -> str:
    """Trim to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit - 3] + '...'


def strip_indent(content: str) -> str:
    """Remove the smallest common indentation from all lines."""
    lines = content.replace('\r\n', '\n').replace('\r', '\n').split('\n')
    indents = [
        len(line) - len(line.lstrip())
        for line in lines
        if line.strip()
    ]
    min_indent = min(indents) if indents else 0
    return '\n'.join(line[min_indent:] for line in lines)
