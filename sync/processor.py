"""HTML sanitisation and article normalisation."""
import re
from typing import Dict, Iterable, Optional, Set
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from bs4.element import PreformattedString

from models.article import ArticleTask, ProcessedArticle
from shared.exceptions import ValidationError
from shared.utils import from_epoch_seconds

DEFAULT_ALLOWED_TAGS = frozenset([
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr",
    "blockquote", "pre", "code",
    "ul", "ol", "li",
    "a", "strong", "em", "b", "i", "u", "s", "del", "ins",
    "img", "figure", "figcaption",
    "table", "thead", "tbody", "tr", "th", "td",
    "div", "span", "sup", "sub",
])

DEFAULT_ALLOWED_ATTRIBUTES: Dict[str, frozenset] = {
    "a": frozenset(["href", "title", "target", "rel"]),
    "img": frozenset(["src", "alt", "title", "width", "height", "loading"]),
    "code": frozenset(["class"]),
    "pre": frozenset(["class"]),
    "td": frozenset(["colspan", "rowspan"]),
    "th": frozenset(["colspan", "rowspan"]),
}

# Removed together with everything inside them, whatever the allow-list says.
SCRIPT_CAPABLE_TAGS = [
    "script", "style", "iframe", "object", "embed", "applet", "noscript",
    "form", "input", "button", "textarea", "select", "link", "meta", "base",
    "frame", "frameset", "svg", "math", "template",
]

URL_ATTRIBUTES = {"href", "src"}
ALLOWED_SCHEMES = {"http", "https", "mailto"}
SUMMARY_LENGTH = 200
ELLIPSIS = "…"

_CONTROL_CHARS = re.compile(r"[\x00-\x20\x7f]+")
_WHITESPACE = re.compile(r"\s+")


def _effective_tags(allowed_tags: Optional[Iterable[str]]) -> Set[str]:
    if allowed_tags is None:
        return set(DEFAULT_ALLOWED_TAGS)
    return set(DEFAULT_ALLOWED_TAGS) & {t.lower() for t in allowed_tags}


def _effective_attributes(allowed_attributes: Optional[Dict[str, Iterable[str]]]) -> Dict[str, Set[str]]:
    if allowed_attributes is None:
        return {tag: set(attrs) for tag, attrs in DEFAULT_ALLOWED_ATTRIBUTES.items()}
    return {
        tag: set(DEFAULT_ALLOWED_ATTRIBUTES.get(tag, ())) & {a.lower() for a in attrs}
        for tag, attrs in allowed_attributes.items()
    }


def _is_safe_url(value: str) -> bool:
    scheme = urlparse(_CONTROL_CHARS.sub("", value)).scheme.lower()
    return scheme == "" or scheme in ALLOWED_SCHEMES


def _parse(html: str) -> BeautifulSoup:
    """Parse a fragment and drop script-capable elements and markup declarations."""
    soup = BeautifulSoup(html, "html.parser")

    for element in soup.find_all(SCRIPT_CAPABLE_TAGS):
        if not element.decomposed:
            element.decompose()

    # Comments, CDATA, doctypes, declarations and processing instructions
    for node in soup.find_all(string=lambda text: isinstance(text, PreformattedString)):
        node.extract()

    return soup


def sanitize(
    html: str,
    allowed_tags: Optional[Iterable[str]] = None,
    allowed_attributes: Optional[Dict[str, Iterable[str]]] = None
) -> str:
    """
    Reduce untrusted HTML to a safe allow-listed subset.

    ``allowed_tags`` and ``allowed_attributes`` can only narrow the default
    allow-list; names outside it are ignored.
    """
    if not html:
        return ""

    tags = _effective_tags(allowed_tags)
    attributes = _effective_attributes(allowed_attributes)
    soup = _parse(html)

    for tag in soup.find_all(True):
        if tag.name not in tags:
            tag.unwrap()
            continue

        allowed = attributes.get(tag.name, set())
        kept = {}
        for name, value in tag.attrs.items():
            name = name.lower()
            if name.startswith("on") or name not in allowed:
                continue
            if name in URL_ATTRIBUTES and not _is_safe_url(str(value)):
                continue
            kept[name] = value
        tag.attrs = kept

        if tag.name == "a":
            tag["target"] = "_blank"
            tag["rel"] = "noopener noreferrer"

    return str(soup)


def html_to_text(html: str) -> str:
    """Plain text of an HTML fragment with whitespace collapsed."""
    if not html:
        return ""
    text = _parse(html).get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()


def extract_summary(html: str, max_length: int = SUMMARY_LENGTH) -> str:
    """
    Plain-text summary of at most ``max_length`` characters.

    When the text has to be cut, the trailing ellipsis counts towards
    ``max_length`` and the cut lands on a word boundary where one exists.
    """
    if max_length <= 0:
        return ""

    text = html_to_text(html)
    if len(text) <= max_length:
        return text

    budget = max_length - len(ELLIPSIS)
    cut = text[:budget]
    if budget < len(text) and not text[budget].isspace():
        head, sep, _ = cut.rpartition(" ")
        if sep and head.strip():
            cut = head
    return cut.rstrip() + ELLIPSIS


def process_article(task: ArticleTask) -> ProcessedArticle:
    """Turn a raw article task into a storage-ready record."""
    if not task.source_item_id:
        raise ValidationError("Article task has no source item id")
    if not task.feed_id:
        raise ValidationError(f"Article {task.source_item_id} has no feed id")

    body = sanitize(task.content or task.summary or "")

    return ProcessedArticle(
        source_item_id=task.source_item_id,
        feed_id=task.feed_id,
        title=task.title or "",
        content=body,
        summary=extract_summary(body),
        author_name=task.author_name or None,
        original_link=task.original_link or None,
        published_at=from_epoch_seconds(task.published_at)
    )
