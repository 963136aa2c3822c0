"""
Minimal HTML node tree used for template value substitution.

The tree keeps the source text of every tag, text run and comment, so a
template serialized without changes comes back as it was read (end tags are
re-emitted as '</name>', and entity references without a trailing ';' gain
one). Contents of <script> elements are dropped while parsing.

Example:
    >>> root = parse_html("<div><p id='label'/></div>")
    >>> apply_values(root, {'label': 'Hello World!'})
    1
    >>> root.to_html()
    "<div><p id='label'>Hello World!</p></div>"
"""

import html
import logging
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

ROOT = 'root'
ELEMENT = 'element'
TEXT = 'text'
MARKUP = 'markup'  # comments, doctype, processing instructions

VOID_ELEMENTS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'keygen',
    'link', 'meta', 'param', 'source', 'track', 'wbr'
})

# Elements whose content is never kept in the tree
EXCLUDED_CONTENT_ELEMENTS = frozenset({'script'})

_TAG_NAME = re.compile(r'<\s*([^\s/>]+)')


@dataclass
class TemplateNode:
    """
    A node of a parsed template.

    Attributes:
        kind: ROOT, ELEMENT, TEXT or MARKUP
        tag: Lower-cased tag name (elements only)
        attrs: Element attributes as parsed
        start_tag: Source text of the start tag (elements only)
        end_tag: Source text of the end tag, empty if the element was never closed
        raw: Source text of a TEXT or MARKUP node
        self_closing: Element was written as '<tag ... />'
        children: Child nodes in document order
    """
    kind: str
    tag: Optional[str] = None
    attrs: Dict[str, Optional[str]] = field(default_factory=dict)
    start_tag: str = ''
    end_tag: str = ''
    raw: str = ''
    self_closing: bool = False
    children: List['TemplateNode'] = field(default_factory=list)

    @property
    def id(self) -> Optional[str]:
        """Value of the element's id attribute, None for non-elements."""
        if self.kind != ELEMENT:
            return None
        return self.attrs.get('id')

    @property
    def is_void(self) -> bool:
        return self.kind == ELEMENT and self.tag in VOID_ELEMENTS

    @property
    def source_name(self) -> str:
        """Tag name as written in the source (case preserved)."""
        match = _TAG_NAME.match(self.start_tag)
        return match.group(1) if match else (self.tag or '')

    def set_content(self, value: str) -> None:
        """
        Replace all children with a single text node.

        The value is escaped and inserted as literal text, never parsed as
        markup. A self-closing element is rewritten with an explicit end tag.
        """
        self.children = [TemplateNode(kind=TEXT, raw=html.escape(value, quote=False))]

        if self.self_closing:
            self.start_tag = self.start_tag.rstrip()[:-2].rstrip() + '>'
            self.self_closing = False
        if not self.end_tag:
            self.end_tag = f"</{self.source_name}>"

    def to_html(self) -> str:
        """Serialize this node and its descendants back to markup."""
        if self.kind in (TEXT, MARKUP):
            return self.raw

        inner = ''.join(child.to_html() for child in self.children)
        if self.kind == ROOT:
            return inner
        return f"{self.start_tag}{inner}{self.end_tag}"

    def __str__(self) -> str:
        return self.to_html()


class _TreeBuilder(HTMLParser):
    """HTMLParser that builds a TemplateNode tree keeping source text."""

    def __init__(self):
        super().__init__(convert_charrefs=False)
        self.root = TemplateNode(kind=ROOT)
        self._stack: List[TemplateNode] = [self.root]

    @property
    def _current(self) -> TemplateNode:
        return self._stack[-1]

    def _append(self, node: TemplateNode) -> None:
        self._current.children.append(node)

    def _append_raw(self, kind: str, raw: str) -> None:
        if self._current.tag in EXCLUDED_CONTENT_ELEMENTS:
            return
        self._append(TemplateNode(kind=kind, raw=raw))

    def handle_starttag(self, tag, attrs):
        node = TemplateNode(
            kind=ELEMENT,
            tag=tag,
            attrs=dict(attrs),
            start_tag=self.get_starttag_text()
        )
        self._append(node)
        if tag not in VOID_ELEMENTS:
            self._stack.append(node)

    def handle_startendtag(self, tag, attrs):
        self._append(TemplateNode(
            kind=ELEMENT,
            tag=tag,
            attrs=dict(attrs),
            start_tag=self.get_starttag_text(),
            self_closing=True
        ))

    def handle_endtag(self, tag):
        # Close the nearest open element with this name; anything opened
        # after it stays without an end tag, as in the source.
        for depth in range(len(self._stack) - 1, 0, -1):
            node = self._stack[depth]
            if node.tag == tag:
                node.end_tag = f"</{node.source_name}>"
                del self._stack[depth:]
                return

        logger.debug(f"Unmatched end tag kept as text: </{tag}>")
        self._append_raw(MARKUP, f"</{tag}>")

    def handle_data(self, data):
        self._append_raw(TEXT, data)

    def handle_entityref(self, name):
        self._append_raw(TEXT, f"&{name};")

    def handle_charref(self, name):
        self._append_raw(TEXT, f"&#{name};")

    def handle_comment(self, data):
        self._append_raw(MARKUP, f"<!--{data}-->")

    def handle_decl(self, decl):
        self._append_raw(MARKUP, f"<!{decl}>")

    def handle_pi(self, data):
        self._append_raw(MARKUP, f"<?{data}>")

    def unknown_decl(self, data):
        self._append_raw(MARKUP, f"<![{data}]>")


def parse_html(markup: str) -> TemplateNode:
    """
    Parse markup into a TemplateNode tree.

    Args:
        markup: HTML source

    Returns:
        TemplateNode: Root node whose children are the top-level nodes
    """
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    return builder.root


def apply_values(node: TemplateNode, values: Dict[str, str]) -> int:
    """
    Substitute values into nodes whose id is a key of values.

    Traversal is depth-first, pre-order. A matched node gets its content
    replaced and its children are not visited; siblings and other subtrees
    are still traversed.

    Args:
        node: Node to start from (usually the root)
        values: Mapping of id to replacement text

    Returns:
        int: Number of nodes whose content was replaced
    """
    node_id = node.id
    if node_id is not None and node_id in values:
        if node.is_void:
            logger.warning(f"Element <{node.tag} id='{node_id}'> cannot hold content, skipping")
            return 0
        node.set_content(values[node_id])
        return 1

    return sum(apply_values(child, values) for child in node.children)
