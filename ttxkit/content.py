#!/usr/bin/env python3
"""
Typed views over the body of a TTX document.

The body (<Raw>) is a mixed sequence of text runs and elements:

    text          plain character data
    <Tu>          segment: two <Tuv Lang="..."> variants, source then target
    <ut>          mark, or an open/close tag when Type="start"/"end"
    <df> etc.     formatting wrappers, reported as 'unknown'

ContentItem wraps one node of that sequence without copying it; the kind is
worked out from the node each time it is asked for, so changes made through
one view are visible through any other view of the same node.
"""

from typing import TYPE_CHECKING, Optional
from xml.etree import ElementTree as ET

from .errors import InvalidAttributeError
from .markup import Node, TextNode, serialize_node

if TYPE_CHECKING:
    from .document import TTXDocument

TEXT = 'text'
SEGMENT = 'segment'
MARK = 'mark'
OPEN = 'open'
CLOSE = 'close'
UNKNOWN = 'unknown'


def parse_match(value) -> int:
    """Validate a match percent, returning it as an int in 0..100."""
    if isinstance(value, bool):
        raise InvalidAttributeError(f"MatchPercent must be an integer, got {value!r}")
    try:
        percent = int(str(value).strip())
    except ValueError:
        raise InvalidAttributeError(f"MatchPercent must be an integer, got {value!r}") from None
    if not 0 <= percent <= 100:
        raise InvalidAttributeError(f"MatchPercent must be between 0 and 100, got {percent}")
    return percent


def text_content(element: ET.Element) -> str:
    """All character data under an element, inline tag payloads included."""
    return ''.join(element.itertext())


def _set_text_content(element: ET.Element, text: str) -> None:
    for child in list(element):
        element.remove(child)
    element.text = text


class ContentItem:
    """
    View of a single body node.

    Never constructed by callers; TTXDocument.content_elements(), segments()
    and the append_* methods hand these out.
    """

    def __init__(self, node: Node, document: Optional["TTXDocument"] = None):
        self._node = node
        self._document = document

    @property
    def node(self) -> Node:
        """The underlying TextNode or Element."""
        return self._node

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContentItem):
            return NotImplemented
        return self._node is other._node

    def __hash__(self) -> int:
        return id(self._node)

    def __repr__(self) -> str:
        return f"<ContentItem {self.type()} {self.source()!r}>"

    def type(self) -> str:
        """One of 'text', 'segment', 'mark', 'open', 'close' or 'unknown'."""
        node = self._node
        if isinstance(node, TextNode):
            return TEXT
        if node.tag == 'Tu':
            return SEGMENT
        if node.tag == 'ut':
            role = node.get('Type')
            if role == 'start':
                return OPEN
            if role == 'end':
                return CLOSE
            return MARK
        return UNKNOWN

    def is_segment(self) -> bool:
        return self.type() == SEGMENT

    def _variants(self) -> list[ET.Element]:
        return self._node.findall('Tuv')

    def tag(self, display_text: Optional[str] = None) -> str:
        """
        Return (or set) the display label of a mark or tag.

        Text and segments have no label: this returns '' and ignores
        display_text for them.
        """
        if self.type() in (TEXT, SEGMENT):
            return ''
        if display_text is not None:
            self._node.set('DisplayText', display_text)
        return self._node.get('DisplayText', '')

    def source(self, text: Optional[str] = None) -> str:
        """
        Return (or set) the source text of a segment.

        For anything other than a segment this is just the node's own text,
        which for marks and tags is the raw tag code. Use with care.
        Setting is ignored on unknown elements such as <df> wrappers, whose
        children may include segments.
        """
        node = self._node
        if isinstance(node, TextNode):
            if text is not None:
                node.text = text
            return node.text
        kind = self.type()
        if kind != SEGMENT:
            if text is not None and kind != UNKNOWN:
                _set_text_content(node, text)
            return text_content(node)

        variants = self._variants()
        if not variants:
            if text is None:
                return ''
            variants = [self._add_variant(self._language('source'))]
        if text is not None:
            _set_text_content(variants[0], text)
        return text_content(variants[0])

    def translated(self, text: Optional[str] = None) -> str:
        """
        Return (or set) the translated text of a segment.

        A segment with a single variant reports that variant's text; setting
        the translation on one adds the second variant in the document's
        target language. Non-segments behave as in source().
        """
        if self.type() != SEGMENT:
            return self.source(text)

        variants = self._variants()
        if text is not None:
            if not variants:
                self._add_variant(self._language('source'))
                variants = self._variants()
            if len(variants) < 2:
                variants.append(self._add_variant(self._language('target')))
            _set_text_content(variants[1], text)

        if len(variants) > 1:
            return text_content(variants[1])
        if variants:
            return text_content(variants[0])
        return ''

    def match(self, percent=None) -> int:
        """
        Return (or set) the match percent of a segment.

        Anything that isn't a segment has a match of 0, and setting it is a
        no-op. A segment without a MatchPercent attribute reads as 0.

        Raises:
            InvalidAttributeError: if the stored or supplied value is not an
                integer between 0 and 100
        """
        if self.type() != SEGMENT:
            return 0
        if percent is not None:
            self._node.set('MatchPercent', str(parse_match(percent)))
        stored = self._node.get('MatchPercent')
        if stored is None:
            return 0
        return parse_match(stored)

    def origin(self, value: Optional[str] = None) -> Optional[str]:
        """Return (or set) where a segment came from ('manual', 'Align', ...). None if unset."""
        if self.type() != SEGMENT:
            return None
        if value is not None:
            self._node.set('origin', value)
        return self._node.get('origin')

    def source_lang(self, lang: Optional[str] = None) -> str:
        """Return (or set) the language of a segment's source variant."""
        return self._variant_lang(0, lang)

    def target_lang(self, lang: Optional[str] = None) -> str:
        """Return (or set) the language of a segment's target variant."""
        return self._variant_lang(1, lang)

    def _variant_lang(self, index: int, lang: Optional[str]) -> str:
        if self.type() != SEGMENT:
            return ''
        variants = self._variants()
        if index >= len(variants):
            if lang is None:
                return ''
            # Can't have a target variant without a source variant
            while len(variants) <= index:
                role = 'source' if not variants else 'target'
                variants.append(self._add_variant(self._language(role)))
        if lang is not None:
            variants[index].set('Lang', lang)
        return variants[index].get('Lang', '')

    def raw(self) -> str:
        """The node as it appears in the file, escaped."""
        return serialize_node(self._node)

    def _language(self, role: str) -> str:
        if self._document is None:
            return ''
        return self._document.slang() if role == 'source' else self._document.tlang()

    def _add_variant(self, lang: str) -> ET.Element:
        return ET.SubElement(self._node, 'Tuv', {'Lang': lang})
