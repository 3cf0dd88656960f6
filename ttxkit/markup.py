#!/usr/bin/env python3
"""
Escaping, byte encoding and serialization for TTX files.

TagEditor writes TTX as UTF-16 little-endian with a byte-order mark and is
picky about escaping, so serialization is done here rather than through
ElementTree.tostring():

- text: & < > are escaped, and CR becomes &#13; so it survives the XML
  parser's end-of-line normalization
- attributes: additionally " and tab/LF/CR as numeric references
- no pretty-printing; whitespace inside <Raw> is document content

Parsing is plain xml.etree.ElementTree.
"""

import codecs
import re
from typing import Optional, Union
from xml.etree import ElementTree as ET

from .errors import EncodingError, ParseError

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-16"?>'

# Characters that cannot appear in an XML 1.0 document at all, escaped or not
_INVALID_XML_CHARS = re.compile('[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]')

_DECLARATION_PATTERN = re.compile(r'^\s*<\?xml[^>]*\?>')
_DECLARED_ENCODING = re.compile(rb'^<\?xml[^>]*encoding\s*=\s*["\']([A-Za-z0-9._-]+)["\']')


def _check_chars(text: str) -> None:
    bad = _INVALID_XML_CHARS.search(text)
    if bad:
        raise EncodingError(
            f"Character U+{ord(bad.group(0)):04X} at offset {bad.start()} cannot be stored in a TTX file"
        )


def escape_text(text: str) -> str:
    """Escape a string for a text position."""
    _check_chars(text)
    text = text.replace('&', '&amp;')
    text = text.replace('<', '&lt;')
    text = text.replace('>', '&gt;')
    text = text.replace('\r', '&#13;')
    return text


def escape_attribute(text: str) -> str:
    """Escape a string for a double-quoted attribute value."""
    text = escape_text(text)
    text = text.replace('"', '&quot;')
    text = text.replace('\t', '&#9;')
    text = text.replace('\n', '&#10;')
    return text


def decode_document(data: bytes) -> str:
    """
    Decode the bytes of a TTX file to text.

    TagEditor writes UTF-16LE with a BOM, but other BOMs, BOM-less UTF-16 and
    whatever the XML declaration names are accepted as well.

    Raises:
        EncodingError: if the bytes do not decode in the detected encoding
    """
    if data.startswith(codecs.BOM_UTF16_LE):
        encoding, data = 'utf-16-le', data[len(codecs.BOM_UTF16_LE):]
    elif data.startswith(codecs.BOM_UTF16_BE):
        encoding, data = 'utf-16-be', data[len(codecs.BOM_UTF16_BE):]
    elif data.startswith(codecs.BOM_UTF8):
        encoding, data = 'utf-8', data[len(codecs.BOM_UTF8):]
    elif data[:2] == b'<\x00':
        encoding = 'utf-16-le'
    elif data[:2] == b'\x00<':
        encoding = 'utf-16-be'
    else:
        declared = _DECLARED_ENCODING.match(data.lstrip())
        encoding = declared.group(1).decode('ascii') if declared else 'utf-8'
        # A declaration claiming UTF-16 on single-byte data can't be right
        if encoding.lower().replace('-', '') in ('utf16', 'ucs2'):
            encoding = 'utf-8'

    try:
        return data.decode(encoding)
    except LookupError as e:
        raise EncodingError(f"Unknown encoding declared: {encoding}") from e
    except UnicodeDecodeError as e:
        raise EncodingError(f"File is not valid {encoding}: {e}") from e


def encode_document(text: str) -> bytes:
    """Encode serialized TTX text as UTF-16LE with a byte-order mark."""
    try:
        return codecs.BOM_UTF16_LE + text.encode('utf-16-le')
    except UnicodeEncodeError as e:
        raise EncodingError(f"Text cannot be encoded as UTF-16: {e}") from e


def parse_document(text: str) -> ET.Element:
    """
    Parse decoded TTX text into an element tree.

    The XML declaration is stripped first; the text is already decoded, so
    its encoding pseudo-attribute no longer applies.

    Raises:
        ParseError: if the text is not well-formed XML
    """
    text = _DECLARATION_PATTERN.sub('', text, count=1)
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(f"Invalid XML: {e}") from e


class TextNode:
    """A run of character data in a body sequence."""

    __slots__ = ('text',)

    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"TextNode({self.text!r})"


Node = Union[TextNode, ET.Element]


def serialize(element: ET.Element, replacements: Optional[dict] = None) -> str:
    """
    Serialize an element and its descendants.

    Args:
        element: Root of the subtree to write
        replacements: Optional map of element -> list of Nodes; the listed
            nodes are written as that element's children instead of its own

    Returns:
        Serialized markup (no XML declaration)
    """
    out: list[str] = []
    _write_element(element, out, replacements or {})
    return ''.join(out)


def serialize_node(node: Node) -> str:
    """Serialize a single body node, text or element."""
    if isinstance(node, TextNode):
        return escape_text(node.text)
    return serialize(node)


def _write_element(element: ET.Element, out: list[str], replacements: dict) -> None:
    out.append('<' + element.tag)
    for key, value in element.items():
        out.append(f' {key}="{escape_attribute(value)}"')

    if element in replacements:
        children = replacements[element]
    else:
        children = []
        if element.text:
            children.append(TextNode(element.text))
        for child in element:
            children.append(child)
            if child.tail:
                children.append(TextNode(child.tail))

    if not children:
        out.append('/>')
        return

    out.append('>')
    for child in children:
        if isinstance(child, TextNode):
            out.append(escape_text(child.text))
        else:
            _write_element(child, out, replacements)
    out.append(f'</{element.tag}>')
