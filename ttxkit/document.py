#!/usr/bin/env python3
"""
TTX document: header access, body building and body reading.

Each TTX has a header (ToolSettings/UserSettings) and a body (<Raw>). Before
translation the body is plain text; as TagEditor segments it, the text is
replaced by <Tu> segments holding a source and a target variant.

Building a TTX for translation:

    ttx = TTXDocument()
    ttx.append_text("This is a sentence.\\n")
    ttx.append_mark("test mark")
    ttx.append_text("\\n")
    ttx.write("my.ttx")

Reading one back:

    ttx = TTXDocument.load("my.ttx")
    for piece in ttx.content_elements():
        if piece.type() == 'segment':
            print(piece.translated())

    for s in ttx.segments():
        print(s.source(), '-', s.translated())

Marks survive translation untouched, so they can be used to find your place
in a translated file.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterator, Optional
from xml.etree import ElementTree as ET

from .content import ContentItem, parse_match
from .errors import NoTargetPathError, ParseError
from .markup import (
    XML_DECLARATION,
    Node,
    TextNode,
    decode_document,
    encode_document,
    parse_document,
    serialize,
)
from .settings import TTXSettings

logger = logging.getLogger(__name__)

EMPTY_TTX = (
    '<TRADOStag Version="2.0">'
    '<FrontMatter><ToolSettings/><UserSettings/></FrontMatter>'
    '<Body><Raw/></Body>'
    '</TRADOStag>'
)


def _find(root: ET.Element, path: str, name: str) -> ET.Element:
    element = root if root.tag == name else root.find(path)
    if element is None:
        raise ParseError(f"Not a TTX document: missing <{name}>")
    return element


class TTXDocument:
    """
    A TTX file held in memory.

    The document owns the element tree and the body sequence; ContentItem
    objects handed out are views into it, not copies.
    """

    def __init__(
        self,
        tree: Optional[ET.Element] = None,
        settings: Optional[TTXSettings] = None,
        **options,
    ):
        """
        Create a blank TTX, or wrap an already parsed one.

        Args:
            tree: Parsed <TRADOStag> root (used by load); header values are
                read from it instead of defaulted
            settings: Header to start from when building a blank TTX
            **options: Header overrides, e.g. source_language='FR-FR' or
                SourceLanguage='FR-FR'; None values are ignored

        Raises:
            ParseError: if tree lacks FrontMatter/ToolSettings/UserSettings/Body/Raw
        """
        self.source_file_path: Optional[str] = None
        self._cached_source_lang: Optional[str] = None
        self._cached_target_lang: Optional[str] = None

        if tree is None:
            tree = ET.fromstring(EMPTY_TTX)
        self._root = tree
        front_matter = _find(tree, './/FrontMatter', 'FrontMatter')
        self._tool_settings = _find(front_matter, './/ToolSettings', 'ToolSettings')
        self._user_settings = _find(front_matter, './/UserSettings', 'UserSettings')
        body = _find(tree, './/Body', 'Body')
        self._raw = _find(body, './/Raw', 'Raw')

        if settings is None:
            settings = TTXSettings.from_elements(self._tool_settings, self._user_settings)
        self._settings = settings.updated(options)
        self._settings.apply_to(self._tool_settings, self._user_settings)

        self._body: list[Node] = self._detach_body(self._raw)

    @staticmethod
    def _detach_body(raw: ET.Element) -> list[Node]:
        """Turn <Raw>'s text/tail mixed content into a flat node list."""
        nodes: list[Node] = []
        if raw.text:
            nodes.append(TextNode(raw.text))
        for child in list(raw):
            tail = child.tail
            child.tail = None
            nodes.append(child)
            if tail:
                nodes.append(TextNode(tail))
            raw.remove(child)
        raw.text = None
        return nodes

    @classmethod
    def from_bytes(cls, data: bytes, **options) -> "TTXDocument":
        """Parse the bytes of a TTX file."""
        root = parse_document(decode_document(data))
        return cls(tree=root, **options)

    @classmethod
    def load(cls, path, **options) -> "TTXDocument":
        """
        Load an existing TTX.

        The document remembers where it came from, so write() without a path
        writes it back to the same place.

        Raises:
            ParseError: if the file is not a well-formed TTX
            EncodingError: if the file's bytes cannot be decoded
        """
        data = Path(path).read_bytes()
        doc = cls.from_bytes(data, **options)
        doc.source_file_path = str(path)
        logger.debug("Loaded %s (%d bytes, %d body items)", path, len(data), len(doc._body))
        return doc

    def tostring(self) -> str:
        """Serialize the document, XML declaration included."""
        self._settings.apply_to(self._tool_settings, self._user_settings)
        return XML_DECLARATION + serialize(self._root, {self._raw: self._body})

    def to_bytes(self) -> bytes:
        """Serialize to the on-disk form: UTF-16LE with a byte-order mark."""
        return encode_document(self.tostring())

    def write(self, path=None) -> None:
        """
        Write the TTX to disk.

        Args:
            path: Target file; defaults to the file the document was loaded from

        Raises:
            NoTargetPathError: if no path is given and none is remembered
            EncodingError: if some content cannot be stored in a TTX file
        """
        if not path:
            path = self.source_file_path
        if not path:
            raise NoTargetPathError("No path given and the document was not loaded from a file")

        data = self.to_bytes()
        Path(path).write_bytes(data)
        logger.debug("Wrote %s (%d bytes, %d body items)", path, len(data), len(self._body))

    @property
    def settings(self) -> TTXSettings:
        """A copy of the header. Changing the copy does not change the document."""
        return replace(self._settings)

    @settings.setter
    def settings(self, settings: TTXSettings) -> None:
        self._settings = replace(settings)
        self._cached_source_lang = None
        self._cached_target_lang = None

    # Header access. Pass a value to set it; every accessor returns the current value.

    def _setting(self, name: str, value: Optional[str]) -> str:
        if value is not None:
            setattr(self._settings, name, str(value))
        return getattr(self._settings, name)

    def creation_tool(self, value: Optional[str] = None) -> str:
        return self._setting('creation_tool', value)

    def creation_date(self, value: Optional[str] = None) -> str:
        return self._setting('creation_date', value)

    def creation_tool_version(self, value: Optional[str] = None) -> str:
        return self._setting('creation_tool_version', value)

    def source_document_path(self, value: Optional[str] = None) -> str:
        return self._setting('source_document_path', value)

    def encoding(self, value: Optional[str] = None) -> str:
        """Encoding of the original document (O-Encoding), not of the TTX file itself."""
        return self._setting('encoding', value)

    def target_language(self, value: Optional[str] = None) -> str:
        if value is not None:
            self._cached_target_lang = str(value)
        return self._setting('target_language', value)

    def plug_in_info(self, value: Optional[str] = None) -> str:
        return self._setting('plug_in_info', value)

    def source_language(self, value: Optional[str] = None) -> str:
        if value is not None:
            self._cached_source_lang = str(value)
        return self._setting('source_language', value)

    def settings_path(self, value: Optional[str] = None) -> str:
        return self._setting('settings_path', value)

    def settings_relative_path(self, value: Optional[str] = None) -> str:
        return self._setting('settings_relative_path', value)

    def data_type(self, value: Optional[str] = None) -> str:
        return self._setting('data_type', value)

    def settings_name(self, value: Optional[str] = None) -> str:
        return self._setting('settings_name', value)

    def target_default_font(self, value: Optional[str] = None) -> str:
        return self._setting('target_default_font', value)

    def slang(self, lang: Optional[str] = None) -> str:
        """Source language, cached for repeated use."""
        if lang is not None:
            self._cached_source_lang = self.source_language(lang)
            return self._cached_source_lang
        if not self._cached_source_lang:
            self._cached_source_lang = self.source_language()
        return self._cached_source_lang

    def tlang(self, lang: Optional[str] = None) -> str:
        """Target language, cached for repeated use."""
        if lang is not None:
            self._cached_target_lang = self.target_language(lang)
            return self._cached_target_lang
        if not self._cached_target_lang:
            self._cached_target_lang = self.target_language()
        return self._cached_target_lang

    # Writing to the body

    def _append(self, node: Node) -> ContentItem:
        self._body.append(node)
        return ContentItem(node, self)

    def append_text(self, text: str) -> ContentItem:
        """
        Append a string to the end of the body. Terminating the line is up to the caller.

        Consecutive text appends stay separate items in memory, but XML has no
        boundary between adjacent character data: after write() and load()
        they come back as a single text item.
        """
        return self._append(TextNode(text))

    def append_segment(
        self,
        source: str,
        target: str,
        match=0,
        source_lang: Optional[str] = None,
        target_lang: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> ContentItem:
        """
        Append a segment to the body.

        Args:
            source: Source-language text
            target: Target-language text
            match: Match percent, 0-100
            source_lang: Language of the source; defaults to the header's
            target_lang: Language of the target; defaults to the header's
            origin: Where the segment came from (TagEditor uses 'manual');
                the attribute is left out when None

        If the header has no source or target language yet, an explicit one
        given here becomes the header default. Otherwise it applies to this
        segment only. TagEditor doesn't like mixed languages in one file.
        """
        percent = parse_match(match or 0)

        if source_lang:
            if not self.slang():
                self.slang(source_lang)
        else:
            source_lang = self.slang()
        if target_lang:
            if not self.tlang():
                self.tlang(target_lang)
        else:
            target_lang = self.tlang()

        tu = ET.Element('Tu', {'MatchPercent': str(percent)})
        if origin is not None:
            tu.set('origin', origin)
        ET.SubElement(tu, 'Tuv', {'Lang': source_lang}).text = source
        ET.SubElement(tu, 'Tuv', {'Lang': target_lang}).text = target
        return self._append(tu)

    def append_mark(self, text: str, display_tag: Optional[str] = None) -> ContentItem:
        """
        Append a mark: a tag that neither opens nor closes anything.

        These are external-style tags TagEditor skips during translation,
        which makes them handy for script coordination. The label shown in
        TagEditor defaults to 'text'.
        """
        mark = ET.Element('ut', {'DisplayText': display_tag or 'text', 'Style': 'external'})
        mark.text = text
        return self._append(mark)

    def append_open_tag(self, text: str, display_tag: Optional[str] = None) -> ContentItem:
        """Append an opening tag; the label defaults to 'cf'."""
        tag = ET.Element('ut', {
            'DisplayText': display_tag or 'cf',
            'Style': 'external',
            'Type': 'start',
            'LeftEdge': 'angle',
        })
        tag.text = text
        return self._append(tag)

    def append_close_tag(self, text: str, display_tag: Optional[str] = None) -> ContentItem:
        """Append a closing tag; the label defaults to '/cf'."""
        tag = ET.Element('ut', {
            'DisplayText': display_tag or '/cf',
            'Style': 'external',
            'Type': 'end',
            'RightEdge': 'angle',
        })
        tag.text = text
        return self._append(tag)

    # Reading from the body

    def content_elements(self) -> list[ContentItem]:
        """
        All body items in document order.

        Text may come back in several chunks, depending on how it was added.
        Chunks that were adjacent when written are merged into one on load.
        """
        return [ContentItem(node, self) for node in self._body]

    def segments(self) -> list[ContentItem]:
        """Just the segments, in document order, including any nested in formatting wrappers."""
        found = []
        for node in self._body:
            if isinstance(node, TextNode):
                continue
            for tu in node.iter('Tu'):
                found.append(ContentItem(tu, self))
        return found

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self.content_elements())

    def __len__(self) -> int:
        return len(self._body)
