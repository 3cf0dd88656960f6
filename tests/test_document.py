#!/usr/bin/env python3
"""
Tests for TTXDocument.

Tests verify:
1. Header defaults and set-or-get accessors
2. slang/tlang caching
3. append_* operations and the language first-write rule
4. content_elements/segments ordering
5. write/load round trip through the UTF-16LE on-disk form
6. Error cases: missing write target, malformed or incomplete files
"""

import codecs

import pytest

from ttxkit import TTXDocument, TTXSettings
from ttxkit.errors import (
    EncodingError,
    InvalidAttributeError,
    NoTargetPathError,
    ParseError,
    SettingsError,
)

TAGEDITOR_TTX = (
    '<?xml version="1.0" encoding="UTF-16"?>'
    '<TRADOStag Version="2.0">'
    '<FrontMatter>'
    '<ToolSettings CreationDate="20100315T142233Z" CreationTool="TRADOS TagEditor" CreationToolVersion="7.0.0.615"/>'
    '<UserSettings DataType="RTF" O-Encoding="windows-1252" SettingsName="" SettingsPath="" '
    'SourceLanguage="EN-US" TargetLanguage="DE-DE" TargetDefaultFont="" SourceDocumentPath="C:\\docs\\a.rtf" '
    'PlugInInfo="" SettingsRelativePath=""/>'
    '</FrontMatter>'
    '<Body><Raw>'
    '<df Font="Arial">'
    '<Tu MatchPercent="100" origin="manual"><Tuv Lang="EN-US">Hello.</Tuv><Tuv Lang="DE-DE">Hallo.</Tuv></Tu>'
    '</df>'
    '\n'
    '<ut Style="external" DisplayText="cf" Type="start" LeftEdge="angle">{\\cf1 </ut>'
    '<Tu MatchPercent="75"><Tuv Lang="EN-US">Goodbye.</Tuv><Tuv Lang="DE-DE">Tschüss.</Tuv></Tu>'
    '<ut Style="external" DisplayText="/cf" Type="end" RightEdge="angle">}</ut>'
    'trailing text'
    '</Raw></Body>'
    '</TRADOStag>'
)


def tageditor_bytes() -> bytes:
    return codecs.BOM_UTF16_LE + TAGEDITOR_TTX.encode("utf-16-le")


@pytest.fixture
def doc():
    """A blank document."""
    return TTXDocument()


@pytest.fixture
def loaded(tmp_path):
    """A document loaded from a TagEditor-style file."""
    path = tmp_path / "tageditor.ttx"
    path.write_bytes(tageditor_bytes())
    return TTXDocument.load(path)


# Header


def test_default_header(doc):
    assert doc.target_language() == "EN-US"
    assert doc.source_language() == "DE-DE"
    assert doc.data_type() == "RTF"
    assert doc.encoding() == "windows-1252"
    assert doc.creation_tool() == "python with ttxkit"
    assert doc.source_document_path() == ""
    assert doc.plug_in_info() == ""
    assert doc.settings_path() == ""
    assert doc.settings_relative_path() == ""
    assert doc.settings_name() == ""
    assert doc.target_default_font() == ""


def test_options_override_defaults():
    doc = TTXDocument(SourceLanguage="FR-FR", data_type="XML", Encoding="utf-8")
    assert doc.source_language() == "FR-FR"
    assert doc.data_type() == "XML"
    assert doc.encoding() == "utf-8"
    assert doc.target_language() == "EN-US"


def test_settings_profile():
    doc = TTXDocument(settings=TTXSettings(target_language="JA-JP"), data_type="HTML")
    assert doc.target_language() == "JA-JP"
    assert doc.data_type() == "HTML"


def test_unknown_option():
    with pytest.raises(SettingsError):
        TTXDocument(SourceLang="FR-FR")


@pytest.mark.parametrize("accessor", [
    "creation_tool", "creation_date", "creation_tool_version", "source_document_path",
    "encoding", "target_language", "plug_in_info", "source_language", "settings_path",
    "settings_relative_path", "data_type", "settings_name", "target_default_font",
])
def test_set_or_get(doc, accessor):
    """Reading twice gives the same value; setting returns and keeps the new value."""
    method = getattr(doc, accessor)
    assert method() == method()
    assert method("new value") == "new value"
    assert method() == "new value"


def test_settings_is_a_copy(doc):
    """Changing the returned header does not touch the document or its language cache."""
    assert doc.slang() == "DE-DE"
    header = doc.settings
    header.source_language = "FR-FR"
    assert doc.source_language() == "DE-DE"
    assert doc.slang() == "DE-DE"
    assert doc.append_segment("a", "b").source_lang() == "DE-DE"


def test_replacing_settings_resets_language_cache(doc):
    """A new header replaces the cached languages too."""
    assert doc.slang() == "DE-DE"
    assert doc.tlang() == "EN-US"
    doc.settings = TTXSettings(source_language="FR-FR", target_language="EN-GB")
    assert doc.slang() == "FR-FR"
    assert doc.tlang() == "EN-GB"
    item = doc.append_segment("Bonjour", "Hello")
    assert (item.source_lang(), item.target_lang()) == ("FR-FR", "EN-GB")
    assert 'SourceLanguage="FR-FR"' in doc.tostring()


def test_setter_overwrites_cache(doc):
    """Setting the language through either accessor keeps the cache in step."""
    assert doc.slang() == "DE-DE"
    doc.source_language("FR-FR")
    assert doc.slang() == "FR-FR"
    assert doc.tlang() == "EN-US"
    doc.target_language("EN-GB")
    assert doc.tlang() == "EN-GB"


def test_slang_tlang_set(doc):
    assert doc.slang("IT-IT") == "IT-IT"
    assert doc.source_language() == "IT-IT"
    assert doc.tlang("PT-BR") == "PT-BR"
    assert doc.target_language() == "PT-BR"


def test_header_changes_are_written(doc):
    doc.source_language("FR-FR")
    assert 'SourceLanguage="FR-FR"' in doc.tostring()


# Appending


def test_append_types(doc):
    doc.append_text("text\n")
    doc.append_segment("Source", "Target")
    doc.append_mark("mark")
    doc.append_open_tag("{\\b ")
    doc.append_close_tag("}")
    assert [item.type() for item in doc.content_elements()] == ["text", "segment", "mark", "open", "close"]


def test_append_text_not_terminated(doc):
    """No newline is added, and separate appends stay separate."""
    doc.append_text("one")
    doc.append_text("two")
    assert [item.source() for item in doc] == ["one", "two"]
    assert len(doc) == 2


def test_append_text_escaping(doc):
    item = doc.append_text("<a & b>")
    assert item.raw() == "&lt;a &amp; b&gt;"
    assert item.source() == "<a & b>"
    assert item.translated() == "<a & b>"
    assert "<Raw>&lt;a &amp; b&gt;</Raw>" in doc.tostring()


def test_append_segment_markup(doc):
    doc.append_segment("a < b", "a & b", match=85, origin="manual")
    output = doc.tostring()
    assert ('<Tu MatchPercent="85" origin="manual">'
            '<Tuv Lang="DE-DE">a &lt; b</Tuv><Tuv Lang="EN-US">a &amp; b</Tuv></Tu>') in output


def test_append_segment_without_origin(doc):
    item = doc.append_segment("a", "b")
    assert item.origin() is None
    assert "origin" not in doc.tostring()
    assert item.match() == 0


def test_append_segment_invalid_match(doc):
    with pytest.raises(InvalidAttributeError):
        doc.append_segment("a", "b", match="high")
    with pytest.raises(InvalidAttributeError):
        doc.append_segment("a", "b", match=101)
    assert len(doc) == 0


def test_language_first_write_wins():
    """An explicit language fills an empty header, but never replaces a set one."""
    doc = TTXDocument(source_language="", target_language="")
    first = doc.append_segment("Bonjour", "Hello", source_lang="FR-FR", target_lang="EN-GB")
    assert doc.source_language() == "FR-FR"
    assert doc.target_language() == "EN-GB"
    assert first.source_lang() == "FR-FR"

    second = doc.append_segment("Ciao", "Hello", source_lang="IT-IT")
    assert doc.source_language() == "FR-FR"
    assert second.source_lang() == "IT-IT"
    assert second.target_lang() == "EN-GB"


def test_explicit_language_does_not_touch_set_header(doc):
    item = doc.append_segment("Bonjour", "Hello", source_lang="FR-FR")
    assert item.source_lang() == "FR-FR"
    assert doc.source_language() == "DE-DE"


def test_segment_uses_header_language(doc):
    item = doc.append_segment("Hallo", "Hello")
    assert item.source_lang() == "DE-DE"
    assert item.target_lang() == "EN-US"


def test_mark_and_tag_markup(doc):
    doc.append_mark("<go>")
    doc.append_open_tag("{\\b ", "b")
    doc.append_close_tag("}")
    output = doc.tostring()
    assert '<ut DisplayText="text" Style="external">&lt;go&gt;</ut>' in output
    assert '<ut DisplayText="b" Style="external" Type="start" LeftEdge="angle">{\\b </ut>' in output
    assert '<ut DisplayText="/cf" Style="external" Type="end" RightEdge="angle">}</ut>' in output


def test_tag_defaults(doc):
    assert doc.append_mark("m").tag() == "text"
    assert doc.append_open_tag("o").tag() == "cf"
    assert doc.append_close_tag("c").tag() == "/cf"


# Reading


def test_segments_order(doc):
    doc.append_text("intro ")
    doc.append_segment("one", "eins")
    doc.append_mark("m")
    doc.append_segment("two", "zwei")
    doc.append_open_tag("{")
    doc.append_segment("three", "drei")
    doc.append_close_tag("}")
    assert [s.source() for s in doc.segments()] == ["one", "two", "three"]
    assert all(s.type() == "segment" for s in doc.segments())


def test_views_share_the_node(doc):
    appended = doc.append_segment("a", "b")
    viewed = doc.segments()[0]
    assert appended == viewed
    viewed.translated("changed")
    assert appended.translated() == "changed"


def test_load_tageditor_file(loaded):
    assert loaded.creation_tool() == "TRADOS TagEditor"
    assert loaded.source_language() == "EN-US"
    assert loaded.target_language() == "DE-DE"
    assert loaded.source_document_path() == "C:\\docs\\a.rtf"
    assert [item.type() for item in loaded] == ["unknown", "text", "open", "segment", "close", "text"]


def test_segments_inside_formatting(loaded):
    """Segments nested in <df> are found, in document order."""
    segments = loaded.segments()
    assert [(s.source(), s.translated(), s.match()) for s in segments] == [
        ("Hello.", "Hallo.", 100),
        ("Goodbye.", "Tschüss.", 75),
    ]
    assert segments[0].origin() == "manual"


def test_load_keeps_tree_values_over_defaults(tmp_path):
    """A loaded header with an empty language stays empty."""
    path = tmp_path / "nolang.ttx"
    path.write_bytes(tageditor_bytes().replace(
        'SourceLanguage="EN-US"'.encode("utf-16-le"), 'SourceLanguage=""'.encode("utf-16-le")))
    doc = TTXDocument.load(path)
    assert doc.source_language() == ""
    doc.append_segment("x", "y", source_lang="EN-GB")
    assert doc.source_language() == "EN-GB"


def test_load_with_override(tmp_path):
    path = tmp_path / "a.ttx"
    path.write_bytes(tageditor_bytes())
    doc = TTXDocument.load(path, TargetLanguage="FR-FR")
    assert doc.target_language() == "FR-FR"
    assert doc.source_language() == "EN-US"


# Writing


def test_write_is_utf16le_with_bom(doc, tmp_path):
    doc.append_text("Grüße")
    path = tmp_path / "out.ttx"
    doc.write(path)
    data = path.read_bytes()
    assert data.startswith(codecs.BOM_UTF16_LE)
    text = data[2:].decode("utf-16-le")
    assert text.startswith('<?xml version="1.0" encoding="UTF-16"?><TRADOStag Version="2.0">')
    assert "Grüße" in text


def test_write_without_path(doc):
    with pytest.raises(NoTargetPathError):
        doc.write()


def test_write_back_to_source(loaded):
    loaded.segments()[1].translated("Auf Wiedersehen.")
    loaded.write()
    again = TTXDocument.load(loaded.source_file_path)
    assert again.segments()[1].translated() == "Auf Wiedersehen."


def test_adjacent_text_merges_on_reload(doc, tmp_path):
    """Separate text appends are separate items until written; XML reads them back as one."""
    doc.append_text("first ")
    doc.append_text("second")
    doc.append_mark("m")
    assert [item.type() for item in doc] == ["text", "text", "mark"]
    path = tmp_path / "merged.ttx"
    doc.write(path)
    again = TTXDocument.load(path)
    assert [(item.type(), item.source()) for item in again] == [("text", "first second"), ("mark", "m")]


def test_write_invalid_character(doc, tmp_path):
    doc.append_text("bell \x07")
    with pytest.raises(EncodingError):
        doc.write(tmp_path / "bad.ttx")


def test_round_trip(tmp_path):
    """Everything built with append_* comes back the same after write and load."""
    doc = TTXDocument(SourceLanguage="EN-US", TargetLanguage="DE-DE", SettingsName="demo")
    doc.append_text("Heading & <intro>\r\n")
    doc.append_segment('He said "hi" & left', "Er sagte „hallo“ & ging", match=87, origin="manual")
    doc.append_mark("script-mark-1", "note")
    doc.append_segment("日本語", "\U0001F600 emoji", source_lang="JA-JP")
    doc.append_open_tag("{\\b ")
    doc.append_text("\tbold text ")
    doc.append_close_tag("}")
    path = tmp_path / "round.ttx"
    doc.write(path)

    again = TTXDocument.load(path)
    assert again.settings == doc.settings
    before = [(i.type(), i.tag(), i.source(), i.translated(), i.match(), i.origin())
              for i in doc.content_elements()]
    after = [(i.type(), i.tag(), i.source(), i.translated(), i.match(), i.origin())
             for i in again.content_elements()]
    assert after == before
    assert [s.source_lang() for s in again.segments()] == ["EN-US", "JA-JP"]


def test_round_trip_bytes_stable(loaded):
    """Loading and writing again produces identical bytes."""
    first = loaded.to_bytes()
    assert TTXDocument.from_bytes(first).to_bytes() == first


# Errors on load


def test_load_malformed(tmp_path):
    path = tmp_path / "broken.ttx"
    path.write_bytes(codecs.BOM_UTF16_LE + "<TRADOStag><Body>".encode("utf-16-le"))
    with pytest.raises(ParseError):
        TTXDocument.load(path)


@pytest.mark.parametrize("markup", [
    '<TRADOStag><Body><Raw/></Body></TRADOStag>',
    '<TRADOStag><FrontMatter><ToolSettings/></FrontMatter><Body><Raw/></Body></TRADOStag>',
    '<TRADOStag><FrontMatter><ToolSettings/><UserSettings/></FrontMatter></TRADOStag>',
    '<TRADOStag><FrontMatter><ToolSettings/><UserSettings/></FrontMatter><Body/></TRADOStag>',
])
def test_load_missing_structure(markup):
    with pytest.raises(ParseError):
        TTXDocument.from_bytes(markup.encode("utf-8"))


def test_load_undecodable(tmp_path):
    path = tmp_path / "latin.ttx"
    path.write_bytes(b"<TRADOStag>\xe9</TRADOStag>")
    with pytest.raises(EncodingError):
        TTXDocument.load(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        TTXDocument.load(tmp_path / "nope.ttx")
