"""
ttxkit - read and write TRADOS TagEditor TTX files

TTX is the XML format TagEditor works in: a header of tool and user settings
and a body of text, segments (source/target pairs with a match percent) and
inline tags. Files are stored as UTF-16LE with a byte-order mark.

Quick start:
    from ttxkit import TTXDocument

    ttx = TTXDocument(source_language='EN-US', target_language='DE-DE')
    ttx.append_segment('Hello', 'Hallo', match=100)
    ttx.write('hello.ttx')

    for s in TTXDocument.load('hello.ttx').segments():
        print(s.source(), s.translated(), s.match())
"""

__version__ = "0.2.0"

from .content import ContentItem
from .document import TTXDocument
from .errors import (
    EncodingError,
    InvalidAttributeError,
    NoTargetPathError,
    ParseError,
    SettingsError,
    TTXError,
)
from .settings import TTXSettings, date_now

__all__ = [
    "TTXDocument",
    "ContentItem",
    "TTXSettings",
    "date_now",
    "TTXError",
    "ParseError",
    "EncodingError",
    "NoTargetPathError",
    "InvalidAttributeError",
    "SettingsError",
]
