#!/usr/bin/env python3
"""
Exceptions raised by ttxkit.

Everything derives from TTXError so callers can catch the whole family at
once. File-system errors (missing file, permissions) are not wrapped.
"""


class TTXError(Exception):
    """Base class for all ttxkit errors."""


class ParseError(TTXError):
    """Malformed XML, or the TRADOStag skeleton is missing a required element."""


class EncodingError(TTXError):
    """Bytes cannot be decoded, or text cannot be encoded, for a TTX file."""


class NoTargetPathError(TTXError):
    """write() was called without a path and the document was not loaded from one."""


class InvalidAttributeError(TTXError, ValueError):
    """A numeric attribute (e.g. MatchPercent) holds a value that is not a valid number."""


class SettingsError(TTXError, ValueError):
    """Unknown header option or an unreadable settings profile."""
