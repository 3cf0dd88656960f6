#!/usr/bin/env python3
"""
Header settings for TTX documents.

A TTX header has two parts, ToolSettings and UserSettings, each a flat set of
XML attributes. TTXSettings holds all thirteen recognized fields with their
defaults so a document header is never partially initialized.

Options can be spelled three ways, all equivalent:

    TTXSettings.from_mapping({'source_language': 'FR-FR'})
    TTXSettings.from_mapping({'SourceLanguage': 'FR-FR'})
    TTXSettings.from_mapping({'Encoding': 'utf-8'})      # same as 'O-Encoding'

A settings profile can also be kept in YAML:

    ttx:
      SourceLanguage: FR-FR
      TargetLanguage: EN-GB
      DataType: XML
"""

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from xml.etree import ElementTree as ET

import yaml

from . import __version__
from .errors import SettingsError

logger = logging.getLogger(__name__)

CREATION_TOOL = "python with ttxkit"
DATE_FORMAT = "%Y%m%dT%H%M%SZ"

# field name -> attribute on <ToolSettings>
TOOL_SETTINGS = {
    'creation_tool': 'CreationTool',
    'creation_date': 'CreationDate',
    'creation_tool_version': 'CreationToolVersion',
}

# field name -> attribute on <UserSettings>
USER_SETTINGS = {
    'source_document_path': 'SourceDocumentPath',
    'encoding': 'O-Encoding',
    'target_language': 'TargetLanguage',
    'plug_in_info': 'PlugInInfo',
    'source_language': 'SourceLanguage',
    'settings_path': 'SettingsPath',
    'settings_relative_path': 'SettingsRelativePath',
    'data_type': 'DataType',
    'settings_name': 'SettingsName',
    'target_default_font': 'TargetDefaultFont',
}


def date_now() -> str:
    """Format the current UTC time the way TTX headers record it."""
    return datetime.now(timezone.utc).strftime(DATE_FORMAT)


def _build_aliases() -> dict[str, str]:
    aliases = {}
    for name, attribute in {**TOOL_SETTINGS, **USER_SETTINGS}.items():
        aliases[name] = name
        aliases[attribute] = name
    aliases['Encoding'] = 'encoding'
    return aliases


OPTION_ALIASES = _build_aliases()


def normalize_option(key: str) -> str:
    """Map any accepted option spelling to its TTXSettings field name."""
    try:
        return OPTION_ALIASES[key]
    except KeyError:
        raise SettingsError(f"Unknown header option: {key}") from None


@dataclass
class TTXSettings:
    """
    Complete TTX header.

    Attributes mirror the ToolSettings/UserSettings attributes. An empty
    string is a legitimate value meaning "not set"; None is never stored.
    """
    creation_tool: str = CREATION_TOOL
    creation_date: str = field(default_factory=date_now)
    creation_tool_version: str = __version__
    source_document_path: str = ""
    encoding: str = "windows-1252"
    target_language: str = "EN-US"
    plug_in_info: str = ""
    source_language: str = "DE-DE"
    settings_path: str = ""
    settings_relative_path: str = ""
    data_type: str = "RTF"
    settings_name: str = ""
    target_default_font: str = ""

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "TTXSettings":
        """Build settings from an options mapping; unsupplied fields keep their defaults."""
        return cls().updated(data)

    @classmethod
    def from_yaml(cls, path) -> "TTXSettings":
        """
        Load a settings profile from a YAML file.

        Args:
            path: Path to a YAML mapping of options, optionally nested under 'ttx'

        Returns:
            TTXSettings with the profile's values applied over the defaults
        """
        content = Path(path).read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if isinstance(data, dict) and isinstance(data.get('ttx'), dict):
            data = data['ttx']
        if not isinstance(data, dict):
            raise SettingsError(f"Settings profile {path} must be a mapping")

        logger.debug("Loaded %d header options from %s", len(data), path)
        return cls.from_mapping(data)

    @classmethod
    def from_elements(cls, tool: ET.Element, user: ET.Element) -> "TTXSettings":
        """Read a header from parsed <ToolSettings> and <UserSettings> elements."""
        defaults = cls()
        values = {}
        for section, mapping in ((tool, TOOL_SETTINGS), (user, USER_SETTINGS)):
            for name, attribute in mapping.items():
                value = section.get(attribute)
                if value is None:
                    logger.debug("Header attribute %s missing, using default", attribute)
                    value = getattr(defaults, name)
                values[name] = value
        return cls(**values)

    def updated(self, overrides: Optional[dict[str, Any]] = None) -> "TTXSettings":
        """
        Return a copy with overrides applied.

        None values are treated as not supplied. Non-string scalars (e.g. a
        YAML integer) are converted to strings.
        """
        changes = {}
        for key, value in (overrides or {}).items():
            name = normalize_option(key)
            if value is None:
                continue
            if isinstance(value, (dict, list)):
                raise SettingsError(f"Header option {key} must be a scalar, got {type(value).__name__}")
            changes[name] = str(value)
        return replace(self, **changes)

    def apply_to(self, tool: ET.Element, user: ET.Element) -> None:
        """Write every field onto the header elements, leaving other attributes alone."""
        for name, attribute in TOOL_SETTINGS.items():
            tool.set(attribute, getattr(self, name))
        for name, attribute in USER_SETTINGS.items():
            user.set(attribute, getattr(self, name))

    def to_dict(self) -> dict[str, str]:
        """Header as a mapping of TTX attribute names to values."""
        attributes = {**TOOL_SETTINGS, **USER_SETTINGS}
        return {attributes[f.name]: getattr(self, f.name) for f in fields(self)}
