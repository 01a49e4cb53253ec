"""Shared lxml helpers for reading MARBLE source documents."""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from marble_lexicon.exceptions import DataImportError


def parse_document(path: str | Path) -> etree._Element:
    """Parse an XML file and return its root element.

    Raises DataImportError for malformed or unreadable files.
    """
    parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False, huge_tree=True)
    try:
        tree = etree.parse(str(path), parser)
    except etree.XMLSyntaxError as e:
        raise DataImportError(f"Failed to parse XML {Path(path).name}: {e}") from e
    except OSError as e:
        raise DataImportError(f"Failed to read {path}: {e}") from e
    return tree.getroot()


def element_text(elem: etree._Element | None) -> str:
    """Full text content of *elem*, stripped; empty when missing."""
    if elem is None:
        return ""
    return "".join(elem.itertext()).strip()
