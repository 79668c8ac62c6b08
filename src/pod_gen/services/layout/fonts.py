from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from pod_gen.config import Settings

logger = logging.getLogger(__name__)

BUILTIN_REGULAR = "Helvetica"
BUILTIN_BOLD = "Helvetica-Bold"


@dataclass(frozen=True)
class FontPair:
    regular: str = BUILTIN_REGULAR
    bold: str = BUILTIN_BOLD


def register_ttf(path: Path | None) -> str | None:
    """Register a TrueType file under its stem; returns the font name or None when unusable."""
    if path is None:
        return None
    p = Path(path).expanduser()
    if not p.is_file():
        logger.warning("font not found: %s", p)
        return None
    name = p.stem
    if name in pdfmetrics.getRegisteredFontNames():
        return name
    try:
        pdfmetrics.registerFont(TTFont(name, str(p)))
    except (TTFError, OSError) as e:
        logger.warning("failed to register font %s: %s", p, e)
        return None
    return name


def register_fonts(s: Settings) -> FontPair:
    """Page fonts for one run; falls back to the built-in Helvetica pair (Latin-1 only)."""
    regular = register_ttf(s.font_path)
    if regular is None:
        logger.warning("using built-in %s; text outside Latin-1 will not render", BUILTIN_REGULAR)
        return FontPair()
    bold = register_ttf(s.font_bold_path)
    if bold is None:
        logger.warning("no bold font; using %s for bold text", regular)
        bold = regular
    return FontPair(regular=regular, bold=bold)


def unsupported_chars(text: str, font_name: str) -> str:
    """Characters of `text` the font has no glyph for (sorted, deduplicated)."""
    font = pdfmetrics.getFont(font_name)
    cmap = getattr(getattr(font, "face", None), "charToGlyph", None)
    missing: set[str] = set()
    for ch in text:
        if ch.isspace():
            continue
        if cmap is not None:
            if ord(ch) not in cmap:
                missing.add(ch)
            continue
        try:
            ch.encode("cp1252")
        except UnicodeEncodeError:
            missing.add(ch)
    return "".join(sorted(missing))
