"""
Text normalization for answer comparison

Maps a raw string to a canonical comparison form so that answers typed with
different keyboards, digit systems or joiner habits compare equal:

1. invisible joiners and direction marks become spaces; diacritics and
   tatweel are dropped
2. Arabic letter variants are unified to their Persian forms
3. Persian and Arabic-Indic digits fold to ASCII
4. whitespace collapses to single spaces; a space between two Arabic-script
   letters is dropped, so "می روم" written with a ZWNJ, with a space or
   with neither compares equal
5. case folding (skipped for case-sensitive comparison)

All tables are module-level constants and never mutated, so ``normalize`` is
safe to call from any number of threads.
"""

import re
import unicodedata

# ZWNJ, ZWJ, zero-width space, word joiner, BOM and bidi controls
_JOINER_CHARS = (
    "\u200c\u200d\u200b\u2060\ufeff"
    "\u200e\u200f\u061c"
    "\u202a\u202b\u202c\u202d\u202e"
    "\u2066\u2067\u2068\u2069"
)

# Harakat, superscript alef, tatweel and soft hyphen
_DROPPED_CHARS = (
    "".join(chr(cp) for cp in range(0x064B, 0x0660)) + "\u0670\u0640\u00ad"
)

_LETTER_MAP = {
    "\u0643": "\u06a9",  # kaf
    "\u064a": "\u06cc",  # yeh
    "\u0649": "\u06cc",  # alef maksura
    "\u0626": "\u06cc",  # yeh with hamza
    "\u0629": "\u0647",  # teh marbuta
    "\u06c0": "\u0647",  # heh with yeh
    "\u06d5": "\u0647",  # ae
    "\u0623": "\u0627",  # alef with hamza above
    "\u0625": "\u0627",  # alef with hamza below
    "\u0671": "\u0627",  # alef wasla
    "\u0624": "\u0648",  # waw with hamza
    "\u060c": ",",
    "\u061b": ";",
    "\u061f": "?",
    "\u066b": ".",
    "\u066c": ",",
}

_DIGIT_MAP = {}
for _offset in range(10):
    _DIGIT_MAP[chr(0x06F0 + _offset)] = str(_offset)
    _DIGIT_MAP[chr(0x0660 + _offset)] = str(_offset)

_TRANSLATION = str.maketrans(
    {
        **{ch: " " for ch in _JOINER_CHARS},
        **{ch: None for ch in _DROPPED_CHARS},
        **_LETTER_MAP,
        **_DIGIT_MAP,
    }
)

_WHITESPACE_RE = re.compile(r"\s+")

# Arabic-script letters (digits and punctuation excluded)
_ARABIC_LETTER = (
    "[\u0620-\u064a\u066e-\u06d3\u06ee\u06ef\u06fa-\u06fc\u06ff"
    "\u0750-\u077f]"
)
_INNER_SPACE_RE = re.compile(f"(?<={_ARABIC_LETTER}) (?={_ARABIC_LETTER})")


def normalize(value, case_sensitive: bool = False) -> str:
    """Return the canonical comparison form of ``value``.

    ``None`` normalizes to an empty string. The result is idempotent:
    ``normalize(normalize(s)) == normalize(s)``.
    """
    if value is None:
        return ""
    text = unicodedata.normalize("NFKC", str(value))
    text = text.translate(_TRANSLATION)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    text = _INNER_SPACE_RE.sub("", text)
    if not case_sensitive:
        text = text.casefold()
    # Removed joiners can leave combining marks out of canonical order
    return unicodedata.normalize("NFKC", text)


def texts_equal(first, second, case_sensitive: bool = False) -> bool:
    """Compare two strings after normalization"""
    return normalize(first, case_sensitive) == normalize(second, case_sensitive)


def collapse_whitespace(value: str) -> str:
    """Remove all whitespace; used by the lenient "similar" comparison"""
    return _WHITESPACE_RE.sub("", value or "")
