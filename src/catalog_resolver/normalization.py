"""
Text normalization shared by the storage layer and the query path.

Every ``*_norm`` column in the catalog store and every incoming query go
through ``normalize_text``. The store registers this exact function as the
SQL function ``normalize_text``, so there is one implementation for both
sides of the boundary. Any change here changes stored columns too: re-save
the catalog after editing the pipeline.

Pipeline (order matters):
1. lowercase
2. transliterate Nordic/German letters to ASCII digraphs
3. collapse letter + separator + digit into letter + digit (g-3 -> g3)
4. collapse whitespace runs and trim
"""
import hashlib
import re
from typing import List

# Product-specific digraphs; do not replace with generic Unicode folding.
TRANSLITERATIONS = (
    ("æ", "ae"),
    ("ø", "oe"),
    ("å", "aa"),
    ("ä", "ae"),
    ("ö", "oe"),
)

_SEPARATOR_RE = re.compile(r"([a-z])[\s\-.]+([0-9])")
_WHITESPACE_RE = re.compile(r"\s+")
_MODEL_CODE_RE = re.compile(r"\b[a-z]+[0-9]+\b")


def normalize_text(text) -> str:
    """
    Canonicalize free text for matching.

    Total: ``None``, non-strings and blank strings all return ``""``.
    Idempotent: ``normalize_text(normalize_text(x)) == normalize_text(x)``.

    :param text: Raw text (query, title, brand, model, alias, passage)
    :return: Normalized text
    """
    if not text or not isinstance(text, str):
        return ""

    normalized = text.lower()

    for source, target in TRANSLITERATIONS:
        normalized = normalized.replace(source, target)

    normalized = _SEPARATOR_RE.sub(r"\1\2", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized)

    return normalized.strip()


def is_normalized(text: str) -> bool:
    """Check whether text is already in normalized form."""
    return normalize_text(text) == text


def extract_model_codes(text: str) -> List[str]:
    """
    Extract model-code tokens (letters followed by digits, e.g. ``g3``).

    :param text: Raw or normalized text
    :return: Model codes in order of appearance
    """
    return _MODEL_CODE_RE.findall(normalize_text(text))


def is_model_query(text: str) -> bool:
    """Check whether the text names at least one model code."""
    return bool(extract_model_codes(text))


def normalization_digest(text: str) -> str:
    """
    Short stable digest of the normalized form.

    Used when comparing normalization output across processes or stored
    snapshots without shipping the text itself.
    """
    return hashlib.sha1(normalize_text(text).encode("utf-8")).hexdigest()[:8]
