"""Entry store: parse ``<name><TAB><identifiers>`` sources into an entry map.

Names are normalized before they become keys, and a name that appears more
than once (in one source or across several) gets the union of all its
identifier sets. The number of such merges is reported, never raised.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Optional, Sequence, Set, Tuple

from skipgram_gazetteer.common.errors import EntryFormatError, IdentifierError, SourceError
from skipgram_gazetteer.common.types import EntryUriMap

logger = logging.getLogger(__name__)

_IDENTIFIER_SPLIT_RE = re.compile(r"[ ,]")
_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# Characters RFC 3986 never allows unescaped in a URI reference.
_FORBIDDEN_URI_CHARS = frozenset('"<>\\^`{|}')

# Locales whose dotted/dotless i differs from the Unicode default mapping.
_TURKIC_LANGUAGES = frozenset({"tr", "az"})
_TURKIC_LOWER = str.maketrans({"I": "ı", "İ": "i"})


def lowercase_for_language(text: str, language: str) -> str:
    primary = language.split("-", 1)[0].lower()
    if primary in _TURKIC_LANGUAGES:
        text = text.translate(_TURKIC_LOWER)
    return text.lower()


def normalize_entry(raw: str, *, lowercase: bool = False, language: str = "de") -> str:
    """Strip everything but letters, hyphens and spaces, then trim.

    >>> normalize_entry("Quercus robur L. (1753)")
    'Quercus robur L'
    """
    kept = "".join(ch for ch in raw if ch.isalpha() or ch == "-" or ch == " ")
    entry = kept.strip()
    return lowercase_for_language(entry, language) if lowercase else entry


def validate_identifier(token: str) -> Optional[str]:
    """Return a reason string when ``token`` is not a URI reference, else ``None``."""

    for ch in token:
        if ch.isspace() or not ch.isprintable():
            return f"illegal character {ch!r}"
        if ch in _FORBIDDEN_URI_CHARS:
            return f"illegal character {ch!r}"
    if token.count("#") > 1:
        return "more than one fragment separator"
    if _PERCENT_RE.search(token):
        return "malformed percent escape"

    head = re.split(r"[/?#]", token, maxsplit=1)[0]
    if ":" in head:
        scheme, rest = token.split(":", 1)
        if not _SCHEME_RE.fullmatch(scheme):
            return f"invalid scheme {scheme!r}"
        if not rest:
            return "expected scheme-specific part"
    return None


def parse_identifiers(
    field_text: str,
    *,
    source: str | Path | None = None,
    line_no: int | None = None,
) -> frozenset[str]:
    """Split a comma- or space-separated identifier list and validate each token."""

    identifiers: Set[str] = set()
    for token in _IDENTIFIER_SPLIT_RE.split(field_text.strip()):
        if not token:
            continue
        reason = validate_identifier(token)
        if reason is not None:
            raise IdentifierError(token, reason, source=source, line_no=line_no)
        identifiers.add(token)
    if not identifiers:
        raise IdentifierError(field_text, "no identifiers given", source=source, line_no=line_no)
    return frozenset(identifiers)


@dataclass(frozen=True)
class EntryLoadResult:
    entries: EntryUriMap
    duplicates: int = 0
    sources: Tuple[Path, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.entries)


def merge_entry_maps(
    left: EntryUriMap,
    right: EntryUriMap,
) -> Tuple[Dict[str, frozenset[str]], int]:
    """Union two entry maps; returns the merged map and how many keys overlapped.

    Key order follows ``left`` and then the new keys of ``right``. The identifier
    sets do not depend on argument order.
    """

    merged: Dict[str, frozenset[str]] = dict(left)
    overlaps = 0
    for entry, identifiers in right.items():
        existing = merged.get(entry)
        if existing is None:
            merged[entry] = identifiers
        else:
            overlaps += 1
            merged[entry] = existing | identifiers
    return merged, overlaps


def parse_entry_lines(
    lines: Iterable[str],
    *,
    lowercase: bool = False,
    language: str = "de",
    source: str | Path | None = None,
) -> EntryLoadResult:
    """Parse the lines of one source into an :class:`EntryLoadResult`."""

    entries: Dict[str, frozenset[str]] = {}
    duplicates = 0
    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        if "\t" not in line:
            raise EntryFormatError(
                "Expected '<name><TAB><identifiers>'", source=source, line_no=line_no
            )
        raw_name, raw_ids = line.split("\t", 1)
        identifiers = parse_identifiers(raw_ids, source=source, line_no=line_no)
        entry = normalize_entry(raw_name, lowercase=lowercase, language=language)
        if not entry:
            logger.debug(
                "Skipping line with empty entry name",
                extra={"source": str(source), "line": line_no},
            )
            continue
        existing = entries.get(entry)
        if existing is None:
            entries[entry] = identifiers
        else:
            duplicates += 1
            entries[entry] = existing | identifiers
    return EntryLoadResult(entries=entries, duplicates=duplicates)


def load_entry_file(
    path: str | Path,
    *,
    lowercase: bool = False,
    language: str = "de",
) -> EntryLoadResult:
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            return parse_entry_lines(handle, lowercase=lowercase, language=language, source=source)
    except UnicodeDecodeError as exc:
        raise SourceError(f"Source '{source}' is not valid UTF-8: {exc}", location=source) from exc
    except OSError as exc:
        raise SourceError(f"Could not read source '{source}': {exc}", location=source) from exc


def load_entry_map(
    sources: Sequence[str | Path],
    *,
    lowercase: bool = False,
    language: str = "de",
) -> EntryLoadResult:
    """Load and union-merge every source, in order."""

    paths = tuple(Path(source) for source in sources)
    logger.info(f"Loading entries from {len(paths)} files..")

    entries: Dict[str, frozenset[str]] = {}
    duplicates = 0
    for path in paths:
        loaded = load_entry_file(path, lowercase=lowercase, language=language)
        entries, overlaps = merge_entry_maps(entries, loaded.entries)
        duplicates += loaded.duplicates + overlaps

    logger.info(f"Loaded {len(entries)} entries from {len(paths)} files.")
    if duplicates > 0:
        logger.warning(f"Merged {duplicates} duplicate entries!")

    return EntryLoadResult(
        entries=MappingProxyType(entries),
        duplicates=duplicates,
        sources=paths,
    )


__all__ = [
    "EntryLoadResult",
    "load_entry_file",
    "load_entry_map",
    "lowercase_for_language",
    "merge_entry_maps",
    "normalize_entry",
    "parse_entry_lines",
    "parse_identifiers",
    "validate_identifier",
]
