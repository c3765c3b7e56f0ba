import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from skipgram_gazetteer.common.errors import (  # noqa: E402
    EntryFormatError,
    IdentifierError,
    SourceError,
)
from skipgram_gazetteer.entries import (  # noqa: E402
    load_entry_map,
    merge_entry_maps,
    normalize_entry,
    parse_entry_lines,
    parse_identifiers,
)


def _write(path: pathlib.Path, *lines: str) -> pathlib.Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_normalize_entry_strips_non_letters_and_trims():
    assert normalize_entry("  Quercus robur L. (1753) ") == "Quercus robur L"
    assert normalize_entry("Abies-alba × 2") == "Abies-alba"
    assert normalize_entry("Ranunculus acris s.l.", lowercase=True) == "ranunculus acris sl"


def test_normalize_entry_keeps_unicode_letters():
    assert normalize_entry("Fußblatt Ähre") == "Fußblatt Ähre"


def test_lowercase_follows_turkic_locale():
    assert normalize_entry("Iğdır", lowercase=True, language="tr") == "ığdır"
    assert normalize_entry("Iris", lowercase=True, language="de") == "iris"


def test_parse_identifiers_accepts_comma_and_space_separators():
    ids = parse_identifiers("https://a.org/1,https://a.org/2 urn:lsid:x:3")
    assert ids == {"https://a.org/1", "https://a.org/2", "urn:lsid:x:3"}


def test_parse_identifiers_skips_empty_tokens():
    assert parse_identifiers("https://a.org/1, https://a.org/2") == {
        "https://a.org/1",
        "https://a.org/2",
    }


@pytest.mark.parametrize("field", ["http://a.org/<x>", "1http://a.org", "http:", "x%zz", "  ,  "])
def test_parse_identifiers_rejects_malformed_tokens(field):
    with pytest.raises(IdentifierError):
        parse_identifiers(field, source="taxa.tsv", line_no=4)


def test_parse_entry_lines_unions_repeated_entries():
    result = parse_entry_lines(
        [
            "Quercus robur\thttps://a.org/1",
            "",
            "   ",
            "Quercus robur.\thttps://a.org/2,https://a.org/1",
        ]
    )
    assert dict(result.entries) == {"Quercus robur": {"https://a.org/1", "https://a.org/2"}}
    assert result.duplicates == 1


def test_parse_entry_lines_requires_tab():
    with pytest.raises(EntryFormatError) as excinfo:
        parse_entry_lines(["Quercus robur https://a.org/1"], source="taxa.tsv")
    assert excinfo.value.line_no == 1
    assert "taxa.tsv" in str(excinfo.value)


def test_merge_entry_maps_is_commutative_on_identifiers():
    left = {"a b": frozenset({"u:1"}), "c": frozenset({"u:2"})}
    right = {"a b": frozenset({"u:3"}), "d": frozenset({"u:4"})}
    ab, overlaps_ab = merge_entry_maps(left, right)
    ba, overlaps_ba = merge_entry_maps(right, left)
    assert ab == ba
    assert overlaps_ab == overlaps_ba == 1
    assert ab["a b"] == {"u:1", "u:3"}


def test_load_entry_map_merges_across_sources(tmp_path):
    first = _write(tmp_path / "one.tsv", "Quercus robur\thttps://a.org/1", "Fuchs\thttps://a.org/9")
    second = _write(tmp_path / "two.tsv", "Quercus robur\thttps://b.org/1 https://a.org/1")

    result = load_entry_map([first, second])

    assert list(result.entries) == ["Quercus robur", "Fuchs"]
    assert result.entries["Quercus robur"] == {"https://a.org/1", "https://b.org/1"}
    assert result.duplicates == 1
    assert result.sources == (first, second)


def test_load_entry_map_is_fatal_on_bad_identifier(tmp_path):
    good = _write(tmp_path / "good.tsv", "Fuchs\thttps://a.org/9")
    bad = _write(tmp_path / "bad.tsv", "Quercus robur\thttps://a.org/{1}")
    with pytest.raises(IdentifierError) as excinfo:
        load_entry_map([good, bad])
    assert excinfo.value.source == str(bad)
    assert excinfo.value.token == "https://a.org/{1}"


def test_load_entry_map_missing_file_is_source_error(tmp_path):
    with pytest.raises(SourceError):
        load_entry_map([tmp_path / "missing.tsv"])
