import pathlib
import random
import sys

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from skipgram_gazetteer.lookup import find_contested_variants, resolve_variants  # noqa: E402
from skipgram_gazetteer.variants import VariantOptions, generate_variants  # noqa: E402
from skipgram_gazetteer.vocabulary import finalize_vocabulary  # noqa: E402


def test_shared_variant_is_dropped_but_entries_stay_resolvable():
    entry_variants = {
        "a b c": frozenset({"a b", "a c", "b c"}),
        "a x b": frozenset({"a x", "a b", "x b"}),
    }
    result = resolve_variants(entry_variants)

    assert "a b" not in result.lookup
    assert result.lookup["a b c"] == "a b c"
    assert result.lookup["a x b"] == "a x b"
    assert result.lookup["a c"] == "a b c"
    assert result.lookup["x b"] == "a x b"
    assert result.ambiguous == 1


def test_three_way_collision_is_still_dropped():
    entry_variants = {
        "e1": frozenset({"shared"}),
        "e2": frozenset({"shared"}),
        "e3": frozenset({"shared"}),
    }
    assert find_contested_variants(entry_variants) == {"shared"}
    assert "shared" not in resolve_variants(entry_variants).lookup


def test_entry_self_mapping_overrides_ambiguity():
    # "a b" is an entry in its own right and also a skip-gram of two others.
    entry_variants = {
        "a b": frozenset({"a b"}),
        "a b c": frozenset({"a b", "a c", "b c"}),
        "a b d": frozenset({"a b", "a d", "b d"}),
    }
    result = resolve_variants(entry_variants)
    assert result.lookup["a b"] == "a b"
    assert result.lookup["a b c"] == "a b c"


def test_explicit_entries_are_forced_even_without_variants():
    result = resolve_variants({"a b c": frozenset({"a b"})}, entries=["a b c", "lonely"])
    assert result.lookup["lonely"] == "lonely"


def test_lookup_is_bijective():
    options = VariantOptions(all_skips=True, add_abbreviated=True)
    entries = [
        "Quercus robur subsp petraea",
        "Quercus petraea subsp robur",
        "Quercus robur",
        "Abies alba var pyramidalis",
    ]
    entry_variants = {entry: frozenset(generate_variants(entry, options)) for entry in entries}
    lookup = resolve_variants(entry_variants).lookup

    for variant, entry in lookup.items():
        owners = {e for e, variants in entry_variants.items() if variant in variants}
        assert owners == {entry} or variant == entry


def test_resolution_does_not_depend_on_arrival_order():
    options = VariantOptions(all_skips=True, add_abbreviated=True)
    entries = [
        "Quercus robur subsp petraea",
        "Quercus petraea subsp robur",
        "Quercus robur",
        "Picea abies subsp obovata",
        "Abies alba",
    ]
    baseline = {entry: frozenset(generate_variants(entry, options)) for entry in entries}
    expected = resolve_variants(baseline)

    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(entries)
        rng.shuffle(shuffled)
        reordered = {entry: baseline[entry] for entry in shuffled}
        result = resolve_variants(reordered)
        assert dict(result.lookup) == dict(expected.lookup)
        assert result.ambiguous == expected.ambiguous
        assert set(finalize_vocabulary(result.lookup)) == set(finalize_vocabulary(expected.lookup))
