import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2] / "src"))

from skipgram_gazetteer import cli  # noqa: E402


@pytest.fixture()
def taxa_file(tmp_path: Path) -> Path:
    path = tmp_path / "taxa.tsv"
    path.write_text(
        "Quercus robur subsp petraea\thttps://taxa.org/1\n"
        "Quercus robur\thttps://taxa.org/2\n"
        "Fuchs\thttps://taxa.org/3\n",
        encoding="utf-8",
    )
    return path


def test_build_prints_summary_and_writes_json(taxa_file, tmp_path, capsys):
    summary_path = tmp_path / "out" / "summary.json"
    code = cli.main(["build", str(taxa_file), "--tree", "--summary-json", str(summary_path)])

    assert code == 0
    out = capsys.readouterr().out
    assert "TreeGazetteerModel" in out
    payload = json.loads(summary_path.read_text(encoding="utf-8"))
    assert payload["entries"] == 3
    assert payload["nodes"] > 0


def test_lookup_prints_entry_and_identifiers(taxa_file, capsys):
    code = cli.main(
        ["lookup", str(taxa_file), "--variant", "Quercus robur petraea", "--variant", "unknown"]
    )
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Quercus robur petraea\tQuercus robur subsp petraea\thttps://taxa.org/1"
    assert lines[1] == "unknown\t-\t"


def test_export_writes_ordered_tsv(taxa_file, tmp_path):
    out_path = tmp_path / "vocabulary.tsv"
    code = cli.main(["export", str(taxa_file), "--out", str(out_path), "--abbreviate"])
    assert code == 0
    rows = [line.split("\t") for line in out_path.read_text(encoding="utf-8").splitlines()]
    lengths = [len(row[0]) for row in rows]
    assert lengths == sorted(lengths, reverse=True)
    assert ["Q. robur", "Quercus robur", "https://taxa.org/2"] in rows


def test_config_file_is_merged_with_flags(taxa_file, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"min_variant_length": 6, "language": "en"}), encoding="utf-8")
    parser = cli._build_parser()
    args = parser.parse_args(["build", str(taxa_file), "--config", str(config_path), "--all-skips"])
    config = cli._config_from_args(args)
    assert config.min_variant_length == 6
    assert config.language == "en"
    assert config.all_skips is True
    assert config.split_hyphen is True


def test_missing_source_returns_error_code(tmp_path):
    assert cli.main(["build", str(tmp_path / "missing.tsv")]) == 2


def test_invalid_option_returns_error_code(taxa_file):
    assert cli.main(["build", str(taxa_file), "--token-boundary", "\\s*"]) == 2
