"""Command line interface for building and querying skip-gram gazetteers."""
from __future__ import annotations

import argparse
import csv
import json
import logging
import os
import sys
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Callable

from .common.config import GazetteerConfig, load_config, load_stoplist
from .common.errors import GazetteerError
from .model import SkipGramGazetteerModel, TreeGazetteerModel

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _atomic_write(path: Path, write_fn: Callable[[Any], None], *, newline: str | None = "\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile(mode="w", delete=False, dir=str(path.parent), encoding="utf-8", newline=newline) as tmp:
        write_fn(tmp)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def _write_json(path: Path, payload: dict[str, object]) -> None:
    def writer(tmp: Any) -> None:
        json.dump(payload, tmp, indent=2, ensure_ascii=False)
        tmp.write("\n")

    _atomic_write(path, writer)


def _config_from_args(args: argparse.Namespace) -> GazetteerConfig:
    overrides: dict[str, Any] = {
        "use_lowercase": args.lowercase,
        "language": args.language,
        "min_variant_length": args.min_length,
        "all_skips": args.all_skips,
        "split_hyphen": args.split_hyphen,
        "add_abbreviated_entries": args.abbreviate,
        "min_word_count_for_variants": args.min_word_count,
        "token_boundary_pattern": args.token_boundary,
        "max_combinations_per_entry": args.max_combinations,
        "max_workers": args.workers,
        "show_progress": args.progress,
    }
    if args.stoplist:
        overrides["stoplist"] = load_stoplist(args.stoplist)
    if args.config:
        return load_config(args.config, **overrides)
    return GazetteerConfig(**{key: value for key, value in overrides.items() if value is not None})


def _run_build(args: argparse.Namespace) -> None:
    model_cls = TreeGazetteerModel if args.tree else SkipGramGazetteerModel
    model = model_cls.build(args.sources, args.gazetteer_config)
    stats = model.stats

    summary = (
        f"Built {model_cls.__name__}: {stats.entries} entries, {stats.vocabulary} skip-grams "
        f"({stats.ambiguous} ambiguous dropped, {stats.duplicates} duplicates merged)"
    )
    if stats.nodes is not None:
        summary += f", {stats.nodes} tree nodes"
    print(summary + f" in {stats.elapsed_ms:.0f}ms")

    if args.summary_json:
        _write_json(Path(args.summary_json), stats.to_dict())
        logger.info("Wrote build summary", extra={"path": args.summary_json})


def _run_lookup(args: argparse.Namespace) -> None:
    model = SkipGramGazetteerModel.build(args.sources, args.gazetteer_config)
    for variant in args.variant:
        entry = model.entry_for_variant(variant)
        identifiers = ",".join(sorted(model.identifiers_for_variant(variant)))
        print(f"{variant}\t{entry if entry is not None else '-'}\t{identifiers}")


def _run_export(args: argparse.Namespace) -> None:
    model = SkipGramGazetteerModel.build(args.sources, args.gazetteer_config)
    out_path = Path(args.out)

    def writer(tmp: Any) -> None:
        tsv = csv.writer(tmp, delimiter="\t", lineterminator="\n")
        for variant in model.all_variants_ordered():
            entry = model.entry_for_variant(variant)
            tsv.writerow([variant, entry, ",".join(sorted(model.identifiers_for_variant(variant)))])

    _atomic_write(out_path, writer, newline="")
    print(f"Exported {len(model)} skip-grams to {out_path}")


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("sources", nargs="+", help="Entry files, directories, zip archives or URLs")
    parser.add_argument("--config", default=None, help="JSON file with gazetteer options")
    parser.add_argument("--lowercase", action="store_true", default=None, help="Lowercase entries")
    parser.add_argument("--language", default=None, help="Language tag used for lowercasing")
    parser.add_argument("--min-length", type=float, default=None, help="Minimum skip-gram length")
    parser.add_argument("--all-skips", action="store_true", default=None, help="Enumerate all skip sizes")
    parser.add_argument(
        "--no-split-hyphen",
        dest="split_hyphen",
        action="store_false",
        default=None,
        help="Keep hyphenated words together",
    )
    parser.add_argument(
        "--abbreviate", action="store_true", default=None, help="Add entries with the first word abbreviated"
    )
    parser.add_argument("--min-word-count", type=int, default=None, help="Word count from which skip-grams are built")
    parser.add_argument("--token-boundary", default=None, help="Regex separating tree tokens")
    parser.add_argument("--stoplist", default=None, help="File with one stop word per line")
    parser.add_argument(
        "--max-combinations", type=int, default=None, help="Upper bound on combinations per entry"
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker count for parallel stages")
    parser.add_argument("--progress", action="store_true", default=None, help="Show progress bars")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skipgram-gazetteer", description=__doc__)
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build a model and print its statistics")
    _add_build_options(build)
    build.add_argument("--tree", action="store_true", help="Also build the token tree")
    build.add_argument("--summary-json", default=None, help="Write build statistics to this path")
    build.set_defaults(handler=_run_build)

    lookup = subparsers.add_parser("lookup", help="Resolve variants to entries and identifiers")
    _add_build_options(lookup)
    lookup.add_argument("--variant", action="append", required=True, help="Variant to resolve")
    lookup.set_defaults(handler=_run_lookup)

    export = subparsers.add_parser("export", help="Write the ordered vocabulary as TSV")
    _add_build_options(export)
    export.add_argument("--out", required=True, help="Output TSV path")
    export.set_defaults(handler=_run_export)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - delegated to argparse
        return exc.code

    _configure_logging(args.verbose)

    try:
        args.gazetteer_config = _config_from_args(args)
        args.handler(args)
    except (GazetteerError, OSError, ValueError) as error:
        logger.error(f"Command failed. Reason: {str(error)}", exc_info=False, extra={"error": str(error)})
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
