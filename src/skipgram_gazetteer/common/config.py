from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from skipgram_gazetteer.variants import VariantOptions

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = "biofid-gazetteer"
CACHE_DIR_ENV = "GAZETTEER_CACHE_DIR"


def get_cache_paths() -> dict[str, Path]:
    """Return the candidate locations for downloaded and extracted sources."""

    paths: dict[str, Path] = {}
    override = os.getenv(CACHE_DIR_ENV)
    if override:
        paths["override"] = Path(override).expanduser().absolute()
    paths["cache"] = (Path.home() / ".cache" / CACHE_DIR_NAME).absolute()
    paths["temp"] = Path(tempfile.gettempdir()) / CACHE_DIR_NAME
    return paths


class GazetteerConfig(BaseModel):
    """Every option recognized by model construction."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    use_lowercase: bool = False
    language: str = "de"
    min_variant_length: float = Field(default=0, ge=0)
    all_skips: bool = False
    split_hyphen: bool = True
    add_abbreviated_entries: bool = False
    min_word_count_for_variants: int = Field(default=3, ge=1)
    token_boundary_pattern: str = r"\s+"
    stoplist: FrozenSet[str] = frozenset()
    # Opt-in bound on enumerated combinations per entry; None means unbounded.
    max_combinations_per_entry: Optional[int] = Field(default=None, ge=1)
    max_workers: Optional[int] = Field(default=None, ge=1)
    show_progress: bool = False

    @field_validator("language", mode="before")
    def normalize_language(cls, v: Any) -> str:
        tag = str(v or "").strip().replace("_", "-")
        return tag or "und"

    @field_validator("token_boundary_pattern", mode="after")
    def check_pattern(cls, v: str) -> str:
        try:
            compiled = re.compile(v)
        except re.error as exc:
            raise ValueError(f"Invalid token boundary pattern {v!r}: {exc}") from exc
        if compiled.fullmatch("") is not None:
            raise ValueError(f"Token boundary pattern {v!r} matches the empty string")
        return v

    @field_validator("stoplist", mode="before")
    def normalize_stoplist(cls, v: Any) -> FrozenSet[str]:
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(str(word).strip().lower() for word in v if str(word).strip())

    def variant_options(self) -> "VariantOptions":
        from skipgram_gazetteer.variants import VariantOptions

        return VariantOptions(
            split_hyphen=self.split_hyphen,
            all_skips=self.all_skips,
            min_word_count=self.min_word_count_for_variants,
            add_abbreviated=self.add_abbreviated_entries,
            max_combinations=self.max_combinations_per_entry,
        )


def load_config(path: str | Path, **overrides: Any) -> GazetteerConfig:
    """Read a JSON object of options into a :class:`GazetteerConfig`.

    Keyword overrides win over values from the file; ``None`` overrides are
    ignored so argparse defaults can be passed straight through.
    """

    config_path = Path(path)
    raw = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Config file '{config_path}' must contain a JSON object")
    raw.update({key: value for key, value in overrides.items() if value is not None})
    logger.debug("Loaded gazetteer config", extra={"path": str(config_path)})
    return GazetteerConfig(**raw)


def load_stoplist(path: str | Path) -> FrozenSet[str]:
    """Read one stop word per line; blank lines and ``#`` comments are ignored."""

    words = set()
    with Path(path).open("r", encoding="utf-8") as handle:
        for raw in handle:
            word = raw.strip()
            if word and not word.startswith("#"):
                words.add(word.lower())
    return frozenset(words)


__all__ = [
    "CACHE_DIR_ENV",
    "CACHE_DIR_NAME",
    "GazetteerConfig",
    "get_cache_paths",
    "load_config",
    "load_stoplist",
]
