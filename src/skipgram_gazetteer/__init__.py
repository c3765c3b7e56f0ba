"""Skip-gram gazetteer: recognize multi-word vocabulary entries and their variants."""

from .common.config import GazetteerConfig, load_config
from .common.errors import (
    CacheDirectoryError,
    EntryFormatError,
    GazetteerError,
    IdentifierError,
    SourceError,
)
from .model import BuildStats, SkipGramGazetteerModel, TreeGazetteerModel
from .tree import TokenTree
from .variants import VariantOptions, generate_variants

__all__ = [
    "BuildStats",
    "CacheDirectoryError",
    "EntryFormatError",
    "GazetteerConfig",
    "GazetteerError",
    "IdentifierError",
    "SkipGramGazetteerModel",
    "SourceError",
    "TokenTree",
    "TreeGazetteerModel",
    "VariantOptions",
    "generate_variants",
    "load_config",
]
