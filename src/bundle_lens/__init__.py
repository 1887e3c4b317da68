"""Bundle Lens package."""

from .config import ClassifierConfig, EntrySelectionConfig, MatchingConfig
from .manifest.model import Manifest, parse_manifest

__all__ = [
    "ClassifierConfig",
    "EntrySelectionConfig",
    "Manifest",
    "MatchingConfig",
    "parse_manifest",
]
