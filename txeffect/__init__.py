"""
txeffect: Functional consequences of genomic variants on transcripts.
"""

__version__ = "0.1.0"

from .core.models import TranscriptModel, TranscriptModelBuilder, Variant
from .core.catalog import TranscriptCatalog, load_catalog
from .mapping.mapper import CoordinateMapper, LocationKind, MappedPosition
from .annotation.variant_type import VariantType
from .annotation.annotation import Annotation
from .annotation.annotation_list import AnnotationList
from .annotation.classifier import VariantTypeClassifier
from .annotation.annotator import VariantAnnotator, parse_chromosomal_change
from .config import AnnotationConfig, load_config

__all__ = [
    "TranscriptModel",
    "TranscriptModelBuilder",
    "Variant",
    "TranscriptCatalog",
    "load_catalog",
    "CoordinateMapper",
    "LocationKind",
    "MappedPosition",
    "VariantType",
    "Annotation",
    "AnnotationList",
    "VariantTypeClassifier",
    "VariantAnnotator",
    "parse_chromosomal_change",
    "AnnotationConfig",
    "load_config",
]
