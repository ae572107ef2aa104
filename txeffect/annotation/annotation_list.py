"""
Per-variant collection of annotations across all nearby transcripts.
"""

import logging
from functools import cmp_to_key
from typing import Iterator, List

from txeffect.annotation.annotation import Annotation, compare_annotations
from txeffect.annotation.variant_type import VariantType

logger = logging.getLogger(__name__)


class AnnotationList:
    """
    Collects the annotations of one variant, dropping duplicates.

    A list is created for one variant, filled by repeated ``insert`` calls and
    read through ``ranked_view``/``best``. Once the ranked view has been handed
    out the list is frozen.
    """

    def __init__(self):
        self._annotations: List[Annotation] = []
        self._frozen = False

    def insert(self, annotation: Annotation) -> bool:
        """
        Add an annotation unless an equal one is already held.

        Returns:
            True if the annotation was added, False for a duplicate
        """
        if self._frozen:
            raise RuntimeError("AnnotationList is read-only once its ranked view was requested")
        if annotation in self._annotations:
            logger.debug(f"Skipping duplicate annotation {annotation.symbol_and_annotation}")
            return False
        self._annotations.append(annotation)
        return True

    def ranked_view(self) -> List[Annotation]:
        """All annotations, most severe first; ties keep insertion order."""
        self._frozen = True
        return sorted(self._annotations, key=cmp_to_key(compare_annotations))

    def best(self) -> Annotation:
        """The most severe annotation; an UNKNOWN placeholder if the list is empty."""
        ranked = self.ranked_view()
        if not ranked:
            return Annotation.unknown()
        return ranked[0]

    @property
    def highest_impact_type(self) -> VariantType:
        return self.best().variant_type

    @property
    def genes(self) -> List[str]:
        """Gene symbols in ranked order, each listed once."""
        symbols: List[str] = []
        for annotation in self.ranked_view():
            if annotation.gene_symbol and annotation.gene_symbol not in symbols:
                symbols.append(annotation.gene_symbol)
        return symbols

    def summary(self, show_all: bool = False) -> str:
        """The best annotation, or all of them comma-separated when ``show_all`` is set."""
        if not show_all:
            return self.best().symbol_and_annotation
        ranked = self.ranked_view() or [self.best()]
        return ",".join(a.symbol_and_annotation for a in ranked)

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self._annotations)

    def __bool__(self) -> bool:
        return bool(self._annotations)
