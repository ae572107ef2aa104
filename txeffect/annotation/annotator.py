"""
Per-variant annotation driver.

Picks the transcripts near a variant, maps and classifies it against each,
and aggregates the results into an ``AnnotationList``. Variants are
independent, so batches are spread over a thread pool; workers share only
read-only state (catalog, sequence provider, configuration).
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional

from tqdm import tqdm

from txeffect.annotation.annotation import Annotation
from txeffect.annotation.annotation_list import AnnotationList
from txeffect.annotation.classifier import VariantTypeClassifier
from txeffect.annotation.variant_type import VariantType
from txeffect.config import AnnotationConfig
from txeffect.core.catalog import TranscriptCatalog
from txeffect.core.io import SequenceProvider
from txeffect.core.models import Variant
from txeffect.mapping.mapper import CoordinateMapper

logger = logging.getLogger(__name__)

CHANGE_PATTERN = re.compile(r'^(?P<chrom>[^:\s]+):(?P<pos>\d+)(?P<ref>[ACGTNacgtn-]*)>(?P<alt>[ACGTNacgtn-]*)$')


def parse_chromosomal_change(change: str) -> Variant:
    """
    Parse a change such as ``chr1:12345C>A`` (``-`` marks an empty allele).

    Raises:
        ValueError: if the string is not in ``chrom:posREF>ALT`` form
    """
    match = CHANGE_PATTERN.match(change.strip())
    if not match:
        raise ValueError(f"Invalid chromosomal change '{change}', expected e.g. chr1:12345C>A")
    return Variant(match.group('chrom'), int(match.group('pos')), match.group('ref'), match.group('alt'))


class VariantAnnotator:
    """Annotates variants against every nearby transcript of a catalog."""

    def __init__(self, catalog: TranscriptCatalog,
                 sequence_provider: Optional[SequenceProvider] = None,
                 config: Optional[AnnotationConfig] = None):
        self.catalog = catalog
        self.config = config or AnnotationConfig()
        self.mapper = CoordinateMapper(flank_distance=self.config.flank_distance)
        self.classifier = VariantTypeClassifier(sequence_provider, splice_window=self.config.splice_window)

    def annotate(self, variant: Variant) -> AnnotationList:
        """
        Annotate one variant.

        Returns:
            A fresh AnnotationList; it holds a single INTERGENIC annotation when
            no transcript lies within the flank distance
        """
        variant = variant.normalized()
        annotations = AnnotationList()
        candidates = self.catalog.nearby(variant.chromosome, variant.pos, self.config.flank_distance)
        for transcript in candidates:
            mapped = self.mapper.map(variant, transcript)
            if mapped is None:
                continue
            annotations.insert(self.classifier.classify(mapped, variant, transcript))

        if not annotations:
            annotations.insert(self.intergenic_annotation(variant))
        logger.debug(f"{variant}: {len(annotations)} annotations from {len(candidates)} transcripts")
        return annotations

    def intergenic_annotation(self, variant: Variant) -> Annotation:
        """``LEFT(dist=N),RIGHT(dist=M)`` naming the closest transcripts on either side."""
        left, right = self.catalog.flanking_genes(variant.chromosome, variant.pos)
        left_desc = f"{left.name}(dist={variant.pos - left.tx_end})" if left else "NONE(dist=NONE)"
        right_desc = f"{right.name}(dist={right.tx_start - variant.pos})" if right else "NONE(dist=NONE)"
        return Annotation.intergenic(f"{left_desc},{right_desc}")

    def annotate_all(self, variants: Iterable[Variant], workers: Optional[int] = None,
                     progress: bool = False) -> List[AnnotationList]:
        """
        Annotate a batch of variants in parallel.

        Args:
            variants: Variants to annotate
            workers: Thread count (defaults to the configured value)
            progress: Show a tqdm progress bar

        Returns:
            One AnnotationList per input variant, in input order
        """
        variants = list(variants)
        workers = workers or self.config.workers
        results: List[Optional[AnnotationList]] = [None] * len(variants)
        logger.info(f"Annotating {len(variants)} variants using {workers} workers")

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {executor.submit(self.annotate, v): i for i, v in enumerate(variants)}
            with tqdm(total=len(variants), desc="Annotating variants", unit=" variants",
                      disable=not progress) as pbar:
                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    try:
                        results[index] = future.result()
                    except Exception as e:
                        logger.error(f"Error annotating variant {variants[index]}: {e}")
                        failed = AnnotationList()
                        failed.insert(Annotation(VariantType.ERROR, f"{variants[index]}:{e}"))
                        results[index] = failed
                    pbar.update(1)

        return results
