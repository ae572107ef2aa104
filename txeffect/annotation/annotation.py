"""
The annotation value for one (variant, transcript) pair and its ranking.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from txeffect.annotation.variant_type import VariantType
from txeffect.core.models import TranscriptModel


@dataclass(frozen=True, eq=False)
class Annotation:
    """
    A single annotation: consequence kind, gene and change descriptor.

    ``annotation`` never includes the gene symbol; for the complete string
    ``KIAA1751(uc001aim.1:exon18:c.T2287C:p.X763Q)`` it holds only the part in
    parentheses. ``position`` is the CDS (or cDNA) offset used to order
    annotations of the same rank and takes no part in equality, so equivalent
    calls from different isoforms of one gene compare equal.
    """
    variant_type: VariantType
    annotation: str
    gene_symbol: Optional[str] = None
    gene_id: Optional[str] = None
    position: Optional[int] = None

    @classmethod
    def for_transcript(cls, transcript: TranscriptModel, annotation: str,
                       variant_type: VariantType, position: Optional[int] = None) -> 'Annotation':
        return cls(
            variant_type=variant_type,
            annotation=annotation,
            gene_symbol=transcript.gene_symbol,
            gene_id=transcript.gene_id,
            position=position,
        )

    @classmethod
    def intergenic(cls, annotation: str) -> 'Annotation':
        """Annotation for a variant with no transcript nearby; carries no gene."""
        return cls(variant_type=VariantType.INTERGENIC, annotation=annotation)

    @classmethod
    def unknown(cls) -> 'Annotation':
        return cls(variant_type=VariantType.UNKNOWN, annotation="NONE")

    @property
    def symbol_and_annotation(self) -> str:
        """``SYMBOL(annotation)``, or the bare annotation when there is no symbol."""
        if self.gene_symbol is None:
            return self.annotation
        return f"{self.gene_symbol}({self.annotation})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Annotation):
            return NotImplemented
        return (self.variant_type == other.variant_type
                and self.gene_symbol == other.gene_symbol
                and self.annotation == other.annotation)

    def __hash__(self) -> int:
        return hash((self.variant_type, self.gene_symbol, self.annotation))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'variant_type': self.variant_type.value,
            'annotation': self.annotation,
            'gene_symbol': self.gene_symbol,
            'gene_id': self.gene_id,
            'position': self.position,
        }


def compare_annotations(a: Annotation, b: Annotation) -> int:
    """
    Order two annotations: priority rank first, then position.

    A missing position counts as 0, which keeps the order total; with a
    stable sort, remaining ties keep their insertion order.
    """
    rank_a, rank_b = a.variant_type.priority, b.variant_type.priority
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    pos_a, pos_b = a.position or 0, b.position or 0
    if pos_a != pos_b:
        return -1 if pos_a < pos_b else 1
    return 0
