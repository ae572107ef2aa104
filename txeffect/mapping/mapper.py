"""
Genomic-to-transcript coordinate mapping.

This module locates a variant relative to one transcript model: which exon
or intron holds its first base in transcript orientation, its offsets along
the spliced transcript and the coding sequence, and how far it sits from the
nearest exon/intron boundary.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from txeffect.config import AnnotationConfig
from txeffect.core.errors import CoordinateInconsistencyError
from txeffect.core.models import TranscriptModel, Variant

logger = logging.getLogger(__name__)


class LocationKind(Enum):
    """Where a variant's anchor base falls relative to a transcript."""
    EXONIC = "exonic"           # Exon within the CDS, or any exon of a non-coding transcript
    INTRONIC = "intronic"
    UTR5 = "utr5"
    UTR3 = "utr3"
    UPSTREAM = "upstream"       # 5' of the transcription start, within the flank
    DOWNSTREAM = "downstream"   # 3' of the transcription end, within the flank


@dataclass(frozen=True)
class MappedPosition:
    """Result of mapping one variant onto one transcript."""
    location: Optional[LocationKind]
    exon_index: Optional[int] = None        # genomic order; for introns, the exon 5' (genomically) of it
    exon_number: Optional[int] = None       # 1-based from the transcript 5' end (intron number if intronic)
    cdna_offset: Optional[int] = None
    cds_offset: Optional[int] = None
    boundary_distance: Optional[int] = None
    nearest_exon_pos: Optional[int] = None  # genomic position of the closest exonic base, intronic only
    crosses_boundary: bool = False
    crosses_cds_boundary: bool = False
    inconsistency: Optional[str] = None

    @property
    def is_failure(self) -> bool:
        return self.inconsistency is not None


class CoordinateMapper:
    """
    Maps variants onto transcript models.

    Variants are expected to be normalized (see ``Variant.normalized``) and to
    overlap the transcript or lie within the flank distance of it. A variant
    further away maps to None; callers report those as intergenic.
    """

    def __init__(self, flank_distance: int = AnnotationConfig.flank_distance):
        """
        Initialize the CoordinateMapper.

        Args:
            flank_distance: Bases beyond the transcription bounds still reported
                as upstream/downstream
        """
        self.flank_distance = flank_distance

    def map(self, variant: Variant, transcript: TranscriptModel) -> Optional[MappedPosition]:
        """
        Map a variant onto a transcript.

        Args:
            variant: Normalized variant
            transcript: The transcript model

        Returns:
            The mapped position, or None if the variant lies beyond the flank.
            Inconsistent geometry is reported through ``inconsistency``.
        """
        try:
            return self._map(variant, transcript)
        except CoordinateInconsistencyError as e:
            logger.debug(f"Mapping {variant} onto {transcript.accession} failed: {e}")
            return MappedPosition(location=None, inconsistency=str(e))

    def _map(self, variant: Variant, tm: TranscriptModel) -> Optional[MappedPosition]:
        pos = self.anchor_position(variant, tm)

        if pos < tm.tx_start or pos > tm.tx_end:
            distance = tm.tx_start - pos if pos < tm.tx_start else pos - tm.tx_end
            if distance > self.flank_distance:
                return None
            before = pos < tm.tx_start
            location = LocationKind.UPSTREAM if before == tm.is_forward else LocationKind.DOWNSTREAM
            return MappedPosition(location=location, boundary_distance=distance)

        crosses = self._crosses_exon_boundary(variant, tm)
        crosses_cds = self._crosses_cds_boundary(variant, tm)

        exon_idx = tm.find_exon(pos)
        if exon_idx is not None:
            cdna = tm.cdna_offset(pos)
            cds = None
            if not tm.is_coding or tm.in_cds(pos):
                location = LocationKind.EXONIC
                if tm.is_coding:
                    cds = tm.cds_offset(pos)
            elif (pos < tm.cds_start) == tm.is_forward:
                location = LocationKind.UTR5
            else:
                location = LocationKind.UTR3
            return MappedPosition(
                location=location,
                exon_index=exon_idx,
                exon_number=tm.exon_number(exon_idx),
                cdna_offset=cdna,
                cds_offset=cds,
                boundary_distance=self._exon_edge_distance(pos, exon_idx, tm),
                crosses_boundary=crosses,
                crosses_cds_boundary=crosses_cds,
            )

        intron_idx = tm.find_intron(pos)
        if intron_idx is None:
            raise CoordinateInconsistencyError(
                f"{tm.accession}: position {pos} is inside the transcript but neither exonic nor intronic")

        left_end = tm.exons[intron_idx][1]
        right_start = tm.exons[intron_idx + 1][0]
        # An insertion occupies no reference base; measure from its anchor
        first, last = (pos, pos) if variant.is_insertion else (variant.pos, variant.end)
        to_left, to_right = max(first - left_end, 0), max(right_start - last, 0)
        if to_left < to_right or (to_left == to_right and tm.is_forward):
            distance, nearest = to_left, left_end
        else:
            distance, nearest = to_right, right_start
        intron_number = intron_idx + 1 if tm.is_forward else tm.exon_count - 1 - intron_idx
        return MappedPosition(
            location=LocationKind.INTRONIC,
            exon_index=intron_idx,
            exon_number=intron_number,
            boundary_distance=distance,
            nearest_exon_pos=nearest,
            crosses_boundary=crosses,
            crosses_cds_boundary=crosses_cds,
        )

    @staticmethod
    def anchor_position(variant: Variant, tm: TranscriptModel) -> int:
        """
        Genomic position of the base a variant is classified by.

        This is the variant's first base in transcript orientation, so that a
        change and its mirror on the other strand land on the same transcript
        offset. An insertion is anchored on the base 3' of it in transcript
        orientation: ``pos`` on the forward strand, ``pos - 1`` on the reverse.
        """
        if variant.is_insertion:
            return variant.pos if tm.is_forward else variant.pos - 1
        return variant.pos if tm.is_forward else variant.end

    @staticmethod
    def _exon_edge_distance(pos: int, exon_idx: int, tm: TranscriptModel) -> Optional[int]:
        """Distance to the closest exon edge that faces an intron (0 on the edge base)."""
        start, end = tm.exons[exon_idx]
        distances = []
        if exon_idx > 0:
            distances.append(pos - start)
        if exon_idx < tm.exon_count - 1:
            distances.append(end - pos)
        return min(distances) if distances else None

    @staticmethod
    def _crosses_exon_boundary(variant: Variant, tm: TranscriptModel) -> bool:
        """True if the deleted/substituted span touches both sides of an internal exon/intron boundary."""
        if not variant.ref:
            return False
        first, last = variant.pos, variant.end
        for (_, left_end), (right_start, _) in zip(tm.exons, tm.exons[1:]):
            if first <= left_end < last:
                return True
            if first < right_start <= last:
                return True
        return False

    @staticmethod
    def _crosses_cds_boundary(variant: Variant, tm: TranscriptModel) -> bool:
        if not tm.is_coding or not variant.ref:
            return False
        first, last = variant.pos, variant.end
        return first < tm.cds_start <= last or first <= tm.cds_end < last
