"""
Variant-type classification on top of a mapped position.

Turns a ``MappedPosition`` plus the variant's alleles into one ``Annotation``.
Coding SNVs are translated with Biopython using the reference codon fetched
from a sequence provider.
"""

import logging
from typing import Optional, Tuple

from Bio.Seq import reverse_complement, translate

from txeffect.annotation.annotation import Annotation
from txeffect.annotation.variant_type import VariantType
from txeffect.config import AnnotationConfig
from txeffect.core.errors import CoordinateInconsistencyError, UnsupportedVariantShapeError
from txeffect.core.io import SequenceProvider
from txeffect.core.models import TranscriptModel, Variant
from txeffect.mapping.mapper import LocationKind, MappedPosition

logger = logging.getLogger(__name__)


class VariantTypeClassifier:
    """
    Classifies a variant against one transcript and builds its annotation.

    Classification never raises for a bad pairing: inconsistent coordinates or
    alleles it cannot interpret produce an ERROR annotation instead, so one
    broken transcript never stops the rest of a batch.
    """

    def __init__(self, sequence_provider: Optional[SequenceProvider] = None,
                 splice_window: int = AnnotationConfig.splice_window):
        """
        Initialize the VariantTypeClassifier.

        Args:
            sequence_provider: Source of reference CDS bases; needed for coding SNVs
            splice_window: Intronic bases next to an exon treated as splice-affecting
        """
        self.sequence_provider = sequence_provider
        self.splice_window = splice_window

    def classify(self, mapped: Optional[MappedPosition], variant: Variant,
                 transcript: TranscriptModel) -> Annotation:
        """
        Determine the variant kind and build the annotation.

        Args:
            mapped: Output of ``CoordinateMapper.map`` for this pair
            variant: Normalized variant
            transcript: The transcript the variant was mapped onto

        Returns:
            One fully populated annotation (ERROR kind on failure)
        """
        try:
            variant.check_shape()
            if mapped is None:
                raise CoordinateInconsistencyError("variant is not near the transcript")
            if mapped.is_failure:
                raise CoordinateInconsistencyError(mapped.inconsistency)
            return self._classify(mapped, variant, transcript)
        except (CoordinateInconsistencyError, UnsupportedVariantShapeError) as e:
            detail = str(e)
            if not detail.startswith(transcript.accession):
                detail = f"{transcript.accession}:{detail}"
            logger.warning(f"Reporting {variant} as ERROR: {detail}")
            return Annotation.for_transcript(transcript, detail, VariantType.ERROR)

    def _classify(self, mapped: MappedPosition, variant: Variant, tm: TranscriptModel) -> Annotation:
        location = mapped.location

        if self._in_splice_window(mapped):
            vtype = VariantType.SPLICING if tm.is_coding else VariantType.ncRNA_SPLICING
            return Annotation.for_transcript(
                tm, self._exon_descriptor(tm, mapped, variant), vtype, mapped.cds_offset)

        if location == LocationKind.INTRONIC:
            vtype = VariantType.INTRONIC if tm.is_coding else VariantType.ncRNA_INTRONIC
            return Annotation.for_transcript(tm, tm.name, vtype)

        if location == LocationKind.EXONIC and not tm.is_coding:
            return Annotation.for_transcript(
                tm, self._exon_descriptor(tm, mapped, variant),
                VariantType.ncRNA_EXONIC, mapped.cdna_offset)

        if location == LocationKind.EXONIC:
            if variant.is_snv:
                return self._classify_snv(mapped, variant, tm)
            return self._classify_indel(mapped, variant, tm)

        if location in (LocationKind.UTR5, LocationKind.UTR3):
            if mapped.crosses_cds_boundary:
                vtype = VariantType.UTR53
            elif location == LocationKind.UTR5:
                vtype = VariantType.UTR5
            else:
                vtype = VariantType.UTR3
            return Annotation.for_transcript(
                tm, f"{tm.accession}:c.{self._describe_change(tm, variant)}",
                vtype, mapped.cdna_offset)

        if location == LocationKind.UPSTREAM:
            return Annotation.for_transcript(tm, tm.name, VariantType.UPSTREAM)
        if location == LocationKind.DOWNSTREAM:
            return Annotation.for_transcript(tm, tm.name, VariantType.DOWNSTREAM)

        raise CoordinateInconsistencyError(f"unhandled location {location}")

    def _in_splice_window(self, mapped: MappedPosition) -> bool:
        if mapped.crosses_boundary:
            return True
        return (mapped.location == LocationKind.INTRONIC
                and mapped.boundary_distance is not None
                and mapped.boundary_distance <= self.splice_window)

    def _classify_snv(self, mapped: MappedPosition, variant: Variant, tm: TranscriptModel) -> Annotation:
        if self.sequence_provider is None:
            raise CoordinateInconsistencyError("no reference sequence available for codon lookup")

        cds = mapped.cds_offset
        codon_index, frame = divmod(cds, 3)
        codon = self.sequence_provider.get_cds_bases(tm.accession, codon_index * 3, codon_index * 3 + 3).upper()
        if len(codon) != 3:
            raise CoordinateInconsistencyError(
                f"incomplete codon {codon_index + 1} ({codon!r}) for CDS offset {cds}")

        ref, alt = self._oriented_alleles(tm, variant)
        if codon[frame] != ref:
            raise CoordinateInconsistencyError(
                f"reference base {ref} does not match codon {codon} at CDS offset {cds}")
        mutant = codon[:frame] + alt + codon[frame + 1:]

        ref_aa, alt_aa = translate(codon), translate(mutant)
        if ref_aa == alt_aa:
            vtype = VariantType.SYNONYMOUS
        elif alt_aa == '*':
            vtype = VariantType.STOPGAIN
        elif ref_aa == '*':
            vtype = VariantType.STOPLOSS
        else:
            vtype = VariantType.NONSYNONYMOUS

        annotation = (f"{tm.accession}:exon{mapped.exon_number}:c.{ref}{cds + 1}{alt}"
                      f":p.{ref_aa}{codon_index + 1}{alt_aa}")
        return Annotation.for_transcript(tm, annotation, vtype, cds)

    def _classify_indel(self, mapped: MappedPosition, variant: Variant, tm: TranscriptModel) -> Annotation:
        frameshift = abs(len(variant.alt) - len(variant.ref)) % 3 != 0
        if variant.is_insertion:
            vtype = VariantType.FS_INSERTION if frameshift else VariantType.NON_FS_INSERTION
        elif variant.is_deletion:
            vtype = VariantType.FS_DELETION if frameshift else VariantType.NON_FS_DELETION
        elif variant.ref and variant.alt:
            vtype = VariantType.FS_SUBSTITUTION if frameshift else VariantType.NON_FS_SUBSTITUTION
        else:
            raise UnsupportedVariantShapeError(f"cannot interpret alleles of {variant}")
        return Annotation.for_transcript(
            tm, self._exon_descriptor(tm, mapped, variant), vtype, mapped.cds_offset)

    def _exon_descriptor(self, tm: TranscriptModel, mapped: MappedPosition, variant: Variant) -> str:
        prefix = 'c' if tm.is_coding else 'n'
        segment = 'intron' if mapped.location == LocationKind.INTRONIC else 'exon'
        return (f"{tm.accession}:{segment}{mapped.exon_number}:"
                f"{prefix}.{self._describe_change(tm, variant)}")

    @staticmethod
    def _oriented_alleles(tm: TranscriptModel, variant: Variant) -> Tuple[str, str]:
        if tm.is_forward:
            return variant.ref, variant.alt
        return reverse_complement(variant.ref), reverse_complement(variant.alt)

    def _describe_change(self, tm: TranscriptModel, variant: Variant) -> str:
        """Change descriptor in transcript coordinates, e.g. ``123A>G`` or ``45_47del``."""
        ref, alt = self._oriented_alleles(tm, variant)
        if variant.is_insertion:
            left, right = variant.pos - 1, variant.pos
        else:
            left, right = variant.pos, variant.end
        if not tm.is_forward:
            left, right = right, left
        first, last = position_label(tm, left), position_label(tm, right)

        if variant.is_insertion:
            return f"{first}_{last}ins{alt}"
        span = first if first == last else f"{first}_{last}"
        if variant.is_deletion:
            return f"{span}del"
        if len(ref) == 1 and len(alt) == 1:
            return f"{first}{ref}>{alt}"
        return f"{span}delins{alt}"


def _transcript_coordinate(tm: TranscriptModel, pos: int) -> Tuple[int, int]:
    """
    Express a genomic position as (cDNA index, intronic offset).

    Positions outside the exons extend the cDNA index past either end, or
    attach to the nearest exonic base with a signed offset when intronic.
    """
    first_exon_start, last_exon_end = tm.exons[0][0], tm.exons[-1][1]
    length = tm.transcript_length
    if pos < first_exon_start:
        before = first_exon_start - pos
        return (-before, 0) if tm.is_forward else (length - 1 + before, 0)
    if pos > last_exon_end:
        after = pos - last_exon_end
        return (length - 1 + after, 0) if tm.is_forward else (-after, 0)

    intron_idx = tm.find_intron(pos)
    if intron_idx is None:
        return tm.cdna_offset(pos), 0

    left_end = tm.exons[intron_idx][1]
    right_start = tm.exons[intron_idx + 1][0]
    to_left, to_right = pos - left_end, right_start - pos
    if tm.is_forward:
        # Ties go to the upstream exon (+ offset)
        if to_left <= to_right:
            return tm.cdna_offset(left_end), to_left
        return tm.cdna_offset(right_start), -to_right
    if to_right <= to_left:
        return tm.cdna_offset(right_start), to_right
    return tm.cdna_offset(left_end), -to_left


def position_label(tm: TranscriptModel, pos: int) -> str:
    """Render a genomic position as a ``c.``/``n.`` coordinate (without the prefix)."""
    index, offset = _transcript_coordinate(tm, pos)
    if tm.is_coding:
        utr5, cds_length = tm.utr5_length, tm.cds_length
        if index < utr5:
            label = f"-{utr5 - index}"
        elif index < utr5 + cds_length:
            label = str(index - utr5 + 1)
        else:
            label = f"*{index - utr5 - cds_length + 1}"
    elif index < 0:
        label = f"-{-index}"
    elif index >= tm.transcript_length:
        label = f"*{index - tm.transcript_length + 1}"
    else:
        label = str(index + 1)

    if offset > 0:
        return f"{label}+{offset}"
    if offset < 0:
        return f"{label}{offset}"
    return label
