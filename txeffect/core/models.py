"""
Core data models: transcript geometry and genomic variants.

Coordinates are 1-based and fully closed on the genome. Offsets along the
spliced transcript (cDNA) and along the coding sequence (CDS) are 0-based
and always counted from the transcript's own 5' end.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from txeffect.core.errors import (
    CoordinateInconsistencyError,
    MalformedTranscriptError,
    UnsupportedVariantShapeError,
)

logger = logging.getLogger(__name__)

FORWARD = '+'
REVERSE = '-'
NUCLEOTIDES = set("ACGTN")


@dataclass(frozen=True)
class TranscriptModel:
    """Immutable exon/CDS/strand geometry of one transcript."""
    accession: str
    gene_symbol: Optional[str]
    chromosome: str
    strand: str
    tx_start: int
    tx_end: int
    cds_start: Optional[int]
    cds_end: Optional[int]
    exons: Tuple[Tuple[int, int], ...]
    gene_id: Optional[str] = None
    _exon_starts: Tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_exon_starts', tuple(start for start, _ in self.exons))

    @property
    def is_coding(self) -> bool:
        return self.cds_start is not None and self.cds_end is not None

    @property
    def is_forward(self) -> bool:
        return self.strand == FORWARD

    @property
    def exon_count(self) -> int:
        return len(self.exons)

    @property
    def transcript_length(self) -> int:
        """Length of the spliced transcript."""
        return sum(end - start + 1 for start, end in self.exons)

    @property
    def name(self) -> str:
        """Gene symbol, falling back to the accession."""
        return self.gene_symbol or self.accession

    def find_exon(self, pos: int) -> Optional[int]:
        """Index (genomic order) of the exon containing ``pos``, or None."""
        idx = bisect_right(self._exon_starts, pos) - 1
        if idx >= 0 and pos <= self.exons[idx][1]:
            return idx
        return None

    def find_intron(self, pos: int) -> Optional[int]:
        """
        Index ``i`` of the intron between exons ``i`` and ``i + 1`` (genomic
        order) containing ``pos``, or None if ``pos`` is not intronic.
        """
        idx = bisect_right(self._exon_starts, pos) - 1
        if 0 <= idx < len(self.exons) - 1 and self.exons[idx][1] < pos < self.exons[idx + 1][0]:
            return idx
        return None

    def exon_number(self, index: int) -> int:
        """1-based exon number counted from the transcript's 5' end."""
        if self.is_forward:
            return index + 1
        return len(self.exons) - index

    def cdna_offset(self, pos: int) -> int:
        """0-based offset of genomic ``pos`` along the spliced transcript."""
        idx = self.find_exon(pos)
        if idx is None:
            raise CoordinateInconsistencyError(
                f"{self.accession}: position {pos} does not lie in any exon")
        start, end = self.exons[idx]
        if self.is_forward:
            preceding = sum(e - s + 1 for s, e in self.exons[:idx])
            return preceding + (pos - start)
        preceding = sum(e - s + 1 for s, e in self.exons[idx + 1:])
        return preceding + (end - pos)

    def in_cds(self, pos: int) -> bool:
        return self.is_coding and self.cds_start <= pos <= self.cds_end

    @property
    def utr5_length(self) -> int:
        """Spliced length of the 5' UTR (0 for non-coding transcripts)."""
        if not self.is_coding:
            return 0
        return self.cdna_offset(self.cds_start if self.is_forward else self.cds_end)

    @property
    def cds_length(self) -> int:
        if not self.is_coding:
            return 0
        three_prime = self.cds_end if self.is_forward else self.cds_start
        return self.cdna_offset(three_prime) - self.utr5_length + 1

    def cds_offset(self, pos: int) -> int:
        """0-based offset of ``pos`` within the CDS."""
        if not self.in_cds(pos):
            raise CoordinateInconsistencyError(
                f"{self.accession}: position {pos} is outside the CDS")
        return self.cdna_offset(pos) - self.utr5_length

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML/JSON serialization."""
        return {
            'accession': self.accession,
            'gene_symbol': self.gene_symbol,
            'gene_id': self.gene_id,
            'chromosome': self.chromosome,
            'strand': self.strand,
            'tx_start': self.tx_start,
            'tx_end': self.tx_end,
            'cds_start': self.cds_start,
            'cds_end': self.cds_end,
            'exons': [list(exon) for exon in self.exons],
        }


class TranscriptModelBuilder:
    """
    Collects transcript attributes and validates them in a single ``build()``.

    Invalid records are rejected there with a ``MalformedTranscriptError``;
    nothing downstream ever sees a transcript that breaks the geometry rules.
    """

    def __init__(self):
        self.accession: Optional[str] = None
        self.gene_symbol: Optional[str] = None
        self.gene_id: Optional[str] = None
        self.chromosome: Optional[str] = None
        self.strand: Optional[str] = None
        self.tx_start: Optional[int] = None
        self.tx_end: Optional[int] = None
        self.cds_start: Optional[int] = None
        self.cds_end: Optional[int] = None
        self.exons: List[Tuple[int, int]] = []

    def set_accession(self, accession: str) -> 'TranscriptModelBuilder':
        self.accession = accession
        return self

    def set_gene_symbol(self, symbol: Optional[str]) -> 'TranscriptModelBuilder':
        self.gene_symbol = symbol or None
        return self

    def set_gene_id(self, gene_id: Optional[Any]) -> 'TranscriptModelBuilder':
        self.gene_id = str(gene_id) if gene_id is not None else None
        return self

    def set_chromosome(self, chromosome: str) -> 'TranscriptModelBuilder':
        self.chromosome = chromosome
        return self

    def set_strand(self, strand: str) -> 'TranscriptModelBuilder':
        self.strand = strand
        return self

    def set_transcription_bounds(self, start: int, end: int) -> 'TranscriptModelBuilder':
        self.tx_start, self.tx_end = start, end
        return self

    def set_cds_bounds(self, start: Optional[int], end: Optional[int]) -> 'TranscriptModelBuilder':
        self.cds_start, self.cds_end = start, end
        return self

    def add_exon(self, start: int, end: int) -> 'TranscriptModelBuilder':
        self.exons.append((int(start), int(end)))
        return self

    def set_exons(self, exons: Iterable[Tuple[int, int]]) -> 'TranscriptModelBuilder':
        self.exons = [(int(start), int(end)) for start, end in exons]
        return self

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'TranscriptModelBuilder':
        """
        Populate a builder from a serialized transcript record.

        Raises:
            MalformedTranscriptError: if the record does not have the expected shape
        """
        builder = cls()
        try:
            builder.set_accession(record.get('accession'))
            builder.set_gene_symbol(record.get('gene_symbol'))
            builder.set_gene_id(record.get('gene_id'))
            builder.set_chromosome(record.get('chromosome'))
            builder.set_strand(record.get('strand'))
            builder.set_transcription_bounds(record.get('tx_start'), record.get('tx_end'))
            builder.set_cds_bounds(record.get('cds_start'), record.get('cds_end'))
            builder.set_exons(record.get('exons') or [])
        except (AttributeError, TypeError, ValueError) as e:
            accession = record.get('accession') if isinstance(record, dict) else None
            raise MalformedTranscriptError(f"Transcript {accession}: malformed record ({e})")
        return builder

    def _fail(self, reason: str):
        raise MalformedTranscriptError(f"Transcript {self.accession}: {reason}")

    def build(self) -> TranscriptModel:
        """Validate all invariants and return the immutable model."""
        if not self.accession:
            self._fail("missing accession")
        if not self.chromosome:
            self._fail("missing chromosome")
        if self.strand not in (FORWARD, REVERSE):
            self._fail(f"invalid strand {self.strand!r}")
        for name in ('tx_start', 'tx_end', 'cds_start', 'cds_end'):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                self._fail(f"{name} must be an integer, got {value!r}")
        if self.tx_start is None or self.tx_end is None or self.tx_start > self.tx_end:
            self._fail(f"invalid transcription bounds {self.tx_start}-{self.tx_end}")
        if not self.exons:
            self._fail("no exons")

        exons = sorted(self.exons)
        for start, end in exons:
            if start > end:
                self._fail(f"exon {start}-{end} has start after end")
        for (_, prev_end), (next_start, _) in zip(exons, exons[1:]):
            if next_start <= prev_end:
                self._fail(f"overlapping exons at {next_start}")
        if exons[0][0] < self.tx_start or exons[-1][1] > self.tx_end:
            self._fail("exons extend beyond the transcription bounds")
        # UCSC geometry: the first and last exon define the transcription bounds
        if exons[0][0] != self.tx_start or exons[-1][1] != self.tx_end:
            self._fail(f"exons {exons[0][0]}-{exons[-1][1]} do not reach the transcription bounds "
                       f"{self.tx_start}-{self.tx_end}")

        cds_start, cds_end = self.cds_start, self.cds_end
        # UCSC encodes non-coding transcripts as cdsStart == cdsEnd + 1
        if cds_start is not None and cds_end is not None and cds_start == cds_end + 1:
            cds_start = cds_end = None
        if (cds_start is None) != (cds_end is None):
            self._fail("only one CDS bound given")
        if cds_start is not None:
            if not self.tx_start <= cds_start <= cds_end <= self.tx_end:
                self._fail(f"CDS {cds_start}-{cds_end} not within transcript bounds")
            for bound in (cds_start, cds_end):
                if not any(start <= bound <= end for start, end in exons):
                    self._fail(f"CDS bound {bound} is not exonic (3'/5' truncated)")

        return TranscriptModel(
            accession=self.accession,
            gene_symbol=self.gene_symbol,
            chromosome=self.chromosome,
            strand=self.strand,
            tx_start=self.tx_start,
            tx_end=self.tx_end,
            cds_start=cds_start,
            cds_end=cds_end,
            exons=tuple(exons),
            gene_id=self.gene_id,
        )

    @staticmethod
    def build_many(records: Iterable[Dict[str, Any]]) -> List[TranscriptModel]:
        """Build every valid record, logging and skipping the malformed ones."""
        models = []
        for record in records:
            try:
                models.append(TranscriptModelBuilder.from_dict(record).build())
            except MalformedTranscriptError as e:
                logger.warning(f"{e}. Ignoring.")
        return models


def _clean_allele(allele: Optional[str]) -> str:
    if allele is None or allele == '-':
        return ''
    return allele.upper()


@dataclass(frozen=True)
class Variant:
    """A genomic change at a 1-based position."""
    chromosome: str
    pos: int
    ref: str
    alt: str

    def __post_init__(self):
        object.__setattr__(self, 'ref', _clean_allele(self.ref))
        object.__setattr__(self, 'alt', _clean_allele(self.alt))

    @property
    def is_insertion(self) -> bool:
        return not self.ref and bool(self.alt)

    @property
    def is_deletion(self) -> bool:
        return bool(self.ref) and not self.alt

    @property
    def is_indel(self) -> bool:
        return len(self.ref) != len(self.alt)

    @property
    def is_snv(self) -> bool:
        return len(self.ref) == 1 and len(self.alt) == 1 and self.ref != self.alt

    @property
    def is_block_substitution(self) -> bool:
        return len(self.ref) == len(self.alt) > 1

    @property
    def end(self) -> int:
        """Last reference base touched (``pos - 1`` for an insertion)."""
        return self.pos + len(self.ref) - 1

    def check_shape(self):
        """Raise ``UnsupportedVariantShapeError`` for allele pairs we cannot classify."""
        if self.ref == self.alt:
            raise UnsupportedVariantShapeError(
                f"{self}: reference and alternate alleles are identical")
        for allele in (self.ref, self.alt):
            if set(allele) - NUCLEOTIDES:
                raise UnsupportedVariantShapeError(f"{self}: unexpected bases in allele {allele!r}")

    def normalized(self) -> 'Variant':
        """Trim the shared prefix and suffix of ref/alt, shifting ``pos`` past the prefix."""
        ref, alt, pos = self.ref, self.alt, self.pos
        prefix = 0
        while prefix < min(len(ref), len(alt)) and ref[prefix] == alt[prefix]:
            prefix += 1
        ref, alt, pos = ref[prefix:], alt[prefix:], pos + prefix
        suffix = 0
        while suffix < min(len(ref), len(alt)) and ref[-1 - suffix] == alt[-1 - suffix]:
            suffix += 1
        if suffix:
            ref, alt = ref[:len(ref) - suffix], alt[:len(alt) - suffix]
        return Variant(self.chromosome, pos, ref, alt)

    def __str__(self) -> str:
        return f"{self.chromosome}:{self.pos}{self.ref or '-'}>{self.alt or '-'}"
