import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

import pysam
from Bio.Seq import reverse_complement

from txeffect.core.errors import CoordinateInconsistencyError


class SequenceProvider(Protocol):
    """Supplies reference CDS bases in transcript orientation."""

    def get_cds_bases(self, accession: str, start: int, end: int) -> str:
        """Bases at CDS offsets ``start`` (inclusive) to ``end`` (exclusive)."""
        ...


class DictSequenceProvider:
    """In-memory CDS sequences keyed by transcript accession."""
    def __init__(self, cds_sequences: Optional[Dict[str, str]] = None):
        self.cds_sequences = {acc: seq.upper() for acc, seq in (cds_sequences or {}).items()}

    def get_cds_bases(self, accession: str, start: int, end: int) -> str:
        seq = self.cds_sequences.get(accession)
        if seq is None:
            raise CoordinateInconsistencyError(f"{accession}: no CDS sequence available")
        return seq[start:end]


class ReferenceSequenceProvider:
    """
    Splices CDS sequences out of a reference FASTA.

    Each transcript's CDS is extracted once and cached. pysam file handles
    are not safe to share between threads, so FASTA access is serialized.
    """
    def __init__(self, reference_fasta: Path, catalog):
        self.fasta = pysam.FastaFile(str(reference_fasta))
        self.available_chromosomes = set(self.fasta.references)
        self.catalog = catalog
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get_cds_bases(self, accession: str, start: int, end: int) -> str:
        return self.get_cds_sequence(accession)[start:end]

    def get_cds_sequence(self, accession: str) -> str:
        with self._lock:
            if accession not in self._cache:
                self._cache[accession] = self._extract_cds(accession)
            return self._cache[accession]

    def _extract_cds(self, accession: str) -> str:
        transcript = self.catalog.get(accession)
        if transcript is None or not transcript.is_coding:
            raise CoordinateInconsistencyError(f"{accession}: no coding transcript in catalog")
        if transcript.chromosome not in self.available_chromosomes:
            raise CoordinateInconsistencyError(
                f"{accession}: chromosome {transcript.chromosome} missing from reference")

        logging.debug(f"Extracting CDS of {accession} from {self.fasta.filename}")
        pieces = []
        for exon_start, exon_end in transcript.exons:
            start = max(exon_start, transcript.cds_start)
            end = min(exon_end, transcript.cds_end)
            if start > end:
                continue
            # pysam fetch is 0-based, half-open
            pieces.append(self.fasta.fetch(transcript.chromosome, start - 1, end))
        seq = "".join(pieces).upper()
        if not transcript.is_forward:
            seq = reverse_complement(seq)
        return seq

    def close(self):
        self.fasta.close()
