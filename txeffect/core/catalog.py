"""
An in-memory catalog of built transcript models.

The catalog only groups transcripts by chromosome and scans them linearly;
it is not an interval index.
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import yaml

from txeffect.core.errors import ConfigurationError
from txeffect.core.models import TranscriptModel, TranscriptModelBuilder

logger = logging.getLogger(__name__)


class TranscriptCatalog:
    """Transcript models grouped by chromosome, in insertion order."""

    def __init__(self, transcripts: Optional[Iterable[TranscriptModel]] = None):
        self.transcripts_by_chromosome: Dict[str, List[TranscriptModel]] = defaultdict(list)
        self.transcripts_by_accession: Dict[str, TranscriptModel] = {}
        for transcript in transcripts or []:
            self.add(transcript)

    def add(self, transcript: TranscriptModel):
        if transcript.accession in self.transcripts_by_accession:
            logger.warning(f"Duplicate transcript {transcript.accession}; keeping the first one")
            return
        self.transcripts_by_accession[transcript.accession] = transcript
        self.transcripts_by_chromosome[transcript.chromosome].append(transcript)

    def get(self, accession: str) -> Optional[TranscriptModel]:
        return self.transcripts_by_accession.get(accession)

    def on_chromosome(self, chromosome: str) -> List[TranscriptModel]:
        return self.transcripts_by_chromosome.get(chromosome, [])

    def nearby(self, chromosome: str, pos: int, flank: int) -> List[TranscriptModel]:
        """Transcripts overlapping ``pos`` or within ``flank`` bases of it."""
        return [
            tm for tm in self.on_chromosome(chromosome)
            if tm.tx_start - flank <= pos <= tm.tx_end + flank
        ]

    def flanking_genes(self, chromosome: str, pos: int) -> Tuple[Optional[TranscriptModel], Optional[TranscriptModel]]:
        """Nearest transcript ending left of ``pos`` and nearest starting right of it."""
        left = right = None
        for tm in self.on_chromosome(chromosome):
            if tm.tx_end < pos and (left is None or tm.tx_end > left.tx_end):
                left = tm
            elif tm.tx_start > pos and (right is None or tm.tx_start < right.tx_start):
                right = tm
        return left, right

    def __len__(self) -> int:
        return len(self.transcripts_by_accession)

    def __iter__(self) -> Iterator[TranscriptModel]:
        return iter(self.transcripts_by_accession.values())


def load_catalog(path: Path) -> TranscriptCatalog:
    """
    Load a serialized catalog: a YAML list of transcript records.

    Records failing validation are logged and skipped.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Transcript catalog not found: {path}")
    try:
        with open(path, 'r') as f:
            records = yaml.safe_load(f) or []
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing transcript catalog {path}: {e}")
    if isinstance(records, dict):
        records = records.get('transcripts', [])

    models = TranscriptModelBuilder.build_many(records)
    logger.info(f"Loaded {len(models)} of {len(records)} transcripts from {path}")
    return TranscriptCatalog(models)


def save_catalog(catalog: TranscriptCatalog, path: Path):
    """Write the catalog in the format ``load_catalog`` reads."""
    with open(path, 'w') as f:
        yaml.safe_dump({'transcripts': [tm.to_dict() for tm in catalog]}, f, sort_keys=False)
