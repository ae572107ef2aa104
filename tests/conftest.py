import pytest
import pysam
from Bio.Seq import reverse_complement

from txeffect.core.catalog import TranscriptCatalog, save_catalog
from txeffect.core.io import DictSequenceProvider
from txeffect.core.models import TranscriptModelBuilder

# 10 codons: M K W E L G P Y S *
FWD_CDS = "ATGAAATGGGAACTTGGCCCATACAGTTAA"


def _forward_chromosome() -> str:
    """
    chr1 (200bp): background C, with the CDS of NM_FWD.1 placed at
    21-30 (exon 1) and 51-70 (exon 2).
    """
    seq = ["C"] * 200
    for k, base in enumerate(FWD_CDS):
        pos = 21 + k if k < 10 else 51 + (k - 10)
        seq[pos - 1] = base
    return "".join(seq)


@pytest.fixture
def fwd_cds():
    return FWD_CDS


@pytest.fixture
def forward_transcript():
    """
    Forward-strand coding transcript on chr1.

    exons 11-30, 51-90; CDS 21-70 (5' UTR of 10 bases, 30 coding bases).
    """
    return (TranscriptModelBuilder()
            .set_accession("NM_FWD.1")
            .set_gene_symbol("GENEF")
            .set_gene_id("1001")
            .set_chromosome("chr1")
            .set_strand("+")
            .set_transcription_bounds(11, 90)
            .set_cds_bounds(21, 70)
            .add_exon(11, 30)
            .add_exon(51, 90)
            .build())


@pytest.fixture
def reverse_transcript():
    """The forward transcript mirrored around position 101, on chr2 and the reverse strand."""
    return (TranscriptModelBuilder()
            .set_accession("NM_REV.1")
            .set_gene_symbol("GENER")
            .set_gene_id("1002")
            .set_chromosome("chr2")
            .set_strand("-")
            .set_transcription_bounds(11, 90)
            .set_cds_bounds(31, 80)
            .add_exon(71, 90)
            .add_exon(11, 50)
            .build())


@pytest.fixture
def noncoding_transcript():
    """Non-coding transcript on chr3: exons 101-150, 171-200."""
    return (TranscriptModelBuilder()
            .set_accession("NR_NC.1")
            .set_gene_symbol("NCGENE")
            .set_chromosome("chr3")
            .set_strand("+")
            .set_transcription_bounds(101, 200)
            .set_exons([(101, 150), (171, 200)])
            .build())


@pytest.fixture
def sequence_provider():
    return DictSequenceProvider({"NM_FWD.1": FWD_CDS, "NM_REV.1": FWD_CDS})


@pytest.fixture
def catalog(forward_transcript, reverse_transcript, noncoding_transcript):
    return TranscriptCatalog([forward_transcript, reverse_transcript, noncoding_transcript])


@pytest.fixture
def catalog_file(tmp_path, catalog):
    p = tmp_path / "catalog.yaml"
    save_catalog(catalog, p)
    return p


@pytest.fixture
def reference_fasta(tmp_path):
    """chr1 as above; chr2 its reverse complement (mirrored around 101); chr3 background."""
    p = tmp_path / "ref.fa"
    chr1 = _forward_chromosome()
    chr2 = reverse_complement(chr1[:100]) + "C" * 100
    chr3 = "ACGT" * 60
    with open(p, "w") as f:
        f.write(f">chr1\n{chr1}\n>chr2\n{chr2}\n>chr3\n{chr3}\n")

    pysam.faidx(str(p))
    return p
