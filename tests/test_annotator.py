from unittest.mock import patch

import pytest

from txeffect.annotation.annotator import VariantAnnotator, parse_chromosomal_change
from txeffect.annotation.variant_type import VariantType
from txeffect.config import AnnotationConfig
from txeffect.core.catalog import TranscriptCatalog
from txeffect.core.io import DictSequenceProvider
from txeffect.core.models import TranscriptModelBuilder, Variant


@pytest.fixture
def isoform():
    """Second isoform of GENEF sharing the first intron."""
    return (TranscriptModelBuilder()
            .set_accession("NM_FWD.2")
            .set_gene_symbol("GENEF")
            .set_gene_id("1001")
            .set_chromosome("chr1")
            .set_strand("+")
            .set_transcription_bounds(11, 80)
            .set_cds_bounds(21, 70)
            .set_exons([(11, 30), (51, 80)])
            .build())


@pytest.fixture
def annotator(catalog, isoform, fwd_cds):
    catalog.add(isoform)
    provider = DictSequenceProvider({"NM_FWD.1": fwd_cds, "NM_FWD.2": fwd_cds, "NM_REV.1": fwd_cds})
    return VariantAnnotator(catalog, provider, AnnotationConfig(flank_distance=10))


def test_parse_chromosomal_change():
    assert parse_chromosomal_change("chr1:12345C>A") == Variant("chr1", 12345, "C", "A")
    assert parse_chromosomal_change("chr1:100->AT") == Variant("chr1", 100, "", "AT")
    assert parse_chromosomal_change("chrX:100AG>-") == Variant("chrX", 100, "AG", "")


@pytest.mark.parametrize("change", ["chr1-12345C>A", "chr1:abcC>A", "chr1:100C", ""])
def test_parse_chromosomal_change_rejects(change):
    with pytest.raises(ValueError):
        parse_chromosomal_change(change)


def test_isoforms_with_same_intronic_call_collapse(annotator):
    annotations = annotator.annotate(Variant("chr1", 40, "C", "T"))
    assert len(annotations) == 1
    best = annotations.best()
    assert best.variant_type == VariantType.INTRONIC
    assert best.annotation == "GENEF"


def test_coding_calls_from_each_isoform_are_kept(annotator):
    annotations = annotator.annotate(Variant("chr1", 23, "G", "C"))
    ranked = annotations.ranked_view()
    assert [a.annotation for a in ranked] == [
        "NM_FWD.1:exon1:c.G3C:p.M1I",
        "NM_FWD.2:exon1:c.G3C:p.M1I",
    ]
    assert all(a.variant_type == VariantType.NONSYNONYMOUS for a in ranked)


def test_vcf_style_alleles_are_normalized(annotator):
    annotations = annotator.annotate(Variant("chr1", 55, "TG", "T"))
    assert annotations.best().variant_type == VariantType.FS_DELETION
    assert annotations.best().annotation == "NM_FWD.1:exon2:c.16del"


def test_intergenic_without_classifier(annotator):
    with patch.object(annotator.classifier, 'classify') as classify:
        annotations = annotator.annotate(Variant("chr1", 500, "C", "T"))
        classify.assert_not_called()
    assert len(annotations) == 1
    best = annotations.best()
    assert best.variant_type == VariantType.INTERGENIC
    assert best.gene_symbol is None
    assert best.annotation == "GENEF(dist=410),NONE(dist=NONE)"


def test_intergenic_between_genes():
    left = (TranscriptModelBuilder().set_accession("NM_L.1").set_gene_symbol("LEFT")
            .set_chromosome("chr9").set_strand("+").set_transcription_bounds(100, 200)
            .set_exons([(100, 200)]).build())
    right = (TranscriptModelBuilder().set_accession("NM_R.1").set_gene_symbol("RIGHT")
             .set_chromosome("chr9").set_strand("-").set_transcription_bounds(5000, 6000)
             .set_exons([(5000, 6000)]).build())
    annotator = VariantAnnotator(TranscriptCatalog([left, right]))
    best = annotator.annotate(Variant("chr9", 3000, "A", "G")).best()
    assert best.annotation == "LEFT(dist=2800),RIGHT(dist=2000)"


def test_flank_decides_upstream_versus_intergenic(catalog, sequence_provider):
    near = VariantAnnotator(catalog, sequence_provider, AnnotationConfig(flank_distance=10))
    assert near.annotate(Variant("chr1", 2, "C", "T")).best().variant_type == VariantType.UPSTREAM
    far = VariantAnnotator(catalog, sequence_provider, AnnotationConfig(flank_distance=5))
    assert far.annotate(Variant("chr1", 2, "C", "T")).best().variant_type == VariantType.INTERGENIC


def test_annotate_all_keeps_input_order(annotator):
    variants = [
        Variant("chr1", 23, "G", "C"),
        Variant("chr1", 40, "C", "T"),
        Variant("chr3", 120, "A", "G"),
        Variant("chr2", 78, "C", "G"),
        Variant("chr1", 500, "C", "T"),
    ]
    results = annotator.annotate_all(variants, workers=4)
    assert [r.best().variant_type for r in results] == [
        VariantType.NONSYNONYMOUS,
        VariantType.INTRONIC,
        VariantType.ncRNA_EXONIC,
        VariantType.NONSYNONYMOUS,
        VariantType.INTERGENIC,
    ]


def test_annotate_all_reports_failures_as_error(annotator):
    real_annotate = annotator.annotate

    def flaky(variant):
        if variant.pos == 999:
            raise RuntimeError("boom")
        return real_annotate(variant)

    with patch.object(annotator, 'annotate', side_effect=flaky):
        results = annotator.annotate_all([Variant("chr1", 999, "A", "G"), Variant("chr1", 40, "C", "T")], workers=2)
    assert len(results) == 2
    assert results[0].best().variant_type == VariantType.ERROR
    assert "boom" in results[0].best().annotation
    assert results[1].best().variant_type == VariantType.INTRONIC
