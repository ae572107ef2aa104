from typer.testing import CliRunner

from txeffect.cli import app
from txeffect.core.catalog import save_catalog
from txeffect.core.models import TranscriptModelBuilder

runner = CliRunner()


def test_annotate_position_with_reference(catalog_file, reference_fasta):
    result = runner.invoke(app, [
        "annotate-position", "chr1:23G>C",
        "--catalog", str(catalog_file),
        "--reference", str(reference_fasta),
    ])
    assert result.exit_code == 0, result.output
    assert "NONSYNONYMOUS\tGENEF\tNM_FWD.1:exon1:c.G3C:p.M1I" in result.output


def test_annotate_position_intergenic(catalog_file):
    result = runner.invoke(app, [
        "annotate-position", "chr1:5000C>T",
        "--catalog", str(catalog_file),
        "--flank", "100",
    ])
    assert result.exit_code == 0, result.output
    assert "INTERGENIC\t.\tGENEF(dist=4910),NONE(dist=NONE)" in result.output


def test_annotate_position_show_all(catalog, tmp_path, reference_fasta):
    catalog.add(TranscriptModelBuilder()
                .set_accession("NM_FWD.2")
                .set_gene_symbol("GENEF")
                .set_chromosome("chr1")
                .set_strand("+")
                .set_transcription_bounds(11, 80)
                .set_cds_bounds(21, 70)
                .set_exons([(11, 30), (51, 80)])
                .build())
    catalog_file = tmp_path / "isoforms.yaml"
    save_catalog(catalog, catalog_file)
    args = ["annotate-position", "chr1:23G>C", "--catalog", str(catalog_file),
            "--reference", str(reference_fasta)]

    best_only = runner.invoke(app, args)
    assert best_only.exit_code == 0, best_only.output
    assert "NM_FWD.1:exon1:c.G3C:p.M1I" in best_only.output
    assert "NM_FWD.2" not in best_only.output

    config = tmp_path / "config.yaml"
    config.write_text("show_all: true\n")
    from_config = runner.invoke(app, args + ["--config", str(config)])
    from_flag = runner.invoke(app, args + ["--show-all"])
    for result in (from_config, from_flag):
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines == [
            "NONSYNONYMOUS\tGENEF\tNM_FWD.1:exon1:c.G3C:p.M1I",
            "NONSYNONYMOUS\tGENEF\tNM_FWD.2:exon1:c.G3C:p.M1I",
        ]


def test_annotate_position_rejects_bad_change(catalog_file):
    result = runner.invoke(app, ["annotate-position", "chr1-23", "--catalog", str(catalog_file)])
    assert result.exit_code == 1
    assert "Invalid chromosomal change" in result.output


def test_priorities():
    result = runner.invoke(app, ["priorities"])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert lines[0].startswith("1\tSPLICING")
    assert lines[-1].startswith("14\tERROR")
