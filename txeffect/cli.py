import typer
import logging
from pathlib import Path
from typing import Optional
from typing_extensions import Annotated

from txeffect.annotation.annotator import VariantAnnotator, parse_chromosomal_change
from txeffect.annotation.variant_type import types_by_priority
from txeffect.config import load_config
from txeffect.core.catalog import load_catalog
from txeffect.core.errors import ConfigurationError
from txeffect.core.io import ReferenceSequenceProvider

app = typer.Typer(
    name="txeffect",
    help="Functional annotation of genomic variants against transcript models.",
    add_completion=False,
    no_args_is_help=True
)

def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level),
        format="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

@app.command("annotate-position")
def annotate_position(
    change: Annotated[str, typer.Argument(help="Chromosomal change, e.g. chr1:12345C>A")],
    catalog: Annotated[Path, typer.Option(..., help="Serialized transcript catalog (YAML)")],
    reference: Annotated[Optional[Path], typer.Option(help="Reference FASTA for codon context")] = None,
    config: Annotated[Optional[Path], typer.Option(help="YAML configuration file")] = None,
    flank: Annotated[Optional[int], typer.Option(help="Upstream/downstream flank distance")] = None,
    splice_window: Annotated[Optional[int], typer.Option(help="Splice window width")] = None,
    show_all: Annotated[Optional[bool], typer.Option("--show-all", help="Report every transcript annotation")] = None,
    verbose: bool = False
):
    """Annotate a single chromosomal change."""
    try:
        settings = load_config(
            str(config) if config else None,
            flank_distance=flank,
            splice_window=splice_window,
            show_all=show_all,
            log_level="DEBUG" if verbose else None,
        )
        variant = parse_chromosomal_change(change)
        transcripts = load_catalog(catalog)
    except (ConfigurationError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    setup_logging(settings.log_level)

    provider = ReferenceSequenceProvider(reference, transcripts) if reference else None
    annotator = VariantAnnotator(transcripts, provider, settings)
    annotations = annotator.annotate(variant)

    ranked = annotations.ranked_view() if settings.show_all else [annotations.best()]
    for annotation in ranked:
        typer.echo(f"{annotation.variant_type.value}\t{annotation.gene_symbol or '.'}\t{annotation.annotation}")

    if provider:
        provider.close()

@app.command()
def priorities():
    """List variant types from most to least severe."""
    for vtype in types_by_priority():
        typer.echo(f"{vtype.priority}\t{vtype.value}\t{vtype.display}")

def main():
    app()

if __name__ == "__main__":
    main()
