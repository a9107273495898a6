import json
import logging
from pathlib import Path
from typing import Optional

import typer

from goea.dataset import DatasetProteinSet
from goea.domain_lookup import load_domain_file
from goea.errors import MappingFileError
from goea.mapping_store import domains_path_for, list_mapping_files, load_mapping_file
from goea.multiple_testing import CORRECTION_METHODS, STEP_UP
from goea.result_table import DEFAULT_SIGNIFICANCE, GOEnrichment

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent.parent
DEFAULT_MAPPING_DIR = ROOT / "data" / "gene_ontology"

app = typer.Typer(
    help="GO term enrichment analysis CLI",
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure_logging(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """GO term enrichment of proteomics datasets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def resolve_mapping_file(mappings: str, mapping_dir: Path) -> Path:
    """
    Resolve a mapping file given as a path or as a file name in the mapping directory.
    """
    mapping_path = Path(mappings)
    if mapping_path.is_file():
        return mapping_path
    for candidate in list_mapping_files(mapping_dir):
        if candidate.name == mappings or candidate.name.split(".")[0] == mappings:
            return candidate
    return mapping_path


@app.command("run", help="Run GO enrichment analysis for a protein dataset")
def run(
    dataset: Path = typer.Option(
        ...,
        "--dataset",
        "-d",
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="Dataset file: one protein accession per line, or a TSV with an 'accession' column.",
    ),
    mappings: str = typer.Option(
        ...,
        "--mappings",
        "-m",
        help="GO mapping file, given as a path or as a species/file name in the mapping directory.",
    ),
    mapping_dir: Path = typer.Option(
        DEFAULT_MAPPING_DIR,
        "--mapping-dir",
        help="Directory holding the .go_mappings and .go_domains files",
        show_default=False,
    ),
    domains: Optional[Path] = typer.Option(
        None,
        "--domains",
        help="GO domains file. Default: the .go_domains file next to the mapping file.",
        show_default=False,
    ),
    significance: float = typer.Option(
        DEFAULT_SIGNIFICANCE,
        "--significance",
        "-s",
        help="Significance level",
    ),
    correction: str = typer.Option(
        STEP_UP,
        "--correction",
        help="Multiple testing correction: 'step_up' or 'fdr_bh'",
    ),
    output_dir: Path = typer.Option(
        Path("goea_results"),
        "--output-dir",
        "-o",
        help="Output directory for results",
    ),
):
    if not 0.0 < significance < 1.0:
        typer.echo("Error: Significance level must be between 0 and 1", err=True)
        raise typer.Exit(code=1)

    if correction not in CORRECTION_METHODS:
        typer.echo(f"Error: Correction must be one of {', '.join(CORRECTION_METHODS)}", err=True)
        raise typer.Exit(code=1)

    mapping_path = resolve_mapping_file(mappings, mapping_dir)
    try:
        mapping_index = load_mapping_file(mapping_path)
    except MappingFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    domain_index = load_domain_file(domains if domains else domains_path_for(mapping_path))
    if not domain_index.available:
        typer.echo("Warning: GO domains file not found, continuing without GO domains.", err=True)

    dataset_proteins = DatasetProteinSet.from_file(dataset)

    enrichment = GOEnrichment(
        mapping_index,
        domain_index,
        dataset_proteins.proteins,
        significance_level=significance,
        correction_method=correction,
        name=f"{dataset_proteins.name}_{mapping_index.name}",
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    results_file = output_dir / f"{dataset_proteins.name}_goea_results.tsv"
    enrichment.to_dataframe().to_csv(results_file, sep="\t", index=False)
    logger.info(f"Saved {len(enrichment.results)} GO terms to {results_file}")

    snapshot_file = output_dir / f"{dataset_proteins.name}_goea_snapshot.json"
    with open(snapshot_file, "w") as f:
        json.dump(enrichment.to_snapshot(), f, indent=2)
    logger.info(f"Saved snapshot to {snapshot_file}")

    typer.echo(f"Mapping Set: {mapping_index.name}")
    typer.echo(f"Dataset Proteins: {dataset_proteins.size}")
    typer.echo(f"GO Terms: {len(enrichment.results)}")
    typer.echo(f"Significant GO Terms: {len(enrichment.significant_terms())}")
    typer.echo(f"Results saved to {output_dir}")


@app.command("list-mappings", help="List the available GO mapping files")
def list_mappings(
    mapping_dir: Path = typer.Option(
        DEFAULT_MAPPING_DIR,
        "--mapping-dir",
        help="Directory holding the .go_mappings files",
        show_default=False,
    ),
):
    mapping_files = list_mapping_files(mapping_dir)
    if not mapping_files:
        typer.echo(f"No GO mapping files found in {mapping_dir}", err=True)
        raise typer.Exit(code=1)
    for mapping_file in mapping_files:
        domains_available = domains_path_for(mapping_file).is_file()
        typer.echo(f"{mapping_file.name}\t{'domains' if domains_available else 'no domains'}")


if __name__ == "__main__":
    app()
