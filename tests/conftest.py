from pathlib import Path

import pytest

from goea import domain_lookup, mapping_store

KINASE_ACCESSION = "GO:0016301"
TRANSPORT_ACCESSION = "GO:0006810"

# Ten background proteins with one association each: P1-P4 carry
# "kinase activity", P5-P10 carry "transport".
MAPPING_LINES = (
    ["GO Accession,GO Term,Protein Accession"]
    + [f"{KINASE_ACCESSION},Kinase Activity,P{i}" for i in range(1, 5)]
    + [f"{TRANSPORT_ACCESSION},transport,P{i}" for i in range(5, 11)]
    + [",,P11", ",,"]
)

DOMAIN_LINES = [f"{KINASE_ACCESSION},molecular_function"]

DATASET_PROTEINS = {"P1", "P2", "P3", "P5", "P6"}


@pytest.fixture
def mapping_lines():
    return list(MAPPING_LINES)


@pytest.fixture
def mapping_index():
    return mapping_store.load(MAPPING_LINES, name="test_species")


@pytest.fixture
def domain_index():
    return domain_lookup.load(DOMAIN_LINES)


@pytest.fixture
def dataset_proteins():
    return set(DATASET_PROTEINS)


@pytest.fixture
def mapping_dir(tmp_path) -> Path:
    """Directory with a mapping file and its domains file."""
    directory = tmp_path / "gene_ontology"
    directory.mkdir()
    (directory / "test_species.go_mappings").write_text("\n".join(MAPPING_LINES) + "\n")
    (directory / "test_species.go_domains").write_text("\n".join(DOMAIN_LINES) + "\n")
    return directory


@pytest.fixture
def dataset_file(tmp_path) -> Path:
    path = tmp_path / "experiment.txt"
    path.write_text("\n".join(sorted(DATASET_PROTEINS)) + "\n")
    return path
