"""Tests for the assembled GO enrichment result table."""

import json
import math

import pytest

from goea.domain_lookup import DomainIndex
from goea.enrichment import EnrichmentRecord
from goea.result_table import COLUMN_ORDER, GOEnrichment, max_abs_log2_fold_change


def make_record(term_key, log2_fold_change, significant_adjusted=False):
    return EnrichmentRecord(
        term_key=term_key,
        accession=None,
        domain="-",
        background_count=1,
        dataset_count=1,
        percent_background=1.0,
        percent_dataset=1.0,
        log2_fold_change=log2_fold_change,
        p_value=0.5,
        significant_adjusted=significant_adjusted,
    )


def test_max_abs_log2_fold_change_ignores_non_finite_values():
    records = [
        make_record("a", 0.58),
        make_record("b", -1.2),
        make_record("c", math.inf),
        make_record("d", -math.inf),
        make_record("e", math.nan),
    ]
    assert max_abs_log2_fold_change(records) == 2.0


def test_max_abs_log2_fold_change_without_finite_values():
    assert max_abs_log2_fold_change([make_record("a", math.nan)]) == 0.0
    assert max_abs_log2_fold_change([]) == 0.0


def test_enrichment_results(mapping_index, domain_index, dataset_proteins):
    enrichment = GOEnrichment(mapping_index, domain_index, dataset_proteins, name="run")

    assert enrichment.name == "run"
    assert [record.term_key for record in enrichment.results] == ["kinase activity", "transport"]
    assert [record.domain for record in enrichment.results] == ["molecular_function", "-"]
    assert enrichment.max_abs_log2_fold_change == 1.0
    assert enrichment.significant_terms() == []
    assert enrichment.significant_terms(adjusted=False) == []


def test_default_name(mapping_index, domain_index, dataset_proteins):
    enrichment = GOEnrichment(mapping_index, domain_index, dataset_proteins)
    assert enrichment.name.startswith("test_species_5_")


def test_recompute_builds_new_records(mapping_index, domain_index, dataset_proteins):
    first = GOEnrichment(mapping_index, domain_index, dataset_proteins, significance_level=0.05)
    second = GOEnrichment(mapping_index, domain_index, dataset_proteins, significance_level=0.99)

    assert first.results[0] is not second.results[0]
    assert first.results[0].significant_adjusted is False
    assert second.results[0].significant_adjusted is True


@pytest.mark.parametrize("significance_level", [0.0, 1.0, -0.1, 1.5])
def test_invalid_significance_level(mapping_index, domain_index, dataset_proteins, significance_level):
    with pytest.raises(ValueError, match="Significance level"):
        GOEnrichment(mapping_index, domain_index, dataset_proteins, significance_level=significance_level)


def test_invalid_correction_method(mapping_index, domain_index, dataset_proteins):
    with pytest.raises(ValueError):
        GOEnrichment(mapping_index, domain_index, dataset_proteins, correction_method="holm")


def test_to_dataframe(mapping_index, domain_index, dataset_proteins):
    df = GOEnrichment(mapping_index, domain_index, dataset_proteins).to_dataframe()

    assert list(df.columns) == COLUMN_ORDER
    assert list(df[""]) == [1, 2]
    assert list(df["GO Accession"]) == ["GO:0016301", "GO:0006810"]
    assert list(df["Frequency All (%)"]) == [40.0, 60.0]
    assert list(df["Frequency Dataset (%)"]) == [60.0, 40.0]
    assert df["p-value"].iloc[0] == pytest.approx(0.238, abs=1e-3)


def test_to_tsv(mapping_index, domain_index, dataset_proteins):
    tsv = GOEnrichment(mapping_index, domain_index, dataset_proteins).to_tsv()
    header, first_row = tsv.splitlines()[:2]
    assert header.split("\t")[1:4] == ["GO Accession", "GO Term", "GO Domain"]
    assert first_row.split("\t")[2] == "kinase activity"


def test_to_json(mapping_index, domain_index, dataset_proteins):
    records = json.loads(GOEnrichment(mapping_index, domain_index, dataset_proteins).to_json())
    assert records[0]["term_key"] == "kinase activity"
    assert records[0]["dataset_count"] == 3


def test_to_snapshot(mapping_index, domain_index, dataset_proteins):
    snapshot = GOEnrichment(mapping_index, domain_index, dataset_proteins).to_snapshot()

    assert snapshot["mapping_set"] == "test_species"
    assert snapshot["dataset_size"] == 5
    assert snapshot["population_size"] == 10
    assert snapshot["go_terms"] == 2
    assert snapshot["significance_level"] == 0.05
    assert snapshot["max_abs_log2_fold_change"] == 1.0
    assert len(snapshot["results"]) == 2


def test_empty_dataset_table(mapping_index, domain_index):
    enrichment = GOEnrichment(mapping_index, domain_index, set())
    assert all(math.isnan(record.log2_fold_change) for record in enrichment.results)
    assert enrichment.max_abs_log2_fold_change == 0.0


def test_empty_mapping_set(domain_index):
    from goea import mapping_store

    enrichment = GOEnrichment(mapping_store.load(["header"]), domain_index, {"P1"})
    assert enrichment.results == []
    assert enrichment.to_dataframe().empty


def test_plot_frame(mapping_index, dataset_proteins):
    enrichment = GOEnrichment(mapping_index, DomainIndex(), dataset_proteins | {"P4"}, significance_level=0.99)
    frame = enrichment.plot_frame()

    assert list(frame["GO Term"]) == ["kinase activity", "transport"]
    assert list(frame["direction"]) == ["up", "down"]

    selected = enrichment.plot_frame(selected={"transport"})
    assert list(selected["GO Term"]) == ["transport"]


def test_plot_frame_replaces_non_finite_fold_changes(mapping_index, domain_index):
    enrichment = GOEnrichment(mapping_index, domain_index, {"P1"})
    frame = enrichment.plot_frame()
    assert list(frame["Log2 Diff"])[1] == 0.0
    assert list(frame["direction"]) == ["not significant", "not significant"]
