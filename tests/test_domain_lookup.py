"""Tests for the GO domain lookup."""

import pytest

from goea.domain_lookup import MISSING_DOMAIN, DomainIndex, load, load_domain_file
from goea.errors import DomainFileMissing


def test_load_domains():
    index = load(["GO:0016301,molecular_function\n", "GO:0006810,biological_process"])
    assert index.get("GO:0016301") == "molecular_function"
    assert index.get("GO:0006810") == "biological_process"
    assert len(index) == 2


def test_unknown_accession_renders_dash(domain_index):
    assert domain_index.get("GO:9999999") == MISSING_DOMAIN == "-"
    assert domain_index.get(None) == "-"


def test_malformed_domain_lines_are_skipped():
    index = load(["GO:1", "", "GO:2,cellular_component"])
    assert index.domains == {"GO:2": "cellular_component"}


def test_load_domain_file(mapping_dir):
    index = load_domain_file(mapping_dir / "test_species.go_domains")
    assert index.available
    assert index.get("GO:0016301") == "molecular_function"


def test_missing_domain_file_is_not_fatal(tmp_path, caplog):
    index = load_domain_file(tmp_path / "missing.go_domains")
    assert not index.available
    assert len(index) == 0
    assert index.get("GO:0016301") == "-"
    assert "Continuing without GO domains" in caplog.text


def test_missing_domain_file_strict(tmp_path):
    with pytest.raises(DomainFileMissing):
        load_domain_file(tmp_path / "missing.go_domains", strict=True)


def test_empty_index():
    index = DomainIndex()
    assert index.available
    assert index.get("GO:1") == "-"
