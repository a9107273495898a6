import logging
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List

import numpy as np
from scipy.stats import hypergeom

from goea.domain_lookup import DomainIndex
from goea.mapping_store import MappingIndex

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentRecord:
    """
    Enrichment statistics of one GO term.

    All fields are fixed when the record is computed, except the two
    significance flags which are written by the multiple testing correction.
    """

    term_key: str
    accession: str
    domain: str
    background_count: int
    dataset_count: int
    percent_background: float
    percent_dataset: float
    log2_fold_change: float
    p_value: float
    significant_raw: bool = False
    significant_adjusted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def hypergeometric_pmf(
    population_size: int, success_population: int, sample_size: int, observed_successes: int
) -> float:
    """
    Probability of drawing exactly `observed_successes` successes.

    The draw takes `sample_size` items without replacement from a population of
    `population_size` items of which `success_population` are successes.
    Parameter combinations without a valid distribution give nan.
    """
    return float(hypergeom.pmf(observed_successes, population_size, success_population, sample_size))


def percentage(count: int, total: int) -> float:
    """100 * count / total, with inf and nan instead of division errors."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.divide(np.float64(100 * count), np.float64(total)))


def log2_fold_change(percent_dataset: float, percent_background: float) -> float:
    """log2 of the dataset over background ratio, keeping inf and nan results."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.log2(np.divide(np.float64(percent_dataset), np.float64(percent_background))))


def count_dataset_terms(mapping_index: MappingIndex, dataset_proteins: Iterable[str]) -> Counter:
    """
    Count, per GO term key, the dataset proteins mapped to it.

    Proteins that are not in the background mappings are skipped.
    """
    dataset_term_usage: Counter = Counter()
    unmapped = 0
    for protein in dataset_proteins:
        if not mapping_index.has_protein(protein):
            unmapped += 1
            continue
        dataset_term_usage.update(mapping_index.terms_for(protein))
    if unmapped:
        logger.info(f"{unmapped} dataset proteins do not map to any GO term in {mapping_index.name or 'the background'}")
    return dataset_term_usage


def compute(
    mapping_index: MappingIndex,
    domain_index: DomainIndex,
    dataset_proteins: Iterable[str],
    significance_level: float = 0.05,
) -> List[EnrichmentRecord]:
    """
    Computes the GO term enrichment of a dataset against the background mappings.

    Args:
        mapping_index: Background GO mappings
        domain_index: GO domain lookup
        dataset_proteins: Resolved accessions of the dataset proteins
        significance_level: Significance level for the Bonferroni flag

    Returns:
        One record per GO term, in ascending term key order. The adjusted
        significance flags are left unset.
    """
    dataset_proteins = set(dataset_proteins)
    dataset_size = len(dataset_proteins)
    population_size = mapping_index.total_background_proteins
    term_count = mapping_index.term_count

    logger.info(
        f"Calculating GO enrichment for {dataset_size} dataset proteins against "
        f"{term_count} GO terms (population size {population_size})"
    )
    dataset_term_usage = count_dataset_terms(mapping_index, dataset_proteins)

    records = []
    for term_key, background_count in mapping_index.total_term_usage.items():
        accession = mapping_index.term_to_accession.get(term_key)
        dataset_count = dataset_term_usage.get(term_key, 0)

        percent_background = percentage(background_count, population_size)
        percent_dataset = percentage(dataset_count, dataset_size)
        p_value = hypergeometric_pmf(population_size, background_count, dataset_size, dataset_count)

        records.append(
            EnrichmentRecord(
                term_key=term_key,
                accession=accession,
                domain=domain_index.get(accession),
                background_count=background_count,
                dataset_count=dataset_count,
                percent_background=percent_background,
                percent_dataset=percent_dataset,
                log2_fold_change=log2_fold_change(percent_dataset, percent_background),
                p_value=p_value,
                # bonferroni correction
                significant_raw=p_value < significance_level / term_count,
            )
        )
    return records
