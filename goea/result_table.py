import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

import pandas as pd

from goea.domain_lookup import DomainIndex
from goea.enrichment import EnrichmentRecord, compute
from goea.mapping_store import MappingIndex
from goea.multiple_testing import STEP_UP, correct

logger = logging.getLogger(__name__)

DEFAULT_SIGNIFICANCE = 0.05

COLUMN_ORDER = [
    "",
    "GO Accession",
    "GO Term",
    "GO Domain",
    "Frequency All",
    "Frequency Dataset",
    "Frequency All (%)",
    "Frequency Dataset (%)",
    "Log2 Diff",
    "p-value",
    "Bonferroni",
    "Significant",
]


def max_abs_log2_fold_change(records: Iterable[EnrichmentRecord]) -> float:
    """Ceiling of the largest finite absolute log2 fold change, 0.0 if there is none."""
    finite = [abs(record.log2_fold_change) for record in records if math.isfinite(record.log2_fold_change)]
    return float(math.ceil(max(finite))) if finite else 0.0


def validate_significance_level(significance_level: float) -> float:
    if not 0.0 < significance_level < 1.0:
        raise ValueError(f"Significance level must be between 0 and 1, got {significance_level}")
    return significance_level


class GOEnrichment:
    """
    GO term enrichment results for one dataset, mapping set and significance level.
    """

    def __init__(
        self,
        mapping_index: MappingIndex,
        domain_index: DomainIndex,
        dataset_proteins: Iterable[str],
        significance_level: float = DEFAULT_SIGNIFICANCE,
        correction_method: str = STEP_UP,
        name: str = None,
    ):
        """
        Compute the enrichment of every GO term of the mapping set.

        Args:
            mapping_index: Background GO mappings
            domain_index: GO domain lookup
            dataset_proteins: Resolved accessions of the dataset proteins
            significance_level: Significance level, between 0 and 1
            correction_method: Multiple testing correction, "step_up" or "fdr_bh"
            name: Name of the analysis
        """
        self.mapping_index = mapping_index
        self.domain_index = domain_index
        self.dataset_proteins: Set[str] = set(dataset_proteins)
        self.significance_level = validate_significance_level(significance_level)
        self.correction_method = correction_method
        self.name = (
            name
            if name
            else f"{mapping_index.name or 'go'}_{len(self.dataset_proteins)}_{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        )
        self._results: List[EnrichmentRecord] = self._compute_enrichment()
        self._max_abs_log2_fold_change = max_abs_log2_fold_change(self._results)

    @property
    def results(self) -> List[EnrichmentRecord]:
        """The enrichment records, in ascending GO term order."""
        return self._results

    @property
    def max_abs_log2_fold_change(self) -> float:
        return self._max_abs_log2_fold_change

    def _compute_enrichment(self) -> List[EnrichmentRecord]:
        records = compute(
            self.mapping_index,
            self.domain_index,
            self.dataset_proteins,
            significance_level=self.significance_level,
        )
        if not records:
            logger.warning(f"No GO terms found in {self.mapping_index.name or 'the mapping set'}")
        return correct(records, self.significance_level, method=self.correction_method)

    def significant_terms(self, adjusted: bool = True) -> List[EnrichmentRecord]:
        """Return the records flagged significant, after correction by default."""
        if adjusted:
            return [record for record in self._results if record.significant_adjusted]
        return [record for record in self._results if record.significant_raw]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the enrichment results as a pandas dataframe."""
        df = pd.DataFrame(
            {
                "": list(range(1, len(self._results) + 1)),
                "GO Accession": [record.accession for record in self._results],
                "GO Term": [record.term_key for record in self._results],
                "GO Domain": [record.domain for record in self._results],
                "Frequency All": [record.background_count for record in self._results],
                "Frequency Dataset": [record.dataset_count for record in self._results],
                "Frequency All (%)": [record.percent_background for record in self._results],
                "Frequency Dataset (%)": [record.percent_dataset for record in self._results],
                "Log2 Diff": [record.log2_fold_change for record in self._results],
                "p-value": [record.p_value for record in self._results],
                "Bonferroni": [record.significant_raw for record in self._results],
                "Significant": [record.significant_adjusted for record in self._results],
            }
        )
        return df[COLUMN_ORDER]

    def plot_frame(self, selected: Optional[Set[str]] = None) -> pd.DataFrame:
        """
        Return the rows to draw in the frequency and log2 difference plots.

        Args:
            selected: GO term keys to include, all terms if None

        Returns:
            A dataframe with the term, both frequencies, the log2 difference
            (non-finite values drawn as 0) and the bar direction
        """
        rows = []
        for record in self._results:
            if selected is not None and record.term_key not in selected:
                continue
            if not record.significant_adjusted:
                direction = "not significant"
            elif record.log2_fold_change > 0:
                direction = "up"
            else:
                direction = "down"
            rows.append(
                {
                    "GO Term": record.term_key,
                    "Frequency All (%)": record.percent_background,
                    "Frequency Dataset (%)": record.percent_dataset,
                    "Log2 Diff": record.log2_fold_change if math.isfinite(record.log2_fold_change) else 0.0,
                    "direction": direction,
                }
            )
        return pd.DataFrame(rows, columns=["GO Term", "Frequency All (%)", "Frequency Dataset (%)", "Log2 Diff", "direction"])

    def to_json(self) -> str:
        """Return the enrichment results as a JSON string."""
        return json.dumps([record.to_dict() for record in self._results], indent=4, separators=(",", ": "))

    def to_tsv(self) -> str:
        """Return the enrichment results as a TSV spreadsheet."""
        return self.to_dataframe().to_csv(sep="\t", index=False)

    def to_snapshot(self) -> Dict[str, Any]:
        """Return the input parameters and the enrichment results."""
        return {
            "name": self.name,
            "mapping_set": self.mapping_index.name,
            "dataset_size": len(self.dataset_proteins),
            "population_size": self.mapping_index.total_background_proteins,
            "background_proteins": self.mapping_index.distinct_protein_count,
            "go_terms": self.mapping_index.term_count,
            "go_domains_available": self.domain_index.available,
            "significance_level": self.significance_level,
            "correction_method": self.correction_method,
            "max_abs_log2_fold_change": self._max_abs_log2_fold_change,
            "significant_terms": len(self.significant_terms()),
            "results": [record.to_dict() for record in self._results],
        }
