"""
Multiple hypothesis testing correction of GO term p-values.

The default "step_up" method ranks the p-values from largest to smallest and
compares each one, scaled by n / (n - rank), to the significance level. Each
term is judged on its own scaled p-value; no running minimum is taken across
ranks as in the textbook Benjamini-Hochberg procedure. That procedure is
available as "fdr_bh".
"""

import logging
import math
from typing import List, Sequence, Tuple

from statsmodels.stats.multitest import multipletests

from goea.enrichment import EnrichmentRecord

logger = logging.getLogger(__name__)

STEP_UP = "step_up"
FDR_BH = "fdr_bh"
CORRECTION_METHODS = (STEP_UP, FDR_BH)


def rank_p_values(p_values: Sequence[float]) -> List[Tuple[float, int]]:
    """
    Sort (p-value, index) pairs from the largest p-value to the smallest.

    Ties keep their original order and nan p-values are placed last.
    """
    indexed = list(zip(p_values, range(len(p_values))))
    return sorted(indexed, key=lambda pair: -math.inf if math.isnan(pair[0]) else pair[0], reverse=True)


def step_up_significance(p_values: Sequence[float], alpha: float) -> List[bool]:
    """
    Significance flags of the step-up correction, in the order of `p_values`.
    """
    n = len(p_values)
    significant = [False] * n
    for rank, (p_value, index) in enumerate(rank_p_values(p_values)):
        if rank == 0:
            significant[index] = p_value < alpha
        else:
            significant[index] = p_value * n / (n - rank) < alpha
    return significant


def fdr_bh_significance(p_values: Sequence[float], alpha: float) -> List[bool]:
    """
    Significance flags of the Benjamini-Hochberg procedure, as in statsmodels.

    nan p-values are never significant and do not count as tests.
    """
    significant = [False] * len(p_values)
    tested = [index for index, p_value in enumerate(p_values) if not math.isnan(p_value)]
    if not tested:
        return significant
    reject, _, _, _ = multipletests([p_values[i] for i in tested], alpha=alpha, method="fdr_bh")
    for index, rejected in zip(tested, reject):
        significant[index] = bool(rejected)
    return significant


def correct(records: List[EnrichmentRecord], alpha: float, method: str = STEP_UP) -> List[EnrichmentRecord]:
    """
    Set the adjusted significance flag of every record.

    Args:
        records: Enrichment records, in any order
        alpha: Significance level
        method: "step_up" (default) or "fdr_bh"

    Returns:
        The same records, in the same order
    """
    if method == STEP_UP:
        significance_function = step_up_significance
    elif method == FDR_BH:
        significance_function = fdr_bh_significance
    else:
        logger.error(f"Unsupported correction method: {method}")
        raise ValueError(f"Unsupported correction method: {method}")

    if not records:
        return records

    flags = significance_function([record.p_value for record in records], alpha)
    for record, significant in zip(records, flags):
        record.significant_adjusted = significant

    logger.info(f"{sum(flags)} of {len(records)} GO terms significant after {method} correction at {alpha}")
    return records
