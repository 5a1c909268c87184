"""
Ranking engine - weekly vs current momentum rank.
Pure functions over SecurityRecord lists.
"""

import logging
import math
from numbers import Real
from typing import Any, List, Sequence

from analysis.models import RankedRecord, SecurityRecord


logger = logging.getLogger(__name__)


def _is_valid_score(value: Any) -> bool:
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def rank_securities(records: Sequence[SecurityRecord]) -> List[RankedRecord]:
    """
    Rank securities by current score and by prior-week score.

    Both orderings are stable descending sorts: records with equal scores
    keep their input order. Records whose score or prior_score is missing
    or non-numeric are dropped before ranking.

    Args:
        records: Security summaries for one refresh cycle

    Returns:
        RankedRecords ordered by rank (1..M), where
        rank_change = prior_rank - rank (positive means the record moved up)
    """
    valid = [
        (position, record) for position, record in enumerate(records)
        if _is_valid_score(record.score) and _is_valid_score(record.prior_score)
    ]

    dropped = len(records) - len(valid)
    if dropped:
        logger.info(f"Excluded {dropped} records without numeric scores from ranking")

    # sorted() is stable, including with reverse=True
    by_prior = sorted(valid, key=lambda item: item[1].prior_score, reverse=True)
    prior_ranks = {position: idx + 1 for idx, (position, _) in enumerate(by_prior)}

    by_current = sorted(valid, key=lambda item: item[1].score, reverse=True)

    ranked = []
    for idx, (position, record) in enumerate(by_current):
        rank = idx + 1
        prior_rank = prior_ranks[position]
        ranked.append(RankedRecord(
            record=record,
            rank=rank,
            prior_rank=prior_rank,
            rank_change=prior_rank - rank,
        ))

    return ranked
