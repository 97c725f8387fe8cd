"""Recitation test statistics."""

from typing import Dict, List, Sequence

from recite.kinds import RecitationScope
from recite.models import RecitationResult


def average_accuracy(results: Sequence[RecitationResult]) -> float:
    if not results:
        return 0.0
    return sum(r.accuracy for r in results) / len(results)


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def plan_statistics(results: Sequence[RecitationResult]) -> Dict:
    """
    Summarize a plan's test history.

    Returns:
        {total_tests, average_accuracy, best_accuracy, worst_accuracy,
         daily_tests, cumulative_tests, average_pct, best_pct, worst_pct}
        All accuracies are 0.0 when there are no results.
    """
    accuracies = [r.accuracy for r in results]
    avg = average_accuracy(results)
    best = max(accuracies) if accuracies else 0.0
    worst = min(accuracies) if accuracies else 0.0
    return {
        'total_tests': len(results),
        'average_accuracy': round(avg, 4),
        'best_accuracy': round(best, 4),
        'worst_accuracy': round(worst, 4),
        'daily_tests': sum(1 for r in results if r.scope is RecitationScope.DAILY),
        'cumulative_tests': sum(1 for r in results if r.scope is RecitationScope.CUMULATIVE),
        'average_pct': _pct(avg),
        'best_pct': _pct(best),
        'worst_pct': _pct(worst),
    }


def weakest_passages(results: Sequence[RecitationResult], top_n: int = 5) -> List[tuple]:
    """Passages missed most often across results: [(passage_id, miss_count), ...]."""
    misses: Dict[str, int] = {}
    for r in results:
        for pid in r.incorrect_passage_ids:
            misses[pid] = misses.get(pid, 0) + 1
    ranked = sorted(misses.items(), key=lambda kv: (-kv[1], kv[0]))
    return ranked[:top_n]
