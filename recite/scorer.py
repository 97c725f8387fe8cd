"""Recitation scoring: per-passage diffs and an aggregate accuracy ratio."""

import logging
import re
from typing import Dict, List, Mapping, Union

from recite.alignment import align, merge_substitutions
from recite.kinds import DiffKind, TokenMode
from recite.models import DiffUnit, ScoreResult
from recite.tokenizer import tokenize

logger = logging.getLogger("recite.scorer")

# CRLF is a single break
_LINE_BREAK_RE = re.compile('\r\n|[\n\r\x0b\x0c\x85\u2028\u2029]')


def split_attempt(raw_attempt: str, n_passages: int) -> List[str]:
    """
    One attempt line per passage index; surrounding whitespace trimmed.

    Lines beyond n_passages are ignored, missing lines become ''.
    """
    lines = [line.strip() for line in _LINE_BREAK_RE.split(raw_attempt)] if raw_attempt else []
    return [lines[i] if i < len(lines) else '' for i in range(n_passages)]


def score(
    canonical_texts_by_passage: Mapping[str, str],
    raw_attempt: str,
    mode: Union[TokenMode, str] = TokenMode.CHAR,
) -> ScoreResult:
    """
    Score a multi-line attempt against the canonical text of each passage.

    Args:
        canonical_texts_by_passage: passage_id -> canonical text, in recitation order
        raw_attempt:                user text, one line per passage
        mode:                       token granularity (character by default)

    Returns:
        ScoreResult with per-passage verdicts and merged diffs. accuracy is
        correct_units / total_units, except that an empty reference with an
        empty attempt scores 1.0 and an empty reference with a non-empty
        attempt scores 0.0.
    """
    passage_ids = list(canonical_texts_by_passage.keys())
    attempts = split_attempt(raw_attempt, len(passage_ids))

    diff_by_passage: Dict[str, List[DiffUnit]] = {}
    passage_correct: Dict[str, bool] = {}
    total_units = 0
    correct_units = 0

    for pid, attempt_text in zip(passage_ids, attempts):
        reference_tokens = tokenize(canonical_texts_by_passage[pid], mode)
        attempt_tokens = tokenize(attempt_text, mode)
        diff = merge_substitutions(align(reference_tokens, attempt_tokens))

        diff_by_passage[pid] = diff
        passage_correct[pid] = all(u.kind is DiffKind.CORRECT for u in diff)
        total_units += len(reference_tokens)
        correct_units += sum(1 for u in diff if u.kind is DiffKind.CORRECT)

    if total_units == 0:
        accuracy = 1.0 if not raw_attempt.strip() else 0.0
    else:
        accuracy = correct_units / total_units

    logger.debug(
        "Scored %d passage(s): %d/%d units correct (accuracy=%.3f)",
        len(passage_ids), correct_units, total_units, accuracy,
    )

    return ScoreResult(
        total_units=total_units,
        correct_units=correct_units,
        accuracy=accuracy,
        passage_correct=passage_correct,
        diff_by_passage=diff_by_passage,
    )
