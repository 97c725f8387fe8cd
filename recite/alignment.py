"""LCS alignment between a reference and a recalled attempt, plus substitution merging."""

from typing import List, Sequence, Union

from recite.kinds import DiffKind, TokenMode
from recite.models import DiffUnit, Token
from recite.tokenizer import tokenize


TokenLike = Union[Token, str]


def _text(tok: TokenLike) -> str:
    return tok.text if isinstance(tok, Token) else tok


def _display(tok: TokenLike) -> str:
    if isinstance(tok, Token):
        return tok.surface or tok.text
    return tok


def lcs_table(reference: Sequence[str], attempt: Sequence[str]) -> List[List[int]]:
    """dp[i][j] = LCS length of reference[:i] and attempt[:j]."""
    n, m = len(reference), len(attempt)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        for j in range(1, m + 1):
            if reference[i - 1] == attempt[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])
    return dp


def align(reference: Sequence[TokenLike], attempt: Sequence[TokenLike]) -> List[DiffUnit]:
    """
    Align two token sequences and classify every element.

    Produces only CORRECT / MISSING / EXTRA. Each reference element appears
    exactly once as CORRECT or MISSING, each attempt element exactly once as
    CORRECT or EXTRA. On ties the backtrack prefers EXTRA over MISSING, so
    a substitution comes out as MISSING followed by EXTRA in forward order.
    """
    ref = [_text(t) for t in reference]
    att = [_text(t) for t in attempt]
    dp = lcs_table(ref, att)

    units: List[DiffUnit] = []
    i, j = len(ref), len(att)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and ref[i - 1] == att[j - 1]:
            units.append(DiffUnit(DiffKind.CORRECT, _display(reference[i - 1]), i - 1))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            units.append(DiffUnit(DiffKind.EXTRA, _display(attempt[j - 1]), j - 1))
            j -= 1
        else:
            units.append(DiffUnit(DiffKind.MISSING, _display(reference[i - 1]), i - 1))
            i -= 1

    units.reverse()
    return units


def merge_substitutions(units: Sequence[DiffUnit]) -> List[DiffUnit]:
    """
    Collapse each MISSING immediately followed by EXTRA into one WRONG.

    The WRONG unit shows the attempt's text at the reference position.
    Single left-to-right pass; running it on its own output changes nothing.
    """
    merged: List[DiffUnit] = []
    k = 0
    while k < len(units):
        cur = units[k]
        nxt = units[k + 1] if k + 1 < len(units) else None
        if cur.kind is DiffKind.MISSING and nxt is not None and nxt.kind is DiffKind.EXTRA:
            merged.append(DiffUnit(DiffKind.WRONG, nxt.text, cur.index))
            k += 2
        else:
            merged.append(cur)
            k += 1
    return merged


def diff_texts(
    reference: str,
    attempt: str,
    mode: Union[TokenMode, str] = TokenMode.CHAR,
) -> List[DiffUnit]:
    """Tokenize both texts, align them and merge substitutions."""
    return merge_substitutions(align(tokenize(reference, mode), tokenize(attempt, mode)))
