"""Text normalization and tokenization for recitation comparison."""

import re
from typing import List, Union

from recite.kinds import TokenMode
from recite.models import Token


# Characters removed before comparison: . , ! ? ; : ( ) [ ] " '
_PUNCTUATION_RE = re.compile(r'[.,!?;:()\[\]"\']')


def normalize(text: str) -> str:
    """Lowercase and strip the fixed punctuation set."""
    return _PUNCTUATION_RE.sub('', text.lower())


def tokenize(text: str, mode: Union[TokenMode, str] = TokenMode.WORD) -> List[Token]:
    """
    Split text into comparable tokens.

    word: whitespace-separated fragments of the normalized text, empties dropped.
    char: every normalized character, whitespace included.
    """
    mode = TokenMode(mode)
    normalized = normalize(text)

    if mode is TokenMode.CHAR:
        return [Token(text=ch, surface=ch) for ch in normalized]

    words = normalized.split()
    # Keep the user's spelling for display when fragments line up one-to-one
    raw = [frag for frag in text.split() if normalize(frag)]
    surfaces = raw if len(raw) == len(words) else words
    return [Token(text=w, surface=s) for w, s in zip(words, surfaces)]


def token_texts(tokens: List[Token]) -> List[str]:
    return [t.text for t in tokens]
