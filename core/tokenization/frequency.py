"""
Frequency index - dem so lan xuat hien cua moi token.

So sanh exact (case-sensitive, Unicode-exact). Dict giu thu tu
first-occurrence nen export CSV/JSON co thu tu on dinh.

Invariants:
- sum(counts.values()) == total == len(tokens)
- len(counts) == unique
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple


def build_frequency_map(tokens: Sequence[str]) -> Dict[str, int]:
    """Map token -> so lan xuat hien, theo thu tu first-occurrence."""
    counts: Dict[str, int] = {}
    for token in tokens:
        counts[token] = counts.get(token, 0) + 1
    return counts


@dataclass(frozen=True)
class FrequencyIndex:
    """Ket qua index tan suat cho mot TokenSequence."""

    counts: Dict[str, int] = field(default_factory=dict)
    total: int = 0

    @property
    def unique(self) -> int:
        return len(self.counts)

    def count_of(self, token: str) -> int:
        return self.counts.get(token, 0)

    def most_common(self, n: int = 10) -> List[Tuple[str, int]]:
        """
        Top-n token theo tan suat giam dan.

        Tie-break theo thu tu first-occurrence (sorted() la stable).
        """
        if n <= 0:
            return []
        ranked = sorted(self.counts.items(), key=lambda item: -item[1])
        return ranked[:n]


def index_tokens(tokens: Sequence[str]) -> FrequencyIndex:
    """Build FrequencyIndex tu token sequence. O(n), khong bao gio fail."""
    if not tokens:
        return FrequencyIndex()
    return FrequencyIndex(counts=build_frequency_map(tokens), total=len(tokens))
