"""
Search matcher - tim token chua query (substring), khong phan biet
hoa/thuong va dau (diacritic-insensitive).

"café" match "CAFE", "Ångström" match "angstrom".

Ket qua la SET cac index: moi token chi tinh mot lan
du query xuat hien nhieu lan ben trong token.
"""

import unicodedata
from dataclasses import dataclass, field
from typing import FrozenSet, Sequence


@dataclass(frozen=True)
class SearchResult:
    """Matched index set cho mot query da normalize."""

    query: str = ""
    indices: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def count(self) -> int:
        return len(self.indices)

    @property
    def is_active(self) -> bool:
        return bool(self.query)


EMPTY_RESULT = SearchResult()


def normalize_query(query: str) -> str:
    """Trim whitespace dau/cuoi. Query rong = search inactive."""
    return query.strip() if query else ""


def fold_text(text: str) -> str:
    """
    Dua text ve dang so sanh: NFKD, bo combining marks, casefold.

    NFKD cung gop fullwidth ve ASCII ("ＡＢＣ" -> "abc").
    """
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def match_tokens(tokens: Sequence[str], query: str) -> SearchResult:
    """
    Tim cac token chua query.

    Args:
        tokens: Token sequence hien tai
        query: Query raw (se duoc normalize)

    Returns:
        SearchResult voi normalized query va matched indices
    """
    normalized = normalize_query(query)
    if not normalized:
        return EMPTY_RESULT

    needle = fold_text(normalized)
    if not needle:
        # Query chi gom combining marks -> khong match gi
        return SearchResult(query=normalized)

    matched = frozenset(
        index for index, token in enumerate(tokens) if needle in fold_text(token)
    )
    return SearchResult(query=normalized, indices=matched)
