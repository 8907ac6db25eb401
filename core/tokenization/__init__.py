"""
Package core.tokenization - Tokenize + frequency index + search.

Modules:
- engine: TokenizerEngine protocol, DefaultTokenizerEngine (jieba), SimpleTokenizerEngine
- frequency: build_frequency_map, FrequencyIndex
- search: normalize_query, fold_text, match_tokens
"""

from core.tokenization.engine import (
    DefaultTokenizerEngine,
    EngineOption,
    EngineUnavailableError,
    SimpleTokenizerEngine,
    TokenizerEngine,
    create_engine,
)
from core.tokenization.frequency import FrequencyIndex, build_frequency_map, index_tokens
from core.tokenization.search import (
    SearchResult,
    fold_text,
    match_tokens,
    normalize_query,
)

__all__ = [
    "DefaultTokenizerEngine",
    "EngineOption",
    "EngineUnavailableError",
    "SimpleTokenizerEngine",
    "TokenizerEngine",
    "create_engine",
    "FrequencyIndex",
    "build_frequency_map",
    "index_tokens",
    "SearchResult",
    "fold_text",
    "match_tokens",
    "normalize_query",
]
