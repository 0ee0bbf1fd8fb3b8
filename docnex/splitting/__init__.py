"""Deterministic splitters used directly and as the fallback for AI splitting."""

from docnex.splitting.classifiers import (
    build_hierarchy,
    header_pattern,
    split_by_header,
    split_by_paragraphs,
    split_by_pattern,
)
from docnex.splitting.patterns import (
    SMART_NUMBERING,
    PatternSuggestion,
    detect_index,
    generate_patterns_from_examples,
    suggest_target,
)
from docnex.splitting.smart_splitter import split_by_index, split_by_smart_numbering


__all__ = [
    "SMART_NUMBERING",
    "PatternSuggestion",
    "build_hierarchy",
    "detect_index",
    "generate_patterns_from_examples",
    "header_pattern",
    "split_by_header",
    "split_by_index",
    "split_by_paragraphs",
    "split_by_pattern",
    "split_by_smart_numbering",
    "suggest_target",
]
