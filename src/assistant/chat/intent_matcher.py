"""
Keyword-scored intent matching over the static knowledge base.

Scoring per entry:
- a keyword phrase found as a substring of the normalized query adds
  3 x (words in the phrase)
- otherwise each phrase word present in the query word list adds 1

The best entry wins only with a score of at least MIN_SCORE.
"""
import re
from typing import Iterable, Optional

from src.assistant.chat.knowledge_base import KNOWLEDGE_BASE, KnowledgeEntry

PHRASE_WEIGHT = 3
WORD_WEIGHT = 1
MIN_SCORE = 1

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def normalize_text(text: str) -> str:
    """Lowercase, drop everything outside [a-z0-9\\s], trim."""
    return _NON_ALNUM.sub("", text.lower()).strip()


def tokenize(normalized: str) -> list[str]:
    return normalized.split()


def score_entry(normalized_query: str, words: Iterable[str], entry: KnowledgeEntry) -> int:
    """Score one entry against an already normalized query."""
    word_set = set(words)
    score = 0
    for keyword in entry.keywords:
        phrase = normalize_text(keyword)
        phrase_words = tokenize(phrase)
        if not phrase_words:
            continue
        if phrase in normalized_query:
            score += PHRASE_WEIGHT * len(phrase_words)
        else:
            score += WORD_WEIGHT * sum(1 for w in phrase_words if w in word_set)
    return score


class IntentMatcher:
    """Selects the best canned response for a free-text message."""

    def __init__(self, knowledge_base: Optional[Iterable[KnowledgeEntry]] = None):
        self.knowledge_base = tuple(KNOWLEDGE_BASE if knowledge_base is None else knowledge_base)

    def best_entry(self, query: str) -> tuple[Optional[KnowledgeEntry], int]:
        """Return the winning entry and its score (entry is None below MIN_SCORE)."""
        normalized = normalize_text(query)
        words = tokenize(normalized)
        if not words:
            return None, 0

        best_score = 0
        best: Optional[KnowledgeEntry] = None
        for entry in self.knowledge_base:
            score = score_entry(normalized, words, entry)
            # Strictly greater: ties keep the earliest-declared entry
            if score > best_score:
                best_score = score
                best = entry

        if best_score < MIN_SCORE:
            return None, best_score
        return best, best_score

    def match(self, query: str) -> Optional[str]:
        entry, _ = self.best_entry(query)
        return entry.response if entry else None


_default_matcher = IntentMatcher()


def find_best_match(query: str) -> Optional[str]:
    """Match against the built-in knowledge base."""
    return _default_matcher.match(query)
