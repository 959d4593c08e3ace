"""
Keyword extraction shared by the generated-query fallback and the web
query augmentation.
"""

import re
from typing import List

# Stop words filtered from bag-of-keywords queries
STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "about", "into", "through", "during", "before", "after",
    "above", "below", "up", "down", "out", "off", "over", "under", "again",
    "further", "then", "once", "here", "there", "when", "where", "why", "how",
    "all", "any", "both", "each", "few", "more", "most", "other", "some",
    "such", "no", "nor", "not", "only", "own", "same", "so", "than", "too",
    "very", "can", "will", "just", "should", "now", "i", "me", "my", "myself",
    "we", "our", "ours", "ourselves", "you", "your", "yours", "yourself",
    "yourselves", "he", "him", "his", "himself", "she", "her", "hers",
    "herself", "it", "its", "itself", "they", "them", "their", "theirs",
    "themselves", "what", "which", "who", "whom", "this", "that", "these",
    "those", "am", "is", "are", "was", "were", "be", "been", "being", "have",
    "has", "had", "having", "do", "does", "did", "doing", "would", "could",
    "ought", "might", "must",
})

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_NUMBER_RE = re.compile(r"^\d+$")


def extract_keywords(text: str, min_length: int = 3) -> List[str]:
    """
    Lowercase, strip punctuation, drop stop words, short words and pure
    numbers, and deduplicate while keeping first-seen order.
    """
    words = _PUNCTUATION_RE.sub(" ", text.lower()).split()
    keywords = [
        w for w in words
        if len(w) >= min_length and w not in STOP_WORDS and not _NUMBER_RE.match(w)
    ]
    return list(dict.fromkeys(keywords))


def generate_search_query(transcript: str, max_terms: int = 5, min_length: int = 3) -> str:
    """Build a keyword query from a transcript when no question was found."""
    return " ".join(extract_keywords(transcript, min_length=min_length)[:max_terms])
