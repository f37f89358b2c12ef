"""Keyword extraction, synonym expansion and match-count ranking.

Search is plain substring matching over a document's lowercased
``title content tags`` text:

1. The query is tokenized and stop words / short tokens are dropped.
2. The keywords are widened with a synonym table in both directions
   ("upload" pulls in "add"; "add" pulls in "upload").
3. A document matches if any expanded keyword occurs in it, or, for
   multi-word queries, if every raw keyword occurs in it.
4. Matches are ordered by how many distinct expanded keywords they contain.
"""

import re

from knowledge.models import Document

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "how", "do", "i", "you", "it", "is", "are", "can", "will",
    "would",
})

SYNONYMS: dict[str, list[str]] = {
    "upload": ["add", "share", "import", "load", "insert", "submit"],
    "document": ["doc", "file", "text", "content", "paper"],
    "add": ["upload", "create", "insert", "new", "make"],
    "how": ["guide", "tutorial", "steps", "instructions", "way"],
    "delete": ["remove", "erase", "clear", "destroy"],
    "edit": ["modify", "change", "update", "alter"],
    "search": ["find", "look", "locate", "query"],
}

MIN_KEYWORD_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def document_text(doc: Document) -> str:
    """Lowercased haystack that every keyword is matched against."""
    return f"{doc.title} {doc.content} {' '.join(doc.tags)}".lower()


class KeywordEngine:
    """Stateless search over a list of documents."""

    def __init__(
        self,
        synonyms: dict[str, list[str]] | None = None,
        stop_words: frozenset[str] = STOP_WORDS,
    ):
        self.synonyms = synonyms if synonyms is not None else SYNONYMS
        self.stop_words = stop_words

    def extract_keywords(self, query: str) -> list[str]:
        words = _PUNCTUATION.sub("", query.lower()).split()
        return [
            w for w in words
            if len(w) >= MIN_KEYWORD_LENGTH and w not in self.stop_words
        ]

    def expand_keywords(self, keywords: list[str]) -> set[str]:
        expanded = set(keywords)
        for keyword in keywords:
            expanded.update(self.synonyms.get(keyword, []))
            for key, values in self.synonyms.items():
                if keyword in values:
                    expanded.add(key)
        return expanded

    @staticmethod
    def match_count(doc: Document, expanded: set[str]) -> int:
        """Number of distinct expanded keywords present in the document."""
        text = document_text(doc)
        return sum(1 for keyword in expanded if keyword.lower() in text)

    def matches(self, doc: Document, keywords: list[str], expanded: set[str]) -> bool:
        text = document_text(doc)
        if any(keyword.lower() in text for keyword in expanded):
            return True
        # Phrase fallback: every raw keyword present
        return len(keywords) > 1 and all(k.lower() in text for k in keywords)

    def search(self, documents: list[Document], query: str) -> list[Document]:
        """Matching documents, most keyword hits first; ties keep store order."""
        keywords = self.extract_keywords(query)
        expanded = self.expand_keywords(keywords)
        results = [doc for doc in documents if self.matches(doc, keywords, expanded)]
        # sorted() is stable
        return sorted(results, key=lambda d: self.match_count(d, expanded), reverse=True)
