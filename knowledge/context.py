"""Assemble retrieved documents into a bounded prompt for the LLM."""

import logging

from knowledge.config import CONTEXT_MAX_CHARS
from knowledge.models import Document
from knowledge.store import DocumentStore

logger = logging.getLogger("docllm.context")

BLOCK_SEPARATOR = "\n\n---\n\n"
TRUNCATION_MARKER = "\n... [truncated]"

CONTEXT_TEMPLATE = """\
You are a helpful assistant with access to documentation. Use the following documentation to answer the user's question. Be specific and reference the documentation when possible.

AVAILABLE DOCUMENTATION:
{documentation}

USER QUESTION: {query}

INSTRUCTIONS:
- Answer based on the documentation above
- If the documentation contains the answer, provide detailed steps
- If the documentation doesn't fully answer the question, say what information is available and what might be missing
- Be conversational and helpful"""


def render_document(doc: Document) -> str:
    return f"### {doc.title}\n{doc.content}\n**Tags:** {', '.join(doc.tags)}"


def join_blocks(blocks: list[str], max_chars: int = CONTEXT_MAX_CHARS) -> str:
    """Join rendered blocks, keeping the result within ``max_chars``.

    Blocks are taken in order. The first block that doesn't fit is cut
    short with a truncation marker; everything after it is dropped.
    ``max_chars <= 0`` means no cap.
    """
    if max_chars <= 0:
        return BLOCK_SEPARATOR.join(blocks)

    parts: list[str] = []
    total = 0
    for block in blocks:
        sep = BLOCK_SEPARATOR if parts else ""
        if total + len(sep) + len(block) <= max_chars:
            parts.append(sep + block)
            total += len(sep) + len(block)
            continue

        # Try to truncate the block to fit remaining budget
        remaining = max_chars - total - len(sep) - len(TRUNCATION_MARKER)
        if remaining > 0:
            parts.append(sep + block[:remaining] + TRUNCATION_MARKER)
        break
    return "".join(parts)


class ContextAssembler:
    """Turn a user query into an augmented prompt using the document store."""

    def __init__(self, store: DocumentStore, max_chars: int = CONTEXT_MAX_CHARS):
        self.store = store
        self.max_chars = max_chars

    def build_context(self, query: str) -> str:
        """Instructional prompt built from matching documents.

        Returns '' when nothing matches or no document fits in ``max_chars``.
        """
        documents = self.store.search(query)
        if not documents:
            return ""

        documentation = join_blocks([render_document(d) for d in documents], self.max_chars)
        if not documentation:
            logger.warning(
                "Context budget of %d chars too small for any document, sending prompt as is",
                self.max_chars,
            )
            return ""
        logger.info(
            "Built context from %d document(s), %d chars", len(documents), len(documentation)
        )
        return CONTEXT_TEMPLATE.format(documentation=documentation, query=query)

    def augment_prompt(self, prompt: str) -> str:
        """Prefix ``prompt`` with document context when any document matches."""
        context = self.build_context(prompt)
        if not context:
            return prompt
        return f"{context}\n\nUser question: {prompt}"
