"""Knowledge store configuration — limits, storage location and backend.

Config via environment variables (or .env):
    DOCLLM_DATA_DIR       — directory holding the documents index (default: ~/.docllm)
    DOCLLM_BACKEND        — file | sqlite | memory (default: file)
    MAX_DOCUMENTS         — max documents in the store (default: 1000)
    MAX_DOCUMENT_SIZE     — max bytes of content per document (default: 5 MiB)
    MAX_TOTAL_STORAGE     — max bytes of content across the store (default: 100 MiB)
    MAX_IMPORT_FILE_SIZE  — max size of an imported file (default: 10 MiB)
    CONTEXT_MAX_CHARS     — cap on the documentation section of a prompt, 0 = no cap
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.getenv("DOCLLM_DATA_DIR", str(Path.home() / ".docllm"))).expanduser()
STORAGE_BACKEND = os.getenv("DOCLLM_BACKEND", "file").strip().lower()

MAX_DOCUMENTS = int(os.getenv("MAX_DOCUMENTS", "1000"))
MAX_DOCUMENT_SIZE = int(os.getenv("MAX_DOCUMENT_SIZE", str(5 * 1024 * 1024)))
MAX_TOTAL_STORAGE = int(os.getenv("MAX_TOTAL_STORAGE", str(100 * 1024 * 1024)))
MAX_IMPORT_FILE_SIZE = int(os.getenv("MAX_IMPORT_FILE_SIZE", str(10 * 1024 * 1024)))

CONTEXT_MAX_CHARS = int(os.getenv("CONTEXT_MAX_CHARS", "12000"))

ALLOWED_IMPORT_EXTENSIONS = (".txt", ".md", ".json", ".csv")

# Max length of a sanitized title or tag
MAX_TITLE_LENGTH = 200

INDEX_KEY = "documents_index"
