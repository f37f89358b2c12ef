"""Chat configuration — LLM backend, model and logging.

Both chat_session.py and run_chat.py import from here.
"""

import os

from dotenv import load_dotenv

load_dotenv()

OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:1b")
OLLAMA_TIMEOUT = float(os.getenv("OLLAMA_TIMEOUT", "120"))

# Prefix non-command messages with matching documents
USE_DOCUMENT_CONTEXT = os.getenv("USE_DOCUMENT_CONTEXT", "true").strip().lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_CONSOLE = os.getenv("LOG_TO_CONSOLE", "false").strip().lower() in ("1", "true", "yes")
