"""File-import collaborators: read a chosen text file for the document store.

PathFileImporter reads a known path with validation. PromptFilePicker asks
the user for a path first (tab-completion via prompt_toolkit); an empty
answer is a cancel, not an error.
"""

import json
import logging
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import PathCompleter
from prompt_toolkit.formatted_text import HTML

from knowledge.config import ALLOWED_IMPORT_EXTENSIONS, MAX_IMPORT_FILE_SIZE
from knowledge.errors import InvalidImportContent
from knowledge.models import ImportedFile
from knowledge.sanitizer import sanitize_content

logger = logging.getLogger("docllm.importer")


class PathFileImporter:
    """Read and validate a text file from disk."""

    def __init__(
        self,
        allowed_extensions: tuple[str, ...] = ALLOWED_IMPORT_EXTENSIONS,
        max_bytes: int = MAX_IMPORT_FILE_SIZE,
    ):
        self.allowed_extensions = allowed_extensions
        self.max_bytes = max_bytes

    def read(self, filepath: str | Path) -> ImportedFile:
        """Validate extension, size and (for .json) syntax, then read.

        Raises:
            InvalidImportContent: the file is rejected
            OSError: the file can't be read
        """
        path = Path(filepath).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {filepath}")

        ext = path.suffix.lower()
        if ext not in self.allowed_extensions:
            raise InvalidImportContent(f"File type {ext or '(none)'} not allowed")

        if path.stat().st_size > self.max_bytes:
            raise InvalidImportContent(
                f"File too large. Max size: {self.max_bytes / 1024 / 1024:g}MB"
            )

        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidImportContent(f"File is not valid UTF-8 text: {e}") from e

        if ext == ".json":
            try:
                json.loads(content)
            except json.JSONDecodeError as e:
                raise InvalidImportContent("Invalid JSON file") from e

        logger.info("Read %s (%d chars)", path.name, len(content))
        return ImportedFile(content=sanitize_content(content), file_name=path.name)


class PromptFilePicker:
    """Interactive picker: prompt for a path, then read it with PathFileImporter."""

    def __init__(self, importer: PathFileImporter | None = None, session: PromptSession | None = None):
        self.importer = importer or PathFileImporter()
        self._session = session

    @property
    def session(self) -> PromptSession:
        if self._session is None:
            self._session = PromptSession(
                completer=PathCompleter(expanduser=True),
                complete_while_typing=False,
            )
        return self._session

    def pick_and_read(self) -> ImportedFile | None:
        try:
            answer = self.session.prompt(
                HTML("<ansicyan>file to import</ansicyan> <ansiwhite>(empty to cancel)&gt; </ansiwhite>")
            ).strip()
        except (EOFError, KeyboardInterrupt):
            return None
        if not answer:
            return None
        return self.importer.read(answer)
