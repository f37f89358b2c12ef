"""Slash-command dispatcher for the chat stream.

Chat text starting with '/' is routed here instead of the LLM:

    /docs [filter]     List documents, optionally filtered by title or tag
    /search <query>    Search documents
    /add               Create a document: /add [--type=markdown] <title> | <tags> | <content>
    /edit <id> f=v     Change one field (title, content, tags or type)
    /show <id>         Show one document
    /delete <id>       Delete a document
    /import [path]     Import a text file
    /upload            How to add documents
    /status            Store status
    /clear             Clear chat history
    /help              Show available commands

Handlers always return a user-facing string. Failures inside a handler are
rendered as an error message, never raised to the chat layer.
"""

import logging
from datetime import datetime
from typing import Callable

from pydantic import BaseModel

from knowledge.errors import KnowledgeStoreError, NotACommand, NotFound
from knowledge.importer import PathFileImporter
from knowledge.models import Document, DocumentKind, DocumentUpdate, MutationResult, NewDocument
from knowledge.store import DocumentStore, FilePicker

logger = logging.getLogger("docllm.commands")

SEARCH_PREVIEW_CHARS = 100
SHOW_PREVIEW_CHARS = 2000

EDITABLE_FIELDS = ("title", "content", "tags", "type")


class SlashCommand(BaseModel):
    name: str
    description: str
    usage: str
    handler: Callable[[str], str]


def _format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "never"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _split_tags(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def _unknown_kind_message() -> str:
    kinds = ", ".join(kind.value for kind in DocumentKind)
    return f"❌ Unknown document type. Use one of: {kinds}"


def _with_warning(message: str, result: MutationResult) -> str:
    if result.persisted:
        return message
    return f"{message}\n\n⚠️ {result.warning}"


class CommandDispatcher:
    """Registry of slash commands keyed by lowercased name."""

    def __init__(
        self,
        store: DocumentStore,
        picker: FilePicker | None = None,
        path_importer: PathFileImporter | None = None,
        on_clear: Callable[[], None] | None = None,
    ):
        self.store = store
        self.picker = picker
        self.path_importer = path_importer or PathFileImporter()
        self.on_clear = on_clear
        self._commands: dict[str, SlashCommand] = {}
        self._register_default_commands()

    # ── Registry ─────────────────────────────────────

    def register(
        self, name: str, description: str, usage: str, handler: Callable[[str], str]
    ) -> SlashCommand:
        """Add (or replace) a command."""
        command = SlashCommand(
            name=name.lower(), description=description, usage=usage, handler=handler
        )
        self._commands[command.name] = command
        return command

    def commands(self) -> list[SlashCommand]:
        return list(self._commands.values())

    def names(self) -> list[str]:
        return list(self._commands)

    def _register_default_commands(self) -> None:
        self.register(
            "docs", "List documents, filtered by title or tag", "/docs [filter]", self.cmd_docs
        )
        self.register("search", "Search documents", "/search <query>", self.cmd_search)
        self.register("help", "Show available commands", "/help", self.cmd_help)
        self.register("clear", "Clear chat history", "/clear", self.cmd_clear)
        self.register("status", "Show system status", "/status", self.cmd_status)
        self.register("upload", "Show how to upload documents", "/upload", self.cmd_upload)
        self.register("import", "Import a file from your computer", "/import [path]", self.cmd_import)
        self.register(
            "add", "Create a document", "/add [--type=<kind>] <title> | <tags> | <content>", self.cmd_add
        )
        self.register("edit", "Change a document field", "/edit <id> <field>=<value>", self.cmd_edit)
        self.register("show", "Show a document", "/show <id>", self.cmd_show)
        self.register("delete", "Delete a document", "/delete <id>", self.cmd_delete)

    # ── Dispatch ─────────────────────────────────────

    @staticmethod
    def is_command(text: str) -> bool:
        return text.strip().startswith("/")

    def execute(self, text: str) -> str:
        """Run a slash command and return its reply.

        Raises NotACommand if ``text`` doesn't start with '/'.
        """
        trimmed = text.strip()
        if not trimmed.startswith("/"):
            raise NotACommand("Not a slash command")

        parts = trimmed[1:].split(" ")
        name = parts[0].lower()
        args = " ".join(parts[1:])

        command = self._commands.get(name)
        if command is None:
            available = ", ".join(self._commands)
            return (
                f"❌ Unknown command: /{name}\n\n"
                f"Available commands: {available}\n\n"
                "Type `/help` for more info."
            )

        logger.info("Executing /%s %s", name, args[:100])
        try:
            return command.handler(args)
        except Exception as e:
            logger.exception("Error executing command /%s", name)
            return f"❌ Error executing command: {e}"

    def suggestions(self, partial: str) -> list[str]:
        """Completions for a partially typed command, e.g. '/se' -> ['/search']."""
        if not partial.startswith("/"):
            return []
        prefix = partial[1:].lower()
        return [f"/{name}" for name in self._commands if name.startswith(prefix)]

    # ── Handlers ─────────────────────────────────────

    def cmd_docs(self, term: str = "") -> str:
        term = term.strip()
        docs = self.store.filter(term) if term else self.store.load_all()
        if not docs:
            if term:
                return f'📚 No documents match "{term}"'
            return '📚 No documents found. Use "/import" or "/add" to add some!'

        doc_list = "\n".join(
            f"• **{doc.title}** ({doc.kind.value}) - {', '.join(doc.tags)}  `{doc.id}`"
            for doc in docs
        )
        if term:
            return f'📚 **Documents matching "{term}" ({len(docs)})**:\n\n{doc_list}'
        return f"📚 **Available Documents ({len(docs)})**:\n\n{doc_list}"

    def cmd_search(self, query: str) -> str:
        query = query.strip()
        if not query:
            return "❌ Please provide a search query. Usage: `/search <your query>`"

        results = self.store.search(query)
        if not results:
            return f'🔍 No documents found for "{query}"'

        result_list = "\n".join(
            f"• **{doc.title}**: {doc.content[:SEARCH_PREVIEW_CHARS]}..." for doc in results
        )
        return f'🔍 **Search Results for "{query}" ({len(results)})**:\n\n{result_list}'

    def cmd_help(self, args: str = "") -> str:
        command_list = "\n".join(
            f"• **{cmd.usage}** - {cmd.description}" for cmd in self._commands.values()
        )
        return f"🚀 **Available Slash Commands**:\n\n{command_list}\n\n💡 Type any command to use it!"

    def cmd_clear(self, args: str = "") -> str:
        if self.on_clear is None:
            return "🧹 Nothing to clear."
        self.on_clear()
        return "🧹 Chat cleared!"

    def cmd_status(self, args: str = "") -> str:
        stats = self.store.stats()
        used_mb = stats.total_bytes / 1024 / 1024
        cap_mb = stats.max_total_storage / 1024 / 1024
        state = "Active" if stats.document_count else "Empty"
        return (
            "📊 **System Status**:\n"
            f"• Documents: {stats.document_count} / {stats.max_documents}\n"
            f"• Storage: {used_mb:.2f}MB / {cap_mb:g}MB\n"
            f"• Backend: {stats.backend} ({state})\n"
            f"• Last Updated: {_format_timestamp(stats.last_updated)}"
        )

    def cmd_upload(self, args: str = "") -> str:
        return (
            "📤 **How to Upload Documents**:\n\n"
            "1. Type `/import` and enter the path of the file to add\n"
            "   (or `/import <path>` to skip the prompt)\n"
            "2. Supported files: .txt, .md, .json, .csv\n"
            "3. The title comes from the file name and tags are added\n"
            "   automatically from the extension, file name and content\n"
            "4. Or write one directly: `/add Title | tag1, tag2 | content`\n"
            "   (add `--type=markdown` or `--type=json` before the title)\n"
            "5. Fix a field later with `/edit <id> title=New title`\n"
            "6. Check the result with `/docs [filter]` or `/search <query>`\n\n"
            "💡 **Pro tip**: Use descriptive file names so documents are easier to find!"
        )

    def cmd_import(self, path: str = "") -> str:
        try:
            if path.strip():
                result = self.store.import_file(self.path_importer.read(path.strip()))
            else:
                if self.picker is None:
                    return (
                        "❌ Interactive file import is not available here. "
                        "Use `/import <path>` instead."
                    )
                result = self.store.import_from_external_file(self.picker)
        except (KnowledgeStoreError, OSError) as e:
            logger.warning("Import failed: %s", e)
            return f"❌ Import failed: {e}"

        if result is None:
            return "❌ Import cancelled or no file selected."

        doc = result.document
        message = (
            "✅ **File imported successfully!**\n\n"
            f"📄 **{doc.title}**\n"
            f"📂 Type: {doc.kind.value}\n"
            f"🏷️ Tags: {', '.join(doc.tags)}\n\n"
            "The document is now available for search and AI queries!"
        )
        return _with_warning(message, result)

    def cmd_add(self, args: str) -> str:
        args = args.strip()
        kind = DocumentKind.TEXT
        if args.startswith("--type="):
            flag, _, args = args.partition(" ")
            try:
                kind = DocumentKind(flag.removeprefix("--type=").lower())
            except ValueError:
                return _unknown_kind_message()

        fields = args.split("|", 2)
        if len(fields) < 3 or not fields[0].strip() or not fields[2].strip():
            return (
                "❌ A document needs a title and content. "
                "Usage: `/add [--type=<kind>] <title> | <tags> | <content>`"
            )

        title, tags, content = (field.strip() for field in fields)
        new_doc = NewDocument(title=title, content=content, kind=kind, tags=_split_tags(tags))
        try:
            result = self.store.create(new_doc)
        except KnowledgeStoreError as e:
            logger.warning("Add failed: %s", e)
            return f"❌ Could not save document: {e}"

        doc = result.document
        return _with_warning(f"✅ Document created: **{doc.title}** `{doc.id}`", result)

    def cmd_edit(self, args: str) -> str:
        doc_id, _, assignment = args.strip().partition(" ")
        field, eq, value = assignment.partition("=")
        field, value = field.strip().lower(), value.strip()
        if not doc_id or not eq:
            return (
                "❌ Please provide a document id and a change. "
                "Usage: `/edit <id> <field>=<value>`"
            )
        if field not in EDITABLE_FIELDS:
            return f"❌ Unknown field: {field}. Editable fields: {', '.join(EDITABLE_FIELDS)}"

        if field == "tags":
            updates = DocumentUpdate(tags=_split_tags(value))
        elif field == "type":
            try:
                updates = DocumentUpdate(kind=DocumentKind(value.lower()))
            except ValueError:
                return _unknown_kind_message()
        elif not value:
            return f"❌ The {field} cannot be empty."
        else:
            updates = DocumentUpdate(**{field: value})

        try:
            result = self.store.update(doc_id, updates)
        except KnowledgeStoreError as e:
            logger.warning("Edit failed: %s", e)
            return f"❌ Could not save document: {e}"
        if result is None:
            return f"❌ Document not found: {doc_id}"
        return _with_warning(f"✏️ Updated **{result.document.title}** ({field})", result)

    def cmd_show(self, doc_id: str) -> str:
        if not doc_id.strip():
            return "❌ Please provide a document id. Usage: `/show <id>`"
        try:
            doc = self.store.require(doc_id.strip())
        except NotFound as e:
            return f"❌ {e}"
        return _render_full(doc)

    def cmd_delete(self, doc_id: str) -> str:
        if not doc_id.strip():
            return "❌ Please provide a document id. Usage: `/delete <id>`"
        result = self.store.delete(doc_id.strip())
        if not result:
            return f"❌ Document not found: {doc_id.strip()}"
        return _with_warning(f"🗑️ Deleted **{result.document.title}**", result)


def _render_full(doc: Document) -> str:
    content = doc.content
    if len(content) > SHOW_PREVIEW_CHARS:
        content = content[:SHOW_PREVIEW_CHARS] + "..."
    return (
        f"📄 **{doc.title}** ({doc.kind.value})\n"
        f"🏷️ Tags: {', '.join(doc.tags) or '-'}\n"
        f"🕒 Updated: {_format_timestamp(doc.updated_at)}\n\n"
        f"{content}"
    )
