"""Tests for knowledge/commands.py — slash-command parsing and handlers."""

from unittest.mock import MagicMock

import pytest

from knowledge.commands import CommandDispatcher
from knowledge.errors import InvalidImportContent, NotACommand
from knowledge.models import DocumentKind, ImportedFile
from knowledge.persistence import IndexRepository, MemoryBackend
from knowledge.store import DocumentStore

DEFAULT_COMMANDS = [
    "docs", "search", "help", "clear", "status", "upload", "import", "add", "edit", "show", "delete",
]


class FailingSaveBackend(MemoryBackend):
    def save(self, data: bytes) -> bool:
        return False


# ════════════════════════════════════════════════════════════
#  Registry / parsing
# ════════════════════════════════════════════════════════════

def test_default_commands_registered(dispatcher):
    assert dispatcher.names() == DEFAULT_COMMANDS


@pytest.mark.parametrize("text,expected", [
    ("/docs", True),
    ("   /search foo", True),
    ("hello /docs", False),
    ("", False),
    ("docs", False),
])
def test_is_command(dispatcher, text, expected):
    assert dispatcher.is_command(text) is expected


def test_execute_not_a_command_raises(dispatcher):
    with pytest.raises(NotACommand):
        dispatcher.execute("hello")


def test_execute_unknown_lists_all_commands(dispatcher):
    reply = dispatcher.execute("/bogus")
    assert "Unknown command: /bogus" in reply
    for name in DEFAULT_COMMANDS:
        assert name in reply


def test_execute_name_case_insensitive(dispatcher):
    assert "Available Slash Commands" in dispatcher.execute("/HELP")


def test_execute_passes_args_joined():
    handler = MagicMock(return_value="done")
    dispatcher = CommandDispatcher(DocumentStore(IndexRepository(MemoryBackend())))
    dispatcher.register("echo", "Echo", "/echo <text>", handler)
    assert dispatcher.execute("  /echo one two   three  ") == "done"
    handler.assert_called_once_with("one two   three")


def test_execute_handler_exception_becomes_message(dispatcher):
    dispatcher.register("boom", "Explodes", "/boom", MagicMock(side_effect=RuntimeError("kaput")))
    assert dispatcher.execute("/boom") == "❌ Error executing command: kaput"


def test_register_lowercases_and_replaces(dispatcher):
    dispatcher.register("Docs", "Custom", "/docs", lambda args: "custom docs")
    assert dispatcher.execute("/docs") == "custom docs"
    assert dispatcher.names().count("docs") == 1


def test_register_third_party_command(dispatcher):
    dispatcher.register("ping", "Ping", "/ping", lambda args: "pong")
    assert dispatcher.execute("/ping") == "pong"
    assert "/ping" in dispatcher.suggestions("/p")


def test_suggestions_prefix(dispatcher):
    assert dispatcher.suggestions("/s") == ["/search", "/status", "/show"]


def test_suggestions_all(dispatcher):
    assert dispatcher.suggestions("/") == [f"/{n}" for n in DEFAULT_COMMANDS]


def test_suggestions_requires_slash(dispatcher):
    assert dispatcher.suggestions("se") == []


def test_suggestions_no_match(dispatcher):
    assert dispatcher.suggestions("/zzz") == []


def test_commands_returns_metadata(dispatcher):
    search = next(c for c in dispatcher.commands() if c.name == "search")
    assert search.usage == "/search <query>"
    assert search.description == "Search documents"


# ════════════════════════════════════════════════════════════
#  /docs
# ════════════════════════════════════════════════════════════

def test_docs_empty(dispatcher):
    assert "No documents found" in dispatcher.execute("/docs")


def test_docs_lists_documents(populated_store):
    reply = CommandDispatcher(populated_store).execute("/docs")
    assert "Available Documents (2)" in reply
    assert "**Setup Guide** (markdown) - guide" in reply
    assert "**API Reference** (markdown) - api" in reply


def test_docs_filter_by_title(populated_store):
    reply = CommandDispatcher(populated_store).execute("/docs setup")
    assert 'Documents matching "setup" (1)' in reply
    assert "**Setup Guide**" in reply
    assert "API Reference" not in reply


def test_docs_filter_by_tag_case_insensitive(store, new_doc):
    store.create(new_doc(title="Notes", tags=["Kubernetes"]))
    store.create(new_doc(title="Other", tags=["misc"]))
    reply = CommandDispatcher(store).execute("/docs KUBE")
    assert "**Notes**" in reply
    assert "Other" not in reply


def test_docs_filter_no_match(populated_store):
    assert CommandDispatcher(populated_store).execute("/docs zzz") == '📚 No documents match "zzz"'


# ════════════════════════════════════════════════════════════
#  /search
# ════════════════════════════════════════════════════════════

def test_search_no_results(dispatcher):
    assert 'No documents found for "foo"' in dispatcher.execute("/search foo")


def test_search_requires_query(dispatcher):
    assert "Please provide a search query" in dispatcher.execute("/search")


def test_search_ignores_extra_spaces(dispatcher):
    assert dispatcher.execute("/search   foo ") == '🔍 No documents found for "foo"'


def test_search_results(populated_store):
    reply = CommandDispatcher(populated_store).execute("/search how do I upload")
    assert 'Search Results for "how do I upload" (1)' in reply
    assert "**Setup Guide**: Install the package" in reply


def test_search_preview_truncated(store, new_doc):
    store.create(new_doc(title="Long", content="kubernetes " + "x" * 300))
    reply = CommandDispatcher(store).execute("/search kubernetes")
    line = next(l for l in reply.splitlines() if l.startswith("• **Long**"))
    assert line == "• **Long**: " + ("kubernetes " + "x" * 300)[:100] + "..."


# ════════════════════════════════════════════════════════════
#  /help, /clear, /status, /upload
# ════════════════════════════════════════════════════════════

def test_help_lists_usage(dispatcher):
    reply = dispatcher.execute("/help")
    assert "• **/search <query>** - Search documents" in reply
    assert "• **/import [path]** - Import a file from your computer" in reply


def test_clear_calls_callback(store):
    on_clear = MagicMock()
    reply = CommandDispatcher(store, on_clear=on_clear).execute("/clear")
    on_clear.assert_called_once_with()
    assert "Chat cleared" in reply


def test_clear_without_callback(dispatcher):
    assert "Nothing to clear" in dispatcher.execute("/clear")


def test_status_empty(dispatcher):
    reply = dispatcher.execute("/status")
    assert "Documents: 0 / 1000" in reply
    assert "Backend: memory (Empty)" in reply
    assert "Last Updated: never" in reply


def test_status_populated(populated_store):
    reply = CommandDispatcher(populated_store).execute("/status")
    assert "Documents: 2 / 1000" in reply
    assert "(Active)" in reply
    assert "/ 100MB" in reply


def test_upload_instructions(dispatcher):
    reply = dispatcher.execute("/upload")
    assert "How to Upload Documents" in reply
    assert "`/add Title | tag1, tag2 | content`" in reply
    assert "`/edit <id> title=New title`" in reply


# ════════════════════════════════════════════════════════════
#  /import
# ════════════════════════════════════════════════════════════

def test_import_without_picker(dispatcher):
    assert "not available" in dispatcher.execute("/import")


def test_import_with_path(dispatcher, tmp_path):
    path = tmp_path / "setup-guide.md"
    path.write_text("Follow this guide to install.", encoding="utf-8")
    reply = dispatcher.execute(f"/import {path}")
    assert "File imported successfully" in reply
    assert "**setup-guide**" in reply
    assert "Type: markdown" in reply
    assert "Tags: md, guide" in reply
    assert dispatcher.store.load_all()[0].title == "setup-guide"


def test_import_with_missing_path(dispatcher, tmp_path):
    reply = dispatcher.execute(f"/import {tmp_path / 'missing.txt'}")
    assert reply.startswith("❌ Import failed: File not found")


def test_import_invalid_json_path(dispatcher, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{oops", encoding="utf-8")
    assert dispatcher.execute(f"/import {path}") == "❌ Import failed: Invalid JSON file"


def test_import_via_picker(store):
    picker = MagicMock()
    picker.pick_and_read.return_value = ImportedFile(content="{}", file_name="api-config.json")
    reply = CommandDispatcher(store, picker=picker).execute("/import")
    assert "Type: json" in reply
    assert "Tags: json, configuration, api" in reply


def test_import_picker_cancelled(store):
    picker = MagicMock()
    picker.pick_and_read.return_value = None
    reply = CommandDispatcher(store, picker=picker).execute("/import")
    assert reply == "❌ Import cancelled or no file selected."


def test_import_picker_error(store):
    picker = MagicMock()
    picker.pick_and_read.side_effect = InvalidImportContent("File type .exe not allowed")
    reply = CommandDispatcher(store, picker=picker).execute("/import")
    assert reply == "❌ Import failed: File type .exe not allowed"


def test_import_quota_error(repository, tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("x", encoding="utf-8")
    dispatcher = CommandDispatcher(DocumentStore(repository, max_documents=0))
    assert "Maximum number of documents (0) reached" in dispatcher.execute(f"/import {path}")


def test_import_warns_when_not_saved(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("x", encoding="utf-8")
    dispatcher = CommandDispatcher(DocumentStore(IndexRepository(FailingSaveBackend())))
    reply = dispatcher.execute(f"/import {path}")
    assert "File imported successfully" in reply
    assert "could not be saved" in reply


# ════════════════════════════════════════════════════════════
#  /add, /edit
# ════════════════════════════════════════════════════════════

def test_add_document(dispatcher):
    reply = dispatcher.execute("/add Deploy notes | ops, k8s | Roll out with helm.")
    doc = dispatcher.store.load_all()[0]
    assert reply == f"✅ Document created: **Deploy notes** `{doc.id}`"
    assert doc.kind == DocumentKind.TEXT
    assert doc.tags == ["ops", "k8s"]
    assert doc.content == "Roll out with helm."


def test_add_with_type_and_no_tags(dispatcher):
    dispatcher.execute("/add --type=markdown Readme | | # Hello")
    doc = dispatcher.store.load_all()[0]
    assert doc.kind == DocumentKind.MARKDOWN
    assert doc.tags == []
    assert doc.content == "# Hello"


def test_add_content_keeps_pipes(dispatcher):
    dispatcher.execute("/add Table | csv | a | b | c")
    assert dispatcher.store.load_all()[0].content == "a | b | c"


def test_add_unknown_type(dispatcher):
    reply = dispatcher.execute("/add --type=pdf Title | | body")
    assert reply == "❌ Unknown document type. Use one of: markdown, text, json"
    assert dispatcher.store.load_all() == []


@pytest.mark.parametrize("args", ["", "Only a title", " | tag | body", "Title | tag |   "])
def test_add_requires_title_and_content(dispatcher, args):
    assert "needs a title and content" in dispatcher.execute(f"/add {args}")
    assert dispatcher.store.load_all() == []


def test_add_sanitizes_content(dispatcher):
    dispatcher.execute("/add Page | web | hello<script>alert(1)</script>")
    assert dispatcher.store.load_all()[0].content == "hello"


def test_add_quota_error(repository):
    dispatcher = CommandDispatcher(DocumentStore(repository, max_documents=0))
    reply = dispatcher.execute("/add Title | | body")
    assert reply == "❌ Could not save document: Maximum number of documents (0) reached"


def test_add_warns_when_not_saved():
    dispatcher = CommandDispatcher(DocumentStore(IndexRepository(FailingSaveBackend())))
    reply = dispatcher.execute("/add Title | | body")
    assert "Document created" in reply
    assert "could not be saved" in reply


def test_edit_title(populated_store):
    doc = populated_store.load_all()[0]
    reply = CommandDispatcher(populated_store).execute(f"/edit {doc.id} title=Install Guide")
    assert reply == "✏️ Updated **Install Guide** (title)"
    edited = populated_store.get(doc.id)
    assert edited.title == "Install Guide"
    assert edited.content == doc.content
    assert edited.updated_at >= doc.updated_at


def test_edit_tags(populated_store):
    doc = populated_store.load_all()[0]
    CommandDispatcher(populated_store).execute(f"/edit {doc.id} tags=install, setup ,")
    assert populated_store.get(doc.id).tags == ["install", "setup"]


def test_edit_type(populated_store):
    doc = populated_store.load_all()[0]
    CommandDispatcher(populated_store).execute(f"/edit {doc.id} TYPE=json")
    assert populated_store.get(doc.id).kind == DocumentKind.JSON


def test_edit_content_is_sanitized(populated_store):
    doc = populated_store.load_all()[0]
    CommandDispatcher(populated_store).execute(f"/edit {doc.id} content=<script>x()</script>safe")
    assert populated_store.get(doc.id).content == "safe"


def test_edit_value_may_contain_equals(populated_store):
    doc = populated_store.load_all()[0]
    CommandDispatcher(populated_store).execute(f"/edit {doc.id} content=a=b")
    assert populated_store.get(doc.id).content == "a=b"


def test_edit_missing_document(dispatcher):
    assert dispatcher.execute("/edit 123 title=New") == "❌ Document not found: 123"


@pytest.mark.parametrize("args", ["", "123", "123 title"])
def test_edit_requires_id_and_change(dispatcher, args):
    assert "Usage: `/edit <id> <field>=<value>`" in dispatcher.execute(f"/edit {args}")


def test_edit_unknown_field(populated_store):
    doc = populated_store.load_all()[0]
    reply = CommandDispatcher(populated_store).execute(f"/edit {doc.id} owner=me")
    assert reply == "❌ Unknown field: owner. Editable fields: title, content, tags, type"


def test_edit_empty_title_rejected(populated_store):
    doc = populated_store.load_all()[0]
    reply = CommandDispatcher(populated_store).execute(f"/edit {doc.id} title=")
    assert reply == "❌ The title cannot be empty."
    assert populated_store.get(doc.id).title == "Setup Guide"


def test_edit_unknown_type(populated_store):
    doc = populated_store.load_all()[0]
    reply = CommandDispatcher(populated_store).execute(f"/edit {doc.id} type=pdf")
    assert reply.startswith("❌ Unknown document type")


def test_edit_content_too_large(repository, new_doc):
    store = DocumentStore(repository, max_document_size=10)
    doc = store.create(new_doc(content="short")).document
    reply = CommandDispatcher(store).execute(f"/edit {doc.id} content={'x' * 11}")
    assert reply.startswith("❌ Could not save document: Document too large")
    assert store.get(doc.id).content == "short"


# ════════════════════════════════════════════════════════════
#  /show, /delete
# ════════════════════════════════════════════════════════════

def test_show_document(populated_store):
    doc = populated_store.load_all()[0]
    reply = CommandDispatcher(populated_store).execute(f"/show {doc.id}")
    assert "**Setup Guide** (markdown)" in reply
    assert doc.content in reply


def test_show_missing(dispatcher):
    assert dispatcher.execute("/show 123") == "❌ Document not found: 123"


def test_show_requires_id(dispatcher):
    assert "Usage: `/show <id>`" in dispatcher.execute("/show")


def test_delete_document(populated_store):
    doc = populated_store.load_all()[0]
    dispatcher = CommandDispatcher(populated_store)
    assert dispatcher.execute(f"/delete {doc.id}") == "🗑️ Deleted **Setup Guide**"
    assert dispatcher.execute(f"/delete {doc.id}") == f"❌ Document not found: {doc.id}"
    assert len(populated_store.load_all()) == 1


def test_delete_requires_id(dispatcher):
    assert "Usage: `/delete <id>`" in dispatcher.execute("/delete")
