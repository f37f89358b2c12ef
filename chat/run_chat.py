"""Interactive terminal chat with document-augmented answers from Ollama.

Type a question to ask the model (matching documents are added to the
prompt), or a slash command such as /docs, /search, /import. Tab completes
command names.

Usage:
    python -m chat.run_chat
"""

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import HTML
from rich.console import Console
from rich.markdown import Markdown

from chat.chat_config import (
    LOG_LEVEL,
    LOG_TO_CONSOLE,
    OLLAMA_MODEL,
    OLLAMA_TIMEOUT,
    OLLAMA_URL,
)
from chat.chat_session import ChatMessage, ChatSession
from knowledge.commands import CommandDispatcher
from knowledge.config import CONTEXT_MAX_CHARS, DATA_DIR, STORAGE_BACKEND
from knowledge.context import ContextAssembler
from knowledge.importer import PathFileImporter, PromptFilePicker
from knowledge.keywords import KeywordEngine
from knowledge.persistence import IndexRepository, PersistenceBackend, create_backend
from knowledge.store import DocumentStore, FilePicker
from shared.constants import GOODBYE
from shared.http_client import OllamaClient
from shared.logging_setup import setup_logger

SENDER_STYLES = {
    "ai": "bold green",
    "system": "bold yellow",
    "user": "bold cyan",
}


class Services:
    """Everything the chat loop needs, built once at start-up."""

    def __init__(
        self,
        store: DocumentStore,
        assembler: ContextAssembler,
        dispatcher: CommandDispatcher,
        llm: OllamaClient,
        session: ChatSession,
    ):
        self.store = store
        self.assembler = assembler
        self.dispatcher = dispatcher
        self.llm = llm
        self.session = session


def build_services(
    backend: PersistenceBackend | None = None,
    picker: FilePicker | None = None,
    llm: OllamaClient | None = None,
    synonyms: dict[str, list[str]] | None = None,
) -> Services:
    """Wire store, search, context, commands and LLM client together."""
    backend = backend or create_backend(STORAGE_BACKEND, DATA_DIR)
    store = DocumentStore(IndexRepository(backend), engine=KeywordEngine(synonyms))
    importer = PathFileImporter()
    assembler = ContextAssembler(store, max_chars=CONTEXT_MAX_CHARS)
    dispatcher = CommandDispatcher(store, picker=picker, path_importer=importer)
    llm = llm or OllamaClient(OLLAMA_URL, OLLAMA_MODEL, timeout=OLLAMA_TIMEOUT)
    session = ChatSession(dispatcher, assembler, llm)
    return Services(
        store=store, assembler=assembler, dispatcher=dispatcher, llm=llm, session=session
    )


class SlashCommandCompleter(Completer):
    """Complete '/name' from the dispatcher's registered commands."""

    def __init__(self, dispatcher: CommandDispatcher):
        self.dispatcher = dispatcher

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor.lstrip()
        if " " in text:
            return
        for suggestion in self.dispatcher.suggestions(text):
            yield Completion(suggestion, start_position=-len(text))


# ════════════════════════════════════════════════════════════
#  OUTPUT
# ════════════════════════════════════════════════════════════

def print_message(console: Console, message: ChatMessage) -> None:
    label = "assistant" if message.sender == "ai" else message.sender
    console.print(f"[{SENDER_STYLES[message.sender]}]{label}[/]")
    console.print(Markdown(message.content))
    console.print()


def show_banner(console: Console, services: Services) -> None:
    stats = services.store.stats()
    connected = services.llm.check_connection()
    console.print()
    console.print("  +==================================================+")
    console.print("  |  DocLLM -- Chat with your documents               |")
    console.print(f"  |  Model: {services.session.model:<41s}|")
    console.print(f"  |  Ollama: {'connected' if connected else 'not reachable':<40s}|")
    console.print(f"  |  Documents: {stats.document_count:<37d}|")
    console.print("  +==================================================+")
    console.print()
    console.print("  Type '/help' for commands, 'quit' to exit.")
    console.print()


# ════════════════════════════════════════════════════════════
#  REPL
# ════════════════════════════════════════════════════════════

def repl(services: Services, console: Console) -> None:
    """Interactive chat loop with slash-command completion and history."""
    prompt_session: PromptSession = PromptSession(
        completer=SlashCommandCompleter(services.dispatcher),
        complete_while_typing=True,
    )

    while True:
        try:
            user_input = prompt_session.prompt(
                HTML("<ansicyan><b>you</b></ansicyan><ansiwhite>&gt; </ansiwhite>")
            ).strip()
        except (EOFError, KeyboardInterrupt):
            console.print(f"\n  {GOODBYE}")
            return

        if not user_input:
            continue
        if user_input.lower() in ("quit", "exit", "/quit", "/exit"):
            console.print(f"  {GOODBYE}")
            return

        # Commands may prompt (e.g. /import), so no spinner around them
        if services.dispatcher.is_command(user_input):
            reply = services.session.send(user_input)
        else:
            with console.status("Thinking...", spinner="dots"):
                reply = services.session.send(user_input)
        if reply is not None:
            print_message(console, reply)


# ════════════════════════════════════════════════════════════
#  MAIN
# ════════════════════════════════════════════════════════════

def main() -> None:
    logger = setup_logger(
        "docllm", log_dir=DATA_DIR / "logs", level=LOG_LEVEL, console=LOG_TO_CONSOLE
    )
    services = build_services(picker=PromptFilePicker())
    logger.info("Chat started (backend=%s)", services.store.repository.describe())

    console = Console()
    show_banner(console, services)
    repl(services, console)


if __name__ == "__main__":
    main()
