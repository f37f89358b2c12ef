"""One chat conversation: routes each message to a slash command or the LLM.

Messages starting with '/' go to the CommandDispatcher and come back as
system messages. Anything else is optionally augmented with matching
documents and sent to Ollama.
"""

import logging
import time
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from chat.chat_config import USE_DOCUMENT_CONTEXT
from knowledge.commands import CommandDispatcher
from knowledge.context import ContextAssembler
from knowledge.models import utcnow
from shared.constants import ERROR_COMMAND, ERROR_LLM_HINT
from shared.http_client import LLMUnavailable, OllamaClient

logger = logging.getLogger("docllm.chat")


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: str(time.time_ns()))
    content: str
    sender: Literal["user", "ai", "system"]
    timestamp: datetime = Field(default_factory=utcnow)


class ChatSession:
    """Conversation state plus the routing between commands and the LLM."""

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        assembler: ContextAssembler,
        llm: OllamaClient,
        model: str | None = None,
        use_context: bool = USE_DOCUMENT_CONTEXT,
    ):
        self.dispatcher = dispatcher
        self.assembler = assembler
        self.llm = llm
        self.model = model or llm.default_model
        self.use_context = use_context
        self.history: list[ChatMessage] = []

        dispatcher.on_clear = self.clear
        dispatcher.register("model", "Show or switch the LLM model", "/model [name]", self.cmd_model)
        dispatcher.register("models", "List models available in Ollama", "/models", self.cmd_models)

    def clear(self) -> None:
        self.history.clear()

    def send(self, text: str) -> ChatMessage | None:
        """Handle one user message and return the reply (None for blank input)."""
        content = text.strip()
        if not content:
            return None

        self.history.append(ChatMessage(content=content, sender="user"))

        if self.dispatcher.is_command(content):
            try:
                reply = ChatMessage(content=self.dispatcher.execute(content), sender="system")
            except Exception as e:
                logger.exception("Command failed: %s", content[:100])
                reply = ChatMessage(content=ERROR_COMMAND.format(error=e), sender="system")
        else:
            reply = self._ask_llm(content)

        self.history.append(reply)
        return reply

    def _ask_llm(self, content: str) -> ChatMessage:
        prompt = self.assembler.augment_prompt(content) if self.use_context else content
        try:
            answer = self.llm.generate(prompt, model=self.model)
        except LLMUnavailable as e:
            logger.error("%s (model=%s)", e, self.model)
            return ChatMessage(content=ERROR_LLM_HINT, sender="system")
        return ChatMessage(content=answer, sender="ai")

    # ── Chat-level commands ──────────────────────────

    def cmd_model(self, name: str) -> str:
        name = name.strip()
        if not name:
            return f"🤖 Current model: **{self.model}**"
        self.model = name
        logger.info("Switched model to %s", name)
        return f"🤖 Model switched to **{name}**"

    def cmd_models(self, args: str = "") -> str:
        models = self.llm.list_models()
        if not models:
            return "❌ No models found. Is Ollama running?"
        model_list = "\n".join(
            f"• {m}{' (current)' if m == self.model else ''}" for m in models
        )
        return f"🤖 **Available Models ({len(models)})**:\n\n{model_list}"
