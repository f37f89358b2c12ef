"""User-facing messages shared by the chat loop and the LLM client."""

ERROR_LLM_UNAVAILABLE = "LLM unavailable."
ERROR_LLM_HINT = (
    "Sorry, I encountered an error. "
    "Please make sure Ollama is running and try again."
)
ERROR_COMMAND = "❌ Command error: {error}"
GOODBYE = "Goodbye!"
