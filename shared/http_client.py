"""HTTP client for the local Ollama LLM backend."""

import logging

import httpx

from shared.constants import ERROR_LLM_UNAVAILABLE

logger = logging.getLogger("docllm.llm")


class LLMUnavailable(Exception):
    """The LLM backend could not produce a response."""

    def __init__(self, message: str = ERROR_LLM_UNAVAILABLE):
        super().__init__(message)


class OllamaClient:
    """Minimal non-streaming client for Ollama's generate/tags endpoints."""

    def __init__(self, base_url: str, default_model: str, timeout: float = 120):
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout

    def generate(self, prompt: str, model: str | None = None) -> str:
        """Send one prompt and return the model's full response.

        Raises:
            LLMUnavailable: on any transport, HTTP or decoding failure
        """
        model = model or self.default_model
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.base_url}/api/generate",
                    json={"model": model, "prompt": prompt, "stream": False},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error calling Ollama API (model=%s): %s", model, e)
            raise LLMUnavailable() from e
        return data.get("response", "")

    def list_models(self) -> list[str]:
        """Names of locally available models, [] if Ollama can't be reached."""
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(f"{self.base_url}/api/tags")
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching models: %s", e)
            return []
        return [m["name"] for m in data.get("models", []) if "name" in m]

    def check_connection(self) -> bool:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                return client.get(f"{self.base_url}/api/tags").is_success
        except httpx.HTTPError as e:
            logger.warning("Ollama connection failed: %s", e)
            return False
