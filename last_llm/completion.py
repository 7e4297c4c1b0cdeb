"""Single-shot text completion on top of a ``Client``."""

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from last_llm.client import Client


class Completion:
    def __init__(self, client: "Client"):
        self._client = client

    def generate(self, prompt: Any, options: dict[str, Any] | None = None) -> str:
        """Generate the completion text for ``prompt`` in one response."""
        return self._client.provider.generate_text(prompt, options)
