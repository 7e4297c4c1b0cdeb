"""Canonical provider identifiers."""

OPENAI = "openai"
ANTHROPIC = "anthropic"
GOOGLE_GEMINI = "google_gemini"
DEEPSEEK = "deepseek"
OLLAMA = "ollama"
TEST = "test"

ALL: tuple[str, ...] = (OPENAI, ANTHROPIC, GOOGLE_GEMINI, DEEPSEEK, OLLAMA, TEST)


def is_valid(provider_name: str) -> bool:
    return str(provider_name) in ALL
