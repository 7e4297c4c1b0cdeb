"""
last_llm LLM module.

Provides the provider abstraction and the provider factory.
"""

from last_llm.llm.base import Provider
from last_llm.llm.providers import get_provider

__all__ = ["Provider", "get_provider"]
