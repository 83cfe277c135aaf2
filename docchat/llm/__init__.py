"""
LLM Package - Gemini Integration

This package provides the interface to the generative-language model.
Anything with an async complete(prompt, temperature, max_output_tokens)
method can stand in for GeminiClient.
"""

from .credentials import CredentialPool
from .gemini_client import GeminiClient
from .retry import RetryingClient, RetryPolicy, retry_with_backoff

__all__ = [
    "CredentialPool",
    "GeminiClient",
    "RetryingClient",
    "RetryPolicy",
    "retry_with_backoff",
]
