"""
Adapters for local LLM inference backends.

Provider-agnostic architecture: Protocol defines WHAT, implementations define HOW.
"""

from .base import LLMClient
from .lmstudio import LMStudioAdapter, parse_lmstudio_model_name
from .ollama import OllamaAdapter, parse_ollama_model_name

__all__ = [
    "LLMClient",
    "LMStudioAdapter",
    "OllamaAdapter",
    "parse_lmstudio_model_name",
    "parse_ollama_model_name",
]
