"""Generative summary and chat client."""

from .client import SummarizerClient, build_fallback_summary, summarizer_client

__all__ = [
    'SummarizerClient',
    'build_fallback_summary',
    'summarizer_client',
]
