"""Completion provider handlers."""

from racik.captions.providers.openai import OpenAIProviderHandler

__all__ = ["OpenAIProviderHandler"]
