"""Conversational anime and manga recommendation service."""
