"""Slack thread relay for a remote conversational AI service."""

__version__ = "0.1.0"
