"""Tone and profanity moderation relay for Crisp conversations."""

__version__ = "1.0.0"
