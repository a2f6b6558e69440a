"""Textual config panel for editing one tenant's settings."""
