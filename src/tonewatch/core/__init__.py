"""Core domain package for tonewatch.

Core contains scanning, scoring policy, alert rendering, and dispatch logic
without any Crisp, Slack, or storage-specific code, keeping the screening
rules portable.
"""
