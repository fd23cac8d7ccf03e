"""
Repository Catalogue (LLM-assisted)

A command-line tool that ingests third-party source repositories, classifies them into
functional categories, extracts the tools they provide and compares repositories that
share a category. It uses an LLM when an API key is configured and falls back to
deterministic keyword analysis otherwise.
"""

__version__ = "0.1.0"
