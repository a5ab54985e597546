"""Label recent Gmail messages with an LLM."""

__version__ = "0.1.0"
