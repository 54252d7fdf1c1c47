"""om: score repository files by importance and print them for an LLM."""

__version__ = "0.3.0"
