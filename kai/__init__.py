"""
Kaï chat backend: streamed LLM replies with a Redis-backed response cache
and per-session rolling memory.
"""

__version__ = "0.1.0"
