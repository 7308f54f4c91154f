from __future__ import annotations

from typing import Iterable

from kai.models import MemoryEntry


def render_history(entries: Iterable[MemoryEntry]) -> str:
    return "\n".join(f"{entry.role}: {entry.text}" for entry in entries)


def build_prompt(system_prompt: str, history: Iterable[MemoryEntry], message: str) -> str:
    """
    Flatten the system instruction, prior turns and the new message into
    the single text prompt sent to the model.
    """
    return (
        f"{system_prompt.strip()}\n"
        "\n"
        "Conversation history:\n"
        f"{render_history(history)}\n"
        "\n"
        f"User: {message}\n"
        "Assistant:"
    )


__all__ = ["render_history", "build_prompt"]
