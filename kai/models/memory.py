from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


Role = Literal["user", "assistant"]


class MemoryEntry(BaseModel):
    """
    One message of a session's rolling conversation history.
    """

    model_config = ConfigDict(frozen=True)

    role: Role = Field(..., description="Who wrote the message")
    text: str = Field(..., description="Message text")


__all__ = ["MemoryEntry", "Role"]
