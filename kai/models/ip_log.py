from pydantic import BaseModel, ConfigDict, Field


class IpLogEntry(BaseModel):
    """
    Client address observed for a chat request.
    """

    model_config = ConfigDict(populate_by_name=True)

    ip: str = Field(..., description="Derived client address")
    session_id: str | None = Field(
        default=None, alias="sessionId", description="Session the request belonged to"
    )
    ts: str = Field(..., description="ISO-8601 UTC timestamp of the request")


__all__ = ["IpLogEntry"]
