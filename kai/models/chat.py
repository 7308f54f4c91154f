from pydantic import BaseModel, ConfigDict, Field


class ChatStreamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = Field(default=None, description="User message for this turn")
    session_id: str | None = Field(
        default=None,
        alias="sessionId",
        description="Existing session id; a new one is issued when omitted",
    )


class HealthResponse(BaseModel):
    status: str = "ok"


__all__ = ["ChatStreamRequest", "HealthResponse"]
