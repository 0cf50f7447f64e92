"""Gateway request and response models."""

from datetime import datetime

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    message: str = Field(..., min_length=1)
    session_id: str | None = None


class ChatReply(BaseModel):
    """Response model for the chat endpoint."""

    response: str
    session_id: str
    input_tokens: int = 0
    output_tokens: int = 0
    tool_calls: int = 0


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
