"""Summarization data models."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a chat completion request."""

    SYSTEM = "system"
    USER = "user"


class Message(BaseModel):
    """One chat message sent to the summarization model."""

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")


class Summary(BaseModel):
    """A summary produced by the model.

    Attributes:
        text: The summary text.
        source_length: Character length of the summarized input.
        model: Model that produced the summary.
    """

    text: str = Field(description="Summary text")
    source_length: int = Field(description="Length of the summarized input")
    model: str = Field(description="Model used")
