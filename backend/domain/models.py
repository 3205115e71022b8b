"""
Domain models - Request bodies and structured outputs.
Following SOLID: Single Responsibility Principle - each model has one clear purpose.
"""
from typing import List, Dict, Any, Optional, Literal
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """Represents a single message in the conversation."""
    role: str = "user"
    content: str


class ChatRequest(BaseModel):
    """Incoming chat request. The last message is the current question."""
    messages: List[ChatMessage] = Field(default_factory=list)

    @property
    def current_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None


class IngestRequest(BaseModel):
    """Text to split, embed and store."""
    text: str = ""


class AgentRequest(BaseModel):
    """Input for the agent and tool actions."""
    input: str
    wso: bool = False


class StructuredChatOutput(BaseModel):
    """Should always be used to properly format output"""
    tone: Literal["positive", "negative", "neutral"] = Field(
        description="The overall tone of the input"
    )
    entity: str = Field(description="The entity mentioned in the input")
    word_count: int = Field(description="The number of words in the input")
    chat_response: str = Field(description="A response to the human's input")
    final_punctuation: Optional[str] = Field(
        default=None,
        description="The final punctuation mark in the input, if any."
    )


class Weather(BaseModel):
    """Weather search parameters"""
    city: str = Field(description="City to search for weather")
    state: str = Field(description="State abbreviation to search for weather")


class SourcePreview(BaseModel):
    """Truncated retrieval source sent back in the x-sources header."""
    pageContent: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
