from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional


class ChatAgentResponse(BaseModel):
    """Response contract of the survey chat agent"""
    action: Literal["modify", "save", "exit", "display"] = Field(
        ...,
        description="What the user asked for"
    )
    patch: Optional[List] = Field(
        None,
        description="JSON Patch (RFC 6902) operations for the modify action"
    )
    content: Optional[str] = Field(
        None,
        description="Text shown to the user for the display action"
    )

    @model_validator(mode="after")
    def check_payload(self):
        if self.action == "modify" and self.patch is None:
            raise ValueError("modify action requires a 'patch' array")
        if self.action == "display" and self.content is None:
            raise ValueError("display action requires a 'content' string")
        return self
