from pydantic import AliasChoices, BaseModel, Field
from typing import Any, Dict, Literal, Optional


class SurveyChunk(BaseModel):
    """One segment of an imported survey document"""
    kind: Literal["block", "question", "other"] = Field(
        ...,
        validation_alias=AliasChoices("kind", "type"),
        description="block for section headers, question for single questions, other for instructions"
    )
    text: str = Field(
        ...,
        validation_alias=AliasChoices("text", "content"),
        description="The chunk text as it appears in the document"
    )
    parent_context: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("parent_context", "parentContext", "context"),
        description="Enclosing section or block, if any"
    )
    hints: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("hints", "metadata"),
        description="Extra structure such as question type or choices"
    )

    def excerpt(self, length: int = 50) -> str:
        text = " ".join(self.text.split())
        return text if len(text) <= length else f"{text[:length]}..."
