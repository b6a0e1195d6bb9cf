from pydantic import Base64Bytes, BaseModel, Field
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime

from app.llm.schemas import (
    BaseDocumentStrategy,
    DocumentSource,
    JsonSource,
    LocalOnlyBase,
    RemoteSource,
    ScratchSource,
)


class DocumentUpload(BaseModel):
    """A .docx document sent inline with the initialization request"""
    kind: Literal["from_document"] = "from_document"
    filename: Optional[str] = Field(None, description="Original file name, informational only")
    content: Base64Bytes = Field(..., description="Base64 encoded .docx file")
    base: BaseDocumentStrategy = Field(default_factory=LocalOnlyBase, description="Where the imported survey starts from")


InitializationInput = Annotated[
    Union[ScratchSource, RemoteSource, DocumentUpload, JsonSource],
    Field(discriminator="kind")
]


class InitSurveyInput(BaseModel):
    """Input for starting a new survey builder session"""
    initialization: InitializationInput = Field(..., description="How the first survey document is obtained")
    username: Optional[str] = Field(None, description="Voxco username, defaults to the configured account")
    password: Optional[str] = Field(None, description="Voxco password, defaults to the configured account")

    def to_initialization(self) -> dict:
        source = self.initialization
        if isinstance(source, DocumentUpload):
            source = DocumentSource(content=source.content, base=source.base)
        return source.model_dump()


class SurveyChatInput(BaseModel):
    """Input for one chat turn"""
    session_id: str = Field(..., description="Session ID from the initialize response")
    message: str = Field(..., description="Instruction for the assistant, or a control word (save, exit, quit)")


class SurveySessionInput(BaseModel):
    session_id: str = Field(..., description="Session ID from the initialize response")


class SurveySessionResponse(BaseModel):
    """State of a survey builder session after a request"""
    session_id: str = Field(..., description="Session identifier")
    message: Optional[str] = Field(None, description="Text to show the user for this turn")
    survey: Optional[dict] = Field(None, description="Current survey document")
    remote_survey_id: Optional[int] = Field(None, description="Voxco survey id, once known")
    violations: List[str] = Field(default=[], description="Schema violations of a rejected edit")
    import_errors: List[str] = Field(default=[], description="Document chunks that could not be imported")
    save_status: Optional[str] = Field(None, description="Outcome of a save in this turn: succeeded or failed")
    ended: bool = Field(default=False, description="Whether the conversation has exited")
    created_at: datetime = Field(..., description="Timestamp of response")
