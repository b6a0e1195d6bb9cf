from pydantic import BaseModel, Field, TypeAdapter, model_validator
from typing import Annotated, Literal, Optional, Union


class NewRemoteBase(BaseModel):
    """Create a new Voxco survey and import into it"""
    type: Literal["new_remote"] = "new_remote"
    survey_name: str = Field(..., min_length=1, description="Name of the survey to create on Voxco")


class ExistingRemoteBase(BaseModel):
    """Import on top of an existing Voxco survey"""
    type: Literal["existing_remote"] = "existing_remote"
    survey_id: int = Field(..., description="Voxco survey id")


class LocalOnlyBase(BaseModel):
    """Import into a local survey with no Voxco counterpart"""
    type: Literal["local_only"] = "local_only"


BaseDocumentStrategy = Annotated[
    Union[NewRemoteBase, ExistingRemoteBase, LocalOnlyBase],
    Field(discriminator="type")
]


class ScratchSource(BaseModel):
    kind: Literal["from_scratch"] = "from_scratch"


class RemoteSource(BaseModel):
    kind: Literal["from_remote_id"] = "from_remote_id"
    survey_id: int = Field(..., description="Voxco survey id to import")


class DocumentSource(BaseModel):
    kind: Literal["from_document"] = "from_document"
    path: Optional[str] = Field(None, description="Path of a .docx file")
    content: Optional[bytes] = Field(None, description="Raw .docx bytes")
    base: BaseDocumentStrategy = Field(default_factory=LocalOnlyBase)

    @model_validator(mode="after")
    def check_single_source(self):
        if (self.path is None) == (self.content is None):
            raise ValueError("exactly one of 'path' or 'content' is required")
        return self


class JsonSource(BaseModel):
    """A questionnaire JSON uploaded as is, for example a previous export"""
    kind: Literal["from_json"] = "from_json"
    survey: dict = Field(..., description="Questionnaire JSON document")


InitializationSource = Annotated[
    Union[ScratchSource, RemoteSource, DocumentSource, JsonSource],
    Field(discriminator="kind")
]

initialization_adapter = TypeAdapter(InitializationSource)


def parse_initialization(data) -> Union[ScratchSource, RemoteSource, DocumentSource, JsonSource]:
    return initialization_adapter.validate_python(data)
