from app.llm.schemas.chat_agent import ChatAgentResponse
from app.llm.schemas.initialization import (
    BaseDocumentStrategy,
    DocumentSource,
    ExistingRemoteBase,
    JsonSource,
    LocalOnlyBase,
    NewRemoteBase,
    RemoteSource,
    ScratchSource,
    parse_initialization,
)
from app.llm.schemas.patch_operation import PatchOperation
from app.llm.schemas.survey_chunk import SurveyChunk
