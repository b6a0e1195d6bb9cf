from dataclasses import dataclass, field
from typing import Callable, Optional

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.graph import StateGraph

from app.core.logging import logger
from app.integrations.documents import DocumentInput, extract_text
from app.integrations.voxco import SurveyPlatform, get_voxco_client
from app.llm.client import SurveyLlm, get_llm
from app.llm.workflow.routing import Stage, edge_targets, route_from
from app.llm.workflow.stages import (
    ApiInitializer,
    ChatAgent,
    DocumentImporter,
    DocumentInitializer,
    JsonInitializer,
    SaveStage,
    error_handler_node,
    initializer_router_node,
    scratch_initializer_node,
)
from app.llm.workflow.survey_state import SurveyCredentials, SurveySessionState
from app.survey.validator import SurveySchemaValidator, get_schema_validator
from app.utils.errors import SessionEndedError, SurveyNotInitializedError


@dataclass
class SurveyStages:
    """Collaborators the stages are built from"""
    llm: SurveyLlm
    platform: SurveyPlatform
    validator: SurveySchemaValidator
    extract_text: Callable[[DocumentInput], str] = field(default=extract_text)

    @classmethod
    def default(cls) -> "SurveyStages":
        return cls(llm=get_llm(), platform=get_voxco_client(), validator=get_schema_validator())


class SurveyBuilderGraph(StateGraph):
    def __init__(self, stages: SurveyStages):
        super().__init__(SurveySessionState)

        api_initializer = ApiInitializer(stages.platform, stages.validator)
        document_initializer = DocumentInitializer(stages.platform, stages.validator, stages.extract_text)
        json_initializer = JsonInitializer(stages.validator)
        document_importer = DocumentImporter(stages.llm, stages.validator)
        chat_agent = ChatAgent(stages.llm, stages.validator)
        save_stage = SaveStage(stages.platform)

        # Add nodes
        self.add_node(Stage.INITIALIZER_ROUTER.value, initializer_router_node)
        self.add_node(Stage.SCRATCH_INITIALIZER.value, scratch_initializer_node)
        self.add_node(Stage.API_INITIALIZER.value, api_initializer.api_node)
        self.add_node(Stage.DOCUMENT_INITIALIZER.value, document_initializer.document_node)
        self.add_node(Stage.JSON_INITIALIZER.value, json_initializer.json_node)
        self.add_node(Stage.DOCUMENT_IMPORT.value, document_importer.import_node)
        self.add_node(Stage.CHAT.value, chat_agent.chat_node)
        self.add_node(Stage.SAVE.value, save_stage.save_node)
        self.add_node(Stage.ERROR.value, error_handler_node)

        # Set entry point
        self.set_entry_point(Stage.INITIALIZER_ROUTER.value)

        # Every stage routes on the action it emits
        for stage in Stage:
            self.add_conditional_edges(stage.value, route_from(stage), edge_targets(stage))

    def compile_graph(self, checkpointer: BaseCheckpointSaver):
        # Pausing before the chat stage hands control back to the caller for the next utterance
        return self.compile(checkpointer=checkpointer, interrupt_before=[Stage.CHAT.value])


@dataclass
class TurnResult:
    values: dict
    ended: bool


def initial_state(
    session_id: str,
    initialization: dict,
    credentials: Optional[SurveyCredentials] = None
) -> SurveySessionState:
    return {
        "session_id": session_id,
        "initialization": initialization,
        "credentials": credentials,
        "document_text": None,
        "survey": None,
        "remote_survey_id": None,
        "pending_user_message": None,
        "display_text": None,
        "last_error": None,
        "error_surfaced": False,
        "violations": [],
        "import_errors": [],
        "save_status": None,
        "action": "",
    }


class SurveyConversation:
    """
    Drives the compiled survey graph for one session at a time.

    Each call runs the graph until it pauses in front of the chat stage again
    (or the conversation exits), then reports the session state.
    """

    def __init__(self, graph):
        self.graph = graph

    @staticmethod
    def _config(session_id: str) -> dict:
        return {"configurable": {"thread_id": session_id}}

    async def snapshot(self, session_id: str) -> TurnResult:
        state = await self.graph.aget_state(self._config(session_id))
        return TurnResult(values=dict(state.values or {}), ended=not state.next)

    async def start(
        self,
        session_id: str,
        initialization: dict,
        credentials: Optional[SurveyCredentials] = None
    ) -> TurnResult:
        logger.info("Starting survey session", session_id=session_id, kind=initialization.get("kind"))
        await self.graph.ainvoke(
            initial_state(session_id, initialization, credentials),
            config=self._config(session_id)
        )
        return await self.snapshot(session_id)

    async def send(self, session_id: str, message: str) -> TurnResult:
        current = await self.snapshot(session_id)
        if not current.values:
            raise SurveyNotInitializedError()
        if current.ended:
            raise SessionEndedError()

        config = self._config(session_id)
        await self.graph.aupdate_state(config, {"pending_user_message": message})
        await self.graph.ainvoke(None, config=config)
        return await self.snapshot(session_id)
