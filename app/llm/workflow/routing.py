"""
Stage topology of the survey builder.

The graph is data: ``STAGE_EDGES`` maps (stage, action) to the next stage.
Stages only emit an action name in ``state["action"]``; ``route_from``
turns that into the conditional-edge callback LangGraph expects.
"""

from enum import Enum
from typing import Callable, Dict, Tuple

from langgraph.graph import END

from app.llm.workflow.survey_state import SurveySessionState
from app.utils.errors import FlowConfigurationError


class Stage(str, Enum):
    INITIALIZER_ROUTER = "initializer_router"
    SCRATCH_INITIALIZER = "scratch_initializer"
    API_INITIALIZER = "api_initializer"
    DOCUMENT_INITIALIZER = "document_initializer"
    JSON_INITIALIZER = "json_initializer"
    DOCUMENT_IMPORT = "document_import"
    CHAT = "chat"
    SAVE = "save"
    ERROR = "error"


class Action(str, Enum):
    FROM_SCRATCH = "from_scratch"
    FROM_REMOTE_ID = "from_remote_id"
    FROM_DOCUMENT = "from_document"
    FROM_JSON = "from_json"
    DOCUMENT_READY = "document_ready"
    DEFAULT = "default"
    MODIFY = "modify"
    SAVE = "save"
    EXIT = "exit"
    ERROR = "error"


STAGE_EDGES: Dict[Tuple[Stage, Action], str] = {
    (Stage.INITIALIZER_ROUTER, Action.FROM_SCRATCH): Stage.SCRATCH_INITIALIZER.value,
    (Stage.INITIALIZER_ROUTER, Action.FROM_REMOTE_ID): Stage.API_INITIALIZER.value,
    (Stage.INITIALIZER_ROUTER, Action.FROM_DOCUMENT): Stage.DOCUMENT_INITIALIZER.value,
    (Stage.INITIALIZER_ROUTER, Action.FROM_JSON): Stage.JSON_INITIALIZER.value,

    (Stage.SCRATCH_INITIALIZER, Action.DEFAULT): Stage.CHAT.value,
    (Stage.SCRATCH_INITIALIZER, Action.ERROR): Stage.ERROR.value,

    (Stage.API_INITIALIZER, Action.DEFAULT): Stage.CHAT.value,
    (Stage.API_INITIALIZER, Action.ERROR): Stage.ERROR.value,

    (Stage.DOCUMENT_INITIALIZER, Action.DOCUMENT_READY): Stage.DOCUMENT_IMPORT.value,
    (Stage.DOCUMENT_INITIALIZER, Action.ERROR): Stage.ERROR.value,

    (Stage.JSON_INITIALIZER, Action.DEFAULT): Stage.CHAT.value,
    (Stage.JSON_INITIALIZER, Action.ERROR): Stage.ERROR.value,

    (Stage.DOCUMENT_IMPORT, Action.DEFAULT): Stage.CHAT.value,
    (Stage.DOCUMENT_IMPORT, Action.ERROR): Stage.ERROR.value,

    (Stage.CHAT, Action.MODIFY): Stage.CHAT.value,
    (Stage.CHAT, Action.SAVE): Stage.SAVE.value,
    (Stage.CHAT, Action.ERROR): Stage.ERROR.value,
    (Stage.CHAT, Action.EXIT): END,

    (Stage.SAVE, Action.DEFAULT): Stage.CHAT.value,
    (Stage.SAVE, Action.ERROR): Stage.ERROR.value,

    (Stage.ERROR, Action.DEFAULT): Stage.CHAT.value,
}


def next_stage(stage: Stage, action) -> str:
    """Look up the edge for an emitted action; unknown edges are a configuration error."""
    try:
        return STAGE_EDGES[(stage, Action(action))]
    except (KeyError, ValueError):
        raise FlowConfigurationError(
            f"Stage '{stage.value}' emitted action '{action}' which has no registered edge."
        )


def edge_targets(stage: Stage) -> Dict[str, str]:
    """Path map for add_conditional_edges: every node reachable from stage."""
    return {target: target for (source, _), target in STAGE_EDGES.items() if source == stage}


def route_from(stage: Stage) -> Callable[[SurveySessionState], str]:
    """Conditional-edge callback that routes on the action emitted by stage."""
    def _route(state: SurveySessionState) -> str:
        return next_stage(stage, state.get("action"))
    return _route
