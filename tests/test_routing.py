import pytest
from langgraph.graph import END

from app.llm.workflow.routing import (
    STAGE_EDGES,
    Action,
    Stage,
    edge_targets,
    next_stage,
    route_from,
)
from app.llm.workflow.stages import error_handler_node
from app.llm.workflow.stages.error_handler import DEFAULT_ERROR_MESSAGE
from app.llm.workflow.survey_state import keep_remote_identity
from app.utils.errors import FlowConfigurationError


class TestStageEdges:

    def test_every_stage_has_outgoing_edges(self):
        assert {stage for stage, _ in STAGE_EDGES} == set(Stage)

    def test_chat_edges(self):
        assert next_stage(Stage.CHAT, "modify") == "chat"
        assert next_stage(Stage.CHAT, Action.SAVE) == "save"
        assert next_stage(Stage.CHAT, "error") == "error"
        assert next_stage(Stage.CHAT, "exit") == END

    def test_recoverable_stages_return_to_chat(self):
        for stage in (Stage.SAVE, Stage.ERROR, Stage.SCRATCH_INITIALIZER, Stage.DOCUMENT_IMPORT, Stage.JSON_INITIALIZER):
            assert next_stage(stage, "default") == "chat"

    def test_json_upload_edges(self):
        assert next_stage(Stage.INITIALIZER_ROUTER, "from_json") == "json_initializer"
        assert edge_targets(Stage.JSON_INITIALIZER) == {"chat": "chat", "error": "error"}

    def test_unregistered_action_raises(self):
        with pytest.raises(FlowConfigurationError, match="has no registered edge"):
            next_stage(Stage.SAVE, "modify")

    def test_unknown_action_name_raises(self):
        with pytest.raises(FlowConfigurationError):
            next_stage(Stage.CHAT, "teleport")

    def test_edge_targets_lists_reachable_nodes(self):
        assert edge_targets(Stage.CHAT) == {"chat": "chat", "save": "save", "error": "error", END: END}
        assert edge_targets(Stage.ERROR) == {"chat": "chat"}

    def test_route_from_reads_emitted_action(self):
        route = route_from(Stage.DOCUMENT_INITIALIZER)
        assert route({"action": "document_ready"}) == "document_import"
        with pytest.raises(FlowConfigurationError):
            route({})


class TestRemoteIdentityReducer:

    def test_identity_is_set_once_known(self):
        assert keep_remote_identity(None, 1001) == 1001

    def test_identity_is_never_reset(self):
        assert keep_remote_identity(1001, None) == 1001

    def test_identity_can_be_replaced(self):
        assert keep_remote_identity(1001, 42) == 42


class TestErrorHandler:

    def test_surfaces_and_clears_error(self):
        update = error_handler_node({"last_error": "Failed to save survey: boom"})

        assert update["display_text"] == "Failed to save survey: boom"
        assert update["error_surfaced"] is True
        assert update["last_error"] is None
        assert update["action"] == "default"

    def test_unknown_error_message(self):
        assert error_handler_node({})["display_text"] == DEFAULT_ERROR_MESSAGE
