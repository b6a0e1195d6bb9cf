from app.core.logging import logger
from app.llm.workflow.routing import Action
from app.llm.workflow.survey_state import SurveySessionState

DEFAULT_ERROR_MESSAGE = "An unknown error occurred."


def error_handler_node(state: SurveySessionState):
    """Surface the pending error and hand control back to the chat agent."""
    error_message = state.get("last_error") or DEFAULT_ERROR_MESSAGE
    logger.error("Error handled", session_id=state.get("session_id"), error=error_message)
    return {
        "display_text": error_message,
        "error_surfaced": True,
        "last_error": None,
        "action": Action.DEFAULT.value
    }
