from fastapi import HTTPException
from typing import List, Optional


class AgentException(HTTPException):
    """
    Custom exception for agent errors with structured error responses.
    """
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        status: Optional[str] = None
    ):
        detail = {
            "status": status or self._get_default_status(status_code),
            "code": error_code,
            "message": message
        }
        super().__init__(status_code=status_code, detail=detail)

    @staticmethod
    def _get_default_status(status_code: int) -> str:
        status_map = {
            400: "Bad Request",
            404: "Not Found",
            409: "Conflict",
            500: "Internal Server Error",
            503: "Service Unavailable"
        }
        return status_map.get(status_code, "Error")


class SessionNotFoundError(AgentException):
    """Exception for session not found errors"""
    def __init__(self, message: str = "Session not found. Initialize a survey first with /initialize."):
        super().__init__(
            status_code=404,
            error_code="session_not_found",
            message=message,
            status="Session Not Found"
        )


class SurveyNotInitializedError(AgentException):
    """Exception for sessions that have no survey document yet"""
    def __init__(self, message: str = "Survey not initialized. Initialize a survey first."):
        super().__init__(
            status_code=400,
            error_code="survey_not_initialized",
            message=message,
            status="Survey Not Initialized"
        )


class InitializationError(AgentException):
    """Exception for initializer stages that could not produce a survey"""
    def __init__(self, message: str, remote_survey_id: Optional[int] = None):
        super().__init__(
            status_code=400,
            error_code="initialization_error",
            message=message,
            status="Initialization Error"
        )
        # Voxco survey already created before the failure
        if remote_survey_id is not None:
            self.detail["remote_survey_id"] = remote_survey_id


class SessionLimitError(AgentException):
    """Exception raised when the session table is full"""
    def __init__(self, message: str = "Too many active sessions. Please try again shortly."):
        super().__init__(
            status_code=503,
            error_code="session_limit",
            message=message,
            status="Service Unavailable"
        )


class SessionEndedError(AgentException):
    """Exception for messages sent to a conversation that has already exited"""
    def __init__(self, message: str = "This conversation has ended. Start a new session."):
        super().__init__(
            status_code=409,
            error_code="session_ended",
            message=message,
            status="Session Ended"
        )


class ChatError(AgentException):
    """Generic exception for chat errors"""
    def __init__(self, message: str):
        super().__init__(
            status_code=500,
            error_code="chat_error",
            message=message,
            status="Chat Error"
        )


class SurveyFlowError(Exception):
    """Base class for errors raised inside the survey stage graph and its collaborators."""


class FlowConfigurationError(SurveyFlowError):
    """A stage emitted an action that has no registered edge, or the graph was misconfigured."""


class StageInputError(SurveyFlowError):
    """Credentials, source or survey required by a stage are missing or of the wrong kind."""


class LlmError(SurveyFlowError):
    """The language model call failed."""


class RemotePlatformError(SurveyFlowError):
    """Authentication or transport failure against the Voxco platform."""


class DocumentReadError(SurveyFlowError):
    """Text could not be extracted from an uploaded document."""


class ResponseFormatError(SurveyFlowError):
    """Model output did not match the expected JSON contract."""


class ChunkSegmentationError(SurveyFlowError):
    """The model did not return a usable list of survey chunks."""


class PatchApplicationError(SurveyFlowError):
    """A JSON patch was malformed or could not be applied to the survey."""


class SurveySchemaError(SurveyFlowError):
    """A survey document does not satisfy the questionnaire schema."""

    def __init__(self, message: str, violations: Optional[List[str]] = None):
        super().__init__(message)
        self.violations = violations or []
