from typing import Annotated, Dict, List, Optional, TypedDict

from app.utils.errors import StageInputError


def keep_remote_identity(current: Optional[int], update: Optional[int]) -> Optional[int]:
    """Once a survey has a Voxco id it is never reset to None."""
    if update is None:
        return current
    return update


class SurveyCredentials(TypedDict):
    username: str
    password: str


class SurveySessionState(TypedDict, total=False):
    """State shared by every stage of one survey conversation"""
    session_id: str

    # Initialization
    initialization: Optional[Dict]  # dict form of an InitializationSource, fixed once initialized
    credentials: Optional[SurveyCredentials]
    document_text: Optional[str]  # extracted document text, only between document init and import

    # Survey document and its Voxco identity
    survey: Optional[Dict]
    remote_survey_id: Annotated[Optional[int], keep_remote_identity]

    # Current turn
    pending_user_message: Optional[str]
    display_text: Optional[str]
    last_error: Optional[str]
    error_surfaced: bool
    violations: List[str]  # schema violations of the last rejected edit
    import_errors: List[str]  # chunks skipped by the last document import
    save_status: Optional[str]  # None, "succeeded" or "failed"

    # Routing signal emitted by the last stage
    action: str


def require_credentials(state: SurveySessionState) -> SurveyCredentials:
    credentials = state.get("credentials")
    if not credentials or not credentials.get("username") or not credentials.get("password"):
        raise StageInputError("Voxco credentials not set.")
    return credentials
