from typing import Optional

from app.utils.errors import RemotePlatformError

DEFAULT_SURVEY_NAME = "New Survey from Bot"
DOCUMENT_SURVEY_NAME = "Survey from Document"
DEFAULT_LANGUAGE = "en"


def new_survey(name: Optional[str] = DEFAULT_SURVEY_NAME) -> dict:
    """Minimal questionnaire that satisfies the schema."""
    return {
        "id": None,
        "name": name,
        "version": 1,
        "useS2": False,
        "settings": {},
        "languages": [DEFAULT_LANGUAGE],
        "defaultLanguage": DEFAULT_LANGUAGE,
        "blocks": [],
        "choiceLists": [],
        "translatedTexts": {DEFAULT_LANGUAGE: {}},
        "theme": {},
    }


def strip_survey_identity(survey: dict) -> dict:
    # The questionnaire's own id only means something for documents fetched from Voxco
    stripped = dict(survey)
    stripped["id"] = None
    return stripped


def check_remote_payload(payload) -> dict:
    """Reject Voxco payloads that lack a numeric id or a language list."""
    if not isinstance(payload, dict):
        raise RemotePlatformError("Survey payload is not a JSON object.")
    survey_id = payload.get("id")
    if not isinstance(survey_id, int) or isinstance(survey_id, bool):
        raise RemotePlatformError("Survey payload lacks a numeric 'id'.")
    if not isinstance(payload.get("languages"), list):
        raise RemotePlatformError("Survey payload lacks a 'languages' list.")
    return payload
