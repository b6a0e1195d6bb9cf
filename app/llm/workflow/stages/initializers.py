import asyncio
from typing import Callable

from langsmith import traceable

from app.core.logging import logger
from app.integrations.documents import DocumentInput
from app.integrations.voxco import SurveyPlatform
from app.llm.schemas import (
    DocumentSource,
    ExistingRemoteBase,
    JsonSource,
    NewRemoteBase,
    RemoteSource,
    parse_initialization,
)
from app.llm.workflow.routing import Action
from app.llm.workflow.survey_state import SurveySessionState, require_credentials
from app.survey.templates import DOCUMENT_SURVEY_NAME, check_remote_payload, new_survey, strip_survey_identity
from app.survey.validator import SurveySchemaValidator
from app.utils.errors import (
    DocumentReadError,
    FlowConfigurationError,
    StageInputError,
    SurveySchemaError,
)

INITIALIZATION_ACTIONS = (Action.FROM_SCRATCH, Action.FROM_REMOTE_ID, Action.FROM_DOCUMENT, Action.FROM_JSON)


def initializer_router_node(state: SurveySessionState):
    """Pick the initializer for the session's initialization kind."""
    kind = (state.get("initialization") or {}).get("kind")
    if kind not in {action.value for action in INITIALIZATION_ACTIONS}:
        raise FlowConfigurationError(f"Unknown or missing initialization kind: {kind!r}")

    logger.info("Routing survey initialization", session_id=state.get("session_id"), kind=kind)
    return {"action": kind}


def scratch_initializer_node(state: SurveySessionState):
    logger.info("Initializing new survey from scratch", session_id=state.get("session_id"))
    return {
        "survey": new_survey(),
        "remote_survey_id": None,
        "display_text": "A new survey has been created. Tell me what to add.",
        "last_error": None,
        "action": Action.DEFAULT.value
    }


def _check_fetched_survey(payload, validator: SurveySchemaValidator) -> dict:
    survey = check_remote_payload(payload)
    violations = validator.validate(survey)
    if violations:
        raise SurveySchemaError(
            "Survey does not satisfy the questionnaire schema: " + "; ".join(violations),
            violations
        )
    return survey


class ApiInitializer:
    def __init__(self, platform: SurveyPlatform, validator: SurveySchemaValidator):
        self.platform = platform
        self.validator = validator

    @traceable(run_type="chain", name="API Initializer")
    async def api_node(self, state: SurveySessionState):
        """Adopt an existing Voxco survey as the starting document."""
        session_id = state.get("session_id")
        try:
            source = parse_initialization(state.get("initialization"))
            if not isinstance(source, RemoteSource):
                raise StageInputError("Initialization source is not a Voxco survey id.")
            credentials = require_credentials(state)

            logger.info("Importing survey from Voxco", session_id=session_id, survey_id=source.survey_id)
            token = await self.platform.authenticate(credentials["username"], credentials["password"])
            payload = await self.platform.fetch_survey(source.survey_id, token)
            survey = _check_fetched_survey(payload, self.validator)

        except Exception as e:
            logger.error(f"Error during API survey import: {e}", session_id=session_id)
            return {
                "last_error": f"API import failed: {e}",
                "action": Action.ERROR.value
            }

        logger.info("Survey imported from Voxco", session_id=session_id, survey_id=source.survey_id)
        return {
            "survey": survey,
            "remote_survey_id": source.survey_id,
            "display_text": f"Survey '{survey.get('name')}' imported from Voxco (ID: {source.survey_id}).",
            "last_error": None,
            "action": Action.DEFAULT.value
        }


class JsonInitializer:
    def __init__(self, validator: SurveySchemaValidator):
        self.validator = validator

    @traceable(run_type="chain", name="JSON Initializer")
    def json_node(self, state: SurveySessionState):
        """Start from an uploaded questionnaire JSON. The upload has no Voxco identity."""
        session_id = state.get("session_id")
        try:
            source = parse_initialization(state.get("initialization"))
            if not isinstance(source, JsonSource):
                raise StageInputError("Initialization source is not a questionnaire JSON.")

            survey = strip_survey_identity(source.survey)
            violations = self.validator.validate(survey)
            if violations:
                raise SurveySchemaError(
                    "Survey does not satisfy the questionnaire schema: " + "; ".join(violations),
                    violations
                )

        except Exception as e:
            logger.error(f"Error during JSON survey import: {e}", session_id=session_id)
            return {
                "last_error": f"JSON import failed: {e}",
                "action": Action.ERROR.value
            }

        logger.info("Survey imported from JSON", session_id=session_id, blocks=len(survey.get("blocks") or []))
        return {
            "survey": survey,
            "remote_survey_id": None,
            "display_text": f"Survey '{survey.get('name')}' imported from JSON.",
            "last_error": None,
            "action": Action.DEFAULT.value
        }


class DocumentInitializer:
    def __init__(
        self,
        platform: SurveyPlatform,
        validator: SurveySchemaValidator,
        extract_text: Callable[[DocumentInput], str]
    ):
        self.platform = platform
        self.validator = validator
        self.extract_text = extract_text

    async def _read_document(self, source: DocumentSource) -> str:
        document = source.content if source.content is not None else source.path
        text = await asyncio.to_thread(self.extract_text, document)
        if not text or not text.strip():
            raise DocumentReadError("The document contains no text.")
        return text

    async def _resolve_base(self, state: SurveySessionState, source: DocumentSource):
        """Return (base survey, Voxco id) for the chosen base strategy."""
        base = source.base
        if isinstance(base, NewRemoteBase):
            credentials = require_credentials(state)
            token = await self.platform.authenticate(credentials["username"], credentials["password"])
            survey_id = await self.platform.create_survey(base.survey_name, token)
            return new_survey(base.survey_name), survey_id

        if isinstance(base, ExistingRemoteBase):
            credentials = require_credentials(state)
            token = await self.platform.authenticate(credentials["username"], credentials["password"])
            payload = await self.platform.fetch_survey(base.survey_id, token)
            return _check_fetched_survey(payload, self.validator), base.survey_id

        return new_survey(DOCUMENT_SURVEY_NAME), None

    @traceable(run_type="chain", name="Document Initializer")
    async def document_node(self, state: SurveySessionState):
        """Read the uploaded document and establish the base survey it is imported into."""
        session_id = state.get("session_id")
        try:
            source = parse_initialization(state.get("initialization"))
            if not isinstance(source, DocumentSource):
                raise StageInputError("Initialization source is not a document.")

            # Read first so a broken upload never leaves an orphan survey on Voxco
            text = await self._read_document(source)
            logger.info(
                "Initializing survey from document",
                session_id=session_id,
                base=source.base.type,
                characters=len(text)
            )
            survey, survey_id = await self._resolve_base(state, source)

        except Exception as e:
            logger.error(f"Error during document initialization: {e}", session_id=session_id)
            return {
                "last_error": f"Document initialization failed: {e}",
                "action": Action.ERROR.value
            }

        logger.info("Base survey established", session_id=session_id, survey_id=survey_id)
        return {
            "survey": survey,
            "remote_survey_id": survey_id,
            "document_text": text,
            "import_errors": [],
            "last_error": None,
            "action": Action.DOCUMENT_READY.value
        }
