from fastapi import APIRouter, Depends, Response
from functools import lru_cache
from langsmith.run_helpers import traceable
from datetime import datetime
from typing import Optional

from app.api.v1.schemas.survey import (
    InitSurveyInput,
    SurveyChatInput,
    SurveySessionInput,
    SurveySessionResponse
)
from app.api.v1.schemas.error import error_response
from app.core.config import settings
from app.core.logging import logger
from app.llm.workflow.survey_graph import SurveyBuilderGraph, SurveyConversation, SurveyStages, TurnResult
from app.llm.workflow.survey_state import SurveyCredentials
from app.utils.errors import AgentException, ChatError, InitializationError, SurveyNotInitializedError
from app.utils.files import export_survey
from app.utils.memory import SurveySessionStore, survey_session_store


router = APIRouter()

SESSION_ERRORS = {404: error_response(404), 409: error_response(409), 500: error_response(500)}


def get_session_store() -> SurveySessionStore:
    return survey_session_store


@lru_cache
def get_survey_conversation() -> SurveyConversation:
    graph = SurveyBuilderGraph(SurveyStages.default()).compile_graph(
        checkpointer=survey_session_store.get_checkpointer()
    )
    return SurveyConversation(graph)


def _credentials(survey_input: InitSurveyInput) -> Optional[SurveyCredentials]:
    username = survey_input.username or settings.VOXCO_USERNAME
    password = survey_input.password or settings.VOXCO_PASSWORD
    if not username or not password:
        return None
    return {"username": username, "password": password}


def _session_response(session_id: str, result: TurnResult, message: Optional[str] = None) -> dict:
    values = result.values
    return {
        "session_id": session_id,
        "message": message or values.get("display_text"),
        "survey": values.get("survey"),
        "remote_survey_id": values.get("remote_survey_id"),
        "violations": values.get("violations") or [],
        "import_errors": values.get("import_errors") or [],
        "save_status": values.get("save_status"),
        "ended": result.ended,
        "created_at": datetime.now()
    }


async def _run_turn(
    session_id: str,
    message: str,
    store: SurveySessionStore,
    conversation: SurveyConversation
) -> TurnResult:
    try:
        async with store.turn(session_id):
            return await conversation.send(session_id, message)
    except AgentException:
        raise
    except Exception as e:
        logger.error(f"Error processing survey turn: {e}", session_id=session_id)
        raise ChatError(str(e))


@router.post(
    "/initialize",
    response_model=SurveySessionResponse,
    responses={400: error_response(400), 503: error_response(503), 500: error_response(500)}
)
async def initialize_survey(
    survey_input: InitSurveyInput,
    store: SurveySessionStore = Depends(get_session_store),
    conversation: SurveyConversation = Depends(get_survey_conversation)
):
    """Start a session and build its first survey document"""
    session_id = store.create()
    logger.info("Initializing survey session", session_id=session_id, kind=survey_input.initialization.kind)

    try:
        async with store.turn(session_id):
            result = await conversation.start(session_id, survey_input.to_initialization(), _credentials(survey_input))
    except Exception as e:
        store.remove(session_id)
        logger.error(f"Error initializing survey: {e}", session_id=session_id)
        if isinstance(e, AgentException):
            raise
        raise ChatError(str(e))

    if result.values.get("error_surfaced") or result.values.get("survey") is None:
        store.remove(session_id)
        raise InitializationError(
            result.values.get("display_text") or "Survey initialization failed.",
            remote_survey_id=result.values.get("remote_survey_id")
        )

    logger.info("Survey session initialized", session_id=session_id, remote_survey_id=result.values.get("remote_survey_id"))
    return _session_response(session_id, result)


@router.post("/chat", response_model=SurveySessionResponse, responses=SESSION_ERRORS)
@traceable(name="Survey Chat")
async def survey_chat(
    chat_input: SurveyChatInput,
    store: SurveySessionStore = Depends(get_session_store),
    conversation: SurveyConversation = Depends(get_survey_conversation)
):
    """Send one instruction to the survey assistant"""
    logger.info("Processing survey chat", session_id=chat_input.session_id)
    result = await _run_turn(chat_input.session_id, chat_input.message, store, conversation)
    return _session_response(chat_input.session_id, result)


@router.post("/save", response_model=SurveySessionResponse, responses=SESSION_ERRORS)
async def save_survey(
    session_input: SurveySessionInput,
    store: SurveySessionStore = Depends(get_session_store),
    conversation: SurveyConversation = Depends(get_survey_conversation)
):
    """Save the current survey to Voxco"""
    logger.info("Saving survey", session_id=session_input.session_id)
    result = await _run_turn(session_input.session_id, "save", store, conversation)
    return _session_response(session_input.session_id, result)


@router.post("/export", responses={400: error_response(400), 404: error_response(404)})
async def export_survey_json(
    session_input: SurveySessionInput,
    store: SurveySessionStore = Depends(get_session_store),
    conversation: SurveyConversation = Depends(get_survey_conversation)
):
    """Download the current survey as a JSON file"""
    session_id = session_input.session_id
    async with store.turn(session_id):
        result = await conversation.snapshot(session_id)

    survey = result.values.get("survey")
    if survey is None:
        raise SurveyNotInitializedError()

    filename, content = export_survey(survey, result.values.get("remote_survey_id"), settings.EXPORT_DIR)
    logger.info("Survey exported", session_id=session_id, filename=filename)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/{session_id}", response_model=SurveySessionResponse, responses={404: error_response(404)})
async def get_survey_session(
    session_id: str,
    store: SurveySessionStore = Depends(get_session_store),
    conversation: SurveyConversation = Depends(get_survey_conversation)
):
    """Current survey and its Voxco identity"""
    store.touch(session_id)
    result = await conversation.snapshot(session_id)
    return _session_response(session_id, result)


@router.delete("/{session_id}", response_model=SurveySessionResponse, responses={404: error_response(404)})
async def close_survey_session(
    session_id: str,
    store: SurveySessionStore = Depends(get_session_store),
    conversation: SurveyConversation = Depends(get_survey_conversation)
):
    """Exit the conversation and discard the session"""
    async with store.turn(session_id):
        result = await conversation.snapshot(session_id)
        if not result.ended:
            result = await conversation.send(session_id, "exit")

    store.remove(session_id)
    logger.info("Survey session closed", session_id=session_id)
    return _session_response(session_id, result, message="Session closed.")
