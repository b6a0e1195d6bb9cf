import json

import yaml
from langsmith import traceable
from pydantic import ValidationError

from app.core.logging import logger
from app.llm.client import SurveyLlm
from app.llm.parsing import extract_json_value
from app.llm.schemas import ChatAgentResponse
from app.llm.workflow.routing import Action
from app.llm.workflow.survey_state import SurveySessionState
from app.survey.patching import try_apply_and_validate
from app.survey.validator import SurveySchemaValidator
from app.utils.errors import ResponseFormatError
from app.utils.files import get_project_root

CONTROL_WORDS = {
    "save": Action.SAVE,
    "exit": Action.EXIT,
    "quit": Action.EXIT,
}


class ChatAgent:
    def __init__(self, llm: SurveyLlm, validator: SurveySchemaValidator):
        self.llm = llm
        self.validator = validator
        self.schema_json = json.dumps(validator.schema, indent=2)

    def get_prompt(self, name: str) -> str:
        """Load prompt from YAML file."""
        prompt_path = get_project_root() / "app" / "llm" / "prompts" / "survey_chat.yml"
        with open(prompt_path, 'r') as f:
            prompts = yaml.safe_load(f)
        return prompts[name]["prompt"]

    def _prepare_prompt(self, survey: dict, user_message: str) -> str:
        return self.get_prompt("CHAT_AGENT_USER_PROMPT").format(
            survey_json=json.dumps(survey, indent=2),
            schema_json=self.schema_json,
            user_message=user_message
        )

    @staticmethod
    def _parse_response(response: str) -> ChatAgentResponse:
        value = extract_json_value(response, expect=dict)
        try:
            return ChatAgentResponse.model_validate(value)
        except ValidationError as e:
            problems = "; ".join(error["msg"] for error in e.errors())
            raise ResponseFormatError(f"LLM returned an invalid command: {problems}")

    def _modify(self, survey: dict, patch) -> dict:
        outcome = try_apply_and_validate(survey, patch, self.validator)
        if outcome.applied:
            logger.info("Survey successfully modified", operations=len(patch))
            return {
                "survey": outcome.document,
                "display_text": "Survey successfully modified.",
                "last_error": None
            }

        # Survey is left untouched
        message = f"Modification rejected: {outcome.message}"
        logger.info("Modification rejected", status=outcome.status, violation_count=len(outcome.violations))
        return {
            "display_text": message,
            "violations": outcome.violations,
            "last_error": message
        }

    @traceable(run_type="chain", name="Survey Chat Agent")
    async def chat_node(self, state: SurveySessionState):
        """Turn one user message into a survey edit, a reply, or a save/exit request"""
        session_id = state.get("session_id")
        user_message = (state.get("pending_user_message") or "").strip()
        turn = {
            "pending_user_message": None,
            "display_text": None,
            "violations": [],
            "error_surfaced": False,
            "save_status": None
        }

        if not user_message:
            logger.info("No user message, awaiting input", session_id=session_id)
            return {**turn, "action": Action.MODIFY.value}

        control_action = CONTROL_WORDS.get(user_message.lower())
        if control_action:
            logger.info("Control word received", session_id=session_id, action=control_action.value)
            return {**turn, "last_error": None, "action": control_action.value}

        survey = state.get("survey")
        if survey is None:
            return {
                **turn,
                "last_error": "Survey JSON is missing. Initialize a survey first.",
                "action": Action.ERROR.value
            }

        try:
            response = await self.llm.generate(
                self._prepare_prompt(survey, user_message),
                system_prompt=self.get_prompt("CHAT_AGENT_SYSTEM_PROMPT")
            )

            try:
                command = self._parse_response(response)
            except ResponseFormatError as e:
                logger.warning("Unusable chat agent response", session_id=session_id, error=str(e))
                message = f"Assistant response could not be processed as a command. {e}"
                return {**turn, "display_text": message, "last_error": message, "action": Action.MODIFY.value}

            logger.info("Chat agent decided", session_id=session_id, action=command.action)

            if command.action == "modify":
                return {**turn, **self._modify(survey, command.patch), "action": Action.MODIFY.value}
            if command.action == "display":
                return {**turn, "display_text": command.content, "last_error": None, "action": Action.MODIFY.value}
            return {**turn, "last_error": None, "action": Action(command.action).value}

        except Exception as e:
            # LlmError and anything unexpected leave the chat loop through the error stage
            logger.error(f"Error in chat agent: {e}", session_id=session_id)
            return {**turn, "last_error": f"ChatAgent failed: {e}", "action": Action.ERROR.value}
