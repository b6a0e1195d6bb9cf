from langsmith import traceable

from app.core.logging import logger
from app.integrations.voxco import SurveyPlatform
from app.llm.workflow.routing import Action
from app.llm.workflow.survey_state import SurveySessionState, require_credentials
from app.utils.errors import RemotePlatformError, StageInputError

FALLBACK_SURVEY_NAME = "Unnamed Survey"


class SaveStage:
    def __init__(self, platform: SurveyPlatform):
        self.platform = platform

    @traceable(run_type="chain", name="Save To Voxco")
    async def save_node(self, state: SurveySessionState):
        """
        Push the survey to Voxco.

        A survey without a Voxco id is created first and the returned id is
        recorded immediately, even when the content write that follows fails,
        so a later save never creates a second record for the same session.
        """
        session_id = state.get("session_id")
        survey = state.get("survey")
        survey_id = state.get("remote_survey_id")
        created_id = None

        try:
            if not survey:
                raise StageInputError("No survey available to save.")
            credentials = require_credentials(state)
            token = await self.platform.authenticate(credentials["username"], credentials["password"])

            if survey_id is None:
                name = survey.get("name") or FALLBACK_SURVEY_NAME
                logger.info("Creating survey on Voxco", session_id=session_id, survey_name=name)
                created_id = await self.platform.create_survey(name, token)
                survey_id = created_id

            logger.info("Saving survey to Voxco", session_id=session_id, survey_id=survey_id)
            if not await self.platform.replace_survey(survey_id, survey, token):
                raise RemotePlatformError("Voxco rejected the survey content.")

        except Exception as e:
            logger.error(f"Error saving to Voxco: {e}", session_id=session_id)
            update = {
                "save_status": "failed",
                "last_error": f"Failed to save survey: {e}",
                "action": Action.ERROR.value
            }
            if created_id is not None:
                update["remote_survey_id"] = created_id
            return update

        return {
            "remote_survey_id": survey_id,
            "save_status": "succeeded",
            "display_text": f"Survey successfully saved to Voxco with ID: {survey_id}",
            "last_error": None,
            "action": Action.DEFAULT.value
        }
