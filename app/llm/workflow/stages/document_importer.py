import json
from typing import List

import yaml
from langsmith import traceable
from pydantic import TypeAdapter, ValidationError

from app.core.logging import logger
from app.llm.client import SurveyLlm
from app.llm.parsing import extract_json_value
from app.llm.schemas import SurveyChunk
from app.llm.workflow.routing import Action
from app.llm.workflow.survey_state import SurveySessionState
from app.survey.patching import SCHEMA_FAILURE, try_apply_and_validate
from app.survey.templates import strip_survey_identity
from app.survey.validator import SurveySchemaValidator
from app.utils.errors import ChunkSegmentationError, LlmError, ResponseFormatError
from app.utils.files import get_project_root

_chunks_adapter = TypeAdapter(List[SurveyChunk])


class DocumentImporter:
    """
    Builds the survey from extracted document text, one chunk at a time.

    The model first segments the text into ordered chunks, then proposes a
    patch per chunk against the survey accumulated so far. A chunk whose
    patch cannot be parsed, applied or validated is skipped and recorded;
    the import as a whole still completes.
    """

    def __init__(self, llm: SurveyLlm, validator: SurveySchemaValidator):
        self.llm = llm
        self.validator = validator
        self.schema_json = json.dumps(validator.schema, indent=2)

    def get_prompt(self, name: str) -> str:
        """Load prompt from YAML file."""
        prompt_path = get_project_root() / "app" / "llm" / "prompts" / "document_import.yml"
        with open(prompt_path, 'r') as f:
            prompts = yaml.safe_load(f)
        return prompts[name]["prompt"]

    async def _segment(self, document_text: str) -> List[SurveyChunk]:
        response = await self.llm.generate(
            self.get_prompt("CHUNKING_USER_PROMPT").format(document_text=document_text),
            system_prompt=self.get_prompt("CHUNKING_SYSTEM_PROMPT")
        )
        try:
            chunks = _chunks_adapter.validate_python(extract_json_value(response, expect=list))
        except (ResponseFormatError, ValidationError) as e:
            logger.error(f"Failed to parse chunks from LLM response: {e}")
            raise ChunkSegmentationError(f"Failed to parse survey chunks from document: {e}")
        if not chunks:
            raise ChunkSegmentationError("No survey content was found in the document.")
        return chunks

    async def _propose_patch(self, survey: dict, chunk: SurveyChunk, index: int, count: int):
        prompt = self.get_prompt("CHUNK_PATCH_USER_PROMPT").format(
            chunk_index=index,
            chunk_count=count,
            survey_json=json.dumps(survey, indent=2),
            schema_json=self.schema_json,
            chunk_json=json.dumps(chunk.model_dump(), indent=2)
        )
        response = await self.llm.generate(prompt, system_prompt=self.get_prompt("CHUNK_PATCH_SYSTEM_PROMPT"))
        return extract_json_value(response, expect=list)

    @traceable(run_type="chain", name="Document Import")
    async def import_node(self, state: SurveySessionState):
        session_id = state.get("session_id")
        survey = state.get("survey")
        document_text = state.get("document_text")

        if survey is None or not document_text:
            return {
                "document_text": None,
                "last_error": "Document import failed: base survey or document text is missing.",
                "action": Action.ERROR.value
            }

        try:
            chunks = await self._segment(document_text)
        except (ChunkSegmentationError, LlmError) as e:
            return {
                "document_text": None,
                "last_error": f"Document parsing failed: {e}",
                "action": Action.ERROR.value
            }

        logger.info("Document segmented", session_id=session_id, chunk_count=len(chunks))

        current = survey
        errors: List[str] = []
        for index, chunk in enumerate(chunks, start=1):
            label = f"Chunk {index}/{len(chunks)} ({chunk.kind}: {chunk.excerpt()})"
            try:
                raw_patch = await self._propose_patch(current, chunk, index, len(chunks))
            except (LlmError, ResponseFormatError) as e:
                logger.warning("Skipping chunk without usable patch", session_id=session_id, chunk=index, error=str(e))
                errors.append(f"{label}: {e}")
                continue

            outcome = try_apply_and_validate(current, raw_patch, self.validator)
            if outcome.applied:
                current = outcome.document
                logger.info("Chunk merged into survey", session_id=session_id, chunk=index)
            else:
                reason = "; ".join(outcome.violations) if outcome.status == SCHEMA_FAILURE else outcome.message
                logger.warning("Skipping rejected chunk", session_id=session_id, chunk=index, status=outcome.status)
                errors.append(f"{label}: {reason}")

        if (state.get("initialization") or {}).get("base", {}).get("type") != "existing_remote":
            current = strip_survey_identity(current)

        imported = len(chunks) - len(errors)
        display_text = f"The document has been processed: {imported} of {len(chunks)} chunks were added to the survey."
        if errors:
            display_text += f" {len(errors)} chunk(s) could not be imported."
            logger.warning("Document import completed with errors", session_id=session_id, error_count=len(errors))

        return {
            "survey": current,
            "document_text": None,
            "import_errors": errors,
            "display_text": display_text,
            "last_error": None,
            "action": Action.DEFAULT.value
        }
