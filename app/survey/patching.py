import copy
from dataclasses import dataclass, field
from typing import List, Optional

import jsonpatch
from pydantic import TypeAdapter, ValidationError

from app.llm.schemas import PatchOperation
from app.survey.validator import SurveySchemaValidator
from app.utils.errors import PatchApplicationError

APPLIED = "applied"
STRUCTURAL_FAILURE = "structural_failure"
SCHEMA_FAILURE = "schema_failure"

_patch_adapter = TypeAdapter(List[PatchOperation])


def _summarize_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = "/".join(str(part) for part in item["loc"])
        problems.append(f"operation {location}: {item['msg']}" if location else item["msg"])
    return "; ".join(problems)


def parse_patch(raw) -> List[PatchOperation]:
    """Reject anything that is not a well-formed list of JSON Patch operations."""
    if not isinstance(raw, list):
        raise PatchApplicationError("Patch must be a JSON array of operations.")
    try:
        return _patch_adapter.validate_python(raw)
    except ValidationError as e:
        raise PatchApplicationError(f"Malformed patch: {_summarize_validation_error(e)}")


def apply_patch(document: dict, operations: List[PatchOperation]) -> dict:
    """Apply operations to a deep copy of document. The input is never mutated."""
    working = copy.deepcopy(document)
    try:
        patch = jsonpatch.JsonPatch([operation.to_json_patch() for operation in operations])
        return patch.apply(working, in_place=True)
    except (jsonpatch.JsonPatchException, jsonpatch.JsonPointerException) as e:
        raise PatchApplicationError(str(e))
    except (KeyError, IndexError, TypeError) as e:
        raise PatchApplicationError(f"Patch does not fit the survey structure: {e}")


@dataclass
class PatchOutcome:
    status: str
    document: Optional[dict] = None
    message: str = ""
    violations: List[str] = field(default_factory=list)

    @property
    def applied(self) -> bool:
        return self.status == APPLIED


def format_violations(violations: List[str]) -> str:
    return "\n".join(f"- {violation}" for violation in violations)


def try_apply_and_validate(document: dict, raw_patch, validator: SurveySchemaValidator) -> PatchOutcome:
    """
    Patch-validate transaction shared by the chat agent and the document importer.

    Returns the candidate document only when both the patch applied cleanly
    and the result satisfies the questionnaire schema.
    """
    try:
        operations = parse_patch(raw_patch)
        candidate = apply_patch(document, operations)
    except PatchApplicationError as e:
        return PatchOutcome(status=STRUCTURAL_FAILURE, message=f"Error applying patch: {e}")

    violations = validator.validate(candidate)
    if violations:
        return PatchOutcome(
            status=SCHEMA_FAILURE,
            message=f"Resulting survey is invalid:\n{format_violations(violations)}",
            violations=violations
        )
    return PatchOutcome(status=APPLIED, document=candidate)
