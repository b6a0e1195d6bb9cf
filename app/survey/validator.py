import json
from functools import lru_cache
from typing import List, Optional

from jsonschema.validators import validator_for

from app.utils.files import get_project_root

SCHEMA_PATH = get_project_root() / "app" / "survey" / "schemas" / "questionnaire.schema.json"


def load_questionnaire_schema() -> dict:
    """Load the Voxco questionnaire JSON schema."""
    with open(SCHEMA_PATH, 'r', encoding="utf-8") as f:
        return json.load(f)


def _pointer(path) -> str:
    return "/" + "/".join(str(part) for part in path) if path else "/"


class SurveySchemaValidator:
    """Compiled questionnaire schema exposing a single validity predicate."""

    def __init__(self, schema: Optional[dict] = None):
        self.schema = schema if schema is not None else load_questionnaire_schema()
        validator_cls = validator_for(self.schema)
        validator_cls.check_schema(self.schema)
        self._validator = validator_cls(self.schema)

    def validate(self, document) -> List[str]:
        """Return the itemized violations; an empty list means the document is valid."""
        errors = sorted(
            self._validator.iter_errors(document),
            key=lambda e: [str(part) for part in e.absolute_path]
        )
        return [f"{_pointer(e.absolute_path)}: {e.message}" for e in errors]

    def is_valid(self, document) -> bool:
        return self._validator.is_valid(document)


@lru_cache
def get_schema_validator() -> SurveySchemaValidator:
    return SurveySchemaValidator()
