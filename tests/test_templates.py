import pytest

from app.survey.templates import (
    DEFAULT_SURVEY_NAME,
    check_remote_payload,
    new_survey,
    strip_survey_identity,
)
from app.utils.errors import RemotePlatformError
from fakes import remote_survey


class TestNewSurvey:

    def test_defaults(self):
        survey = new_survey()

        assert survey["name"] == DEFAULT_SURVEY_NAME
        assert survey["id"] is None
        assert survey["languages"] == ["en"]
        assert survey["defaultLanguage"] == "en"
        assert survey["blocks"] == []
        assert survey["choiceLists"] == []
        assert survey["translatedTexts"] == {"en": {}}

    def test_each_call_is_independent(self):
        first = new_survey("A")
        first["blocks"].append({"name": "B", "questions": []})
        assert new_survey("A")["blocks"] == []


class TestStripSurveyIdentity:

    def test_clears_id_without_touching_input(self):
        survey = remote_survey(42)
        stripped = strip_survey_identity(survey)

        assert stripped["id"] is None
        assert survey["id"] == 42
        assert stripped["blocks"] == survey["blocks"]


class TestCheckRemotePayload:

    def test_accepts_voxco_export(self):
        survey = remote_survey(42)
        assert check_remote_payload(survey) is survey

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {"languages": ["en"]},
        {"id": "42", "languages": ["en"]},
        {"id": True, "languages": ["en"]},
    ])
    def test_rejects_payload_without_numeric_id(self, payload):
        with pytest.raises(RemotePlatformError):
            check_remote_payload(payload)

    def test_rejects_payload_without_languages(self):
        with pytest.raises(RemotePlatformError, match="languages"):
            check_remote_payload({"id": 42, "languages": "en"})
