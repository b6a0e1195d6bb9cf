"""Scripted stand-ins for the model, the Voxco platform and the document reader."""

import copy
import json
from typing import List, Optional

from app.survey.templates import new_survey
from app.utils.errors import LlmError, RemotePlatformError

CREDENTIALS = {"username": "analyst", "password": "secret"}


class ScriptedLlm:
    """Returns queued responses in order; a queued exception is raised instead."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    def queue(self, *responses):
        self.responses.extend(responses)

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise LlmError("LLM API call failed: no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response


class FakePlatform:
    """In-memory Voxco account that records every call."""

    def __init__(self, surveys=None, next_id: int = 1001, fail_on=(), accept_writes: bool = True):
        self.surveys = {survey_id: copy.deepcopy(survey) for survey_id, survey in (surveys or {}).items()}
        self.next_id = next_id
        self.fail_on = set(fail_on)
        self.accept_writes = accept_writes
        self.calls = []

    def _record(self, name: str, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise RemotePlatformError(f"{name} failed: 500 Internal Server Error")

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def authenticate(self, username: str, password: str) -> str:
        self._record("authenticate", username)
        return "token-123"

    async def create_survey(self, name: str, token: str) -> int:
        self._record("create_survey", name)
        survey_id = self.next_id
        self.next_id += 1
        self.surveys[survey_id] = None
        return survey_id

    async def fetch_survey(self, survey_id: int, token: str) -> dict:
        self._record("fetch_survey", survey_id)
        if self.surveys.get(survey_id) is None:
            raise RemotePlatformError(f"Survey import failed: 404 Not Found - survey {survey_id}")
        return copy.deepcopy(self.surveys[survey_id])

    async def replace_survey(self, survey_id: int, survey: dict, token: str) -> bool:
        self._record("replace_survey", survey_id)
        if not self.accept_writes:
            return False
        self.surveys[survey_id] = copy.deepcopy(survey)
        return True


def fixed_text_extractor(text: str):
    def extract(source):
        return text
    return extract


def remote_survey(survey_id: int, name: str = "Customer Satisfaction") -> dict:
    survey = new_survey(name)
    survey["id"] = survey_id
    survey["blocks"] = [
        {
            "name": "Intro",
            "questions": [
                {"name": "Q1", "type": "OpenEnd", "text": {"en": "What brought you here today?"}}
            ]
        }
    ]
    return survey


def modify_response(*operations) -> dict:
    return {"action": "modify", "patch": list(operations)}


def add_block(name: str) -> dict:
    return {"op": "add", "path": "/blocks/-", "value": {"name": name, "questions": []}}


def add_question(block_index: int, name: str, question_type: str, text: str) -> dict:
    return {
        "op": "add",
        "path": f"/blocks/{block_index}/questions/-",
        "value": {"name": name, "type": question_type, "text": {"en": text}}
    }
