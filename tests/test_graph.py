"""End-to-end conversations through the compiled survey graph"""

import unittest

from langgraph.checkpoint.memory import MemorySaver

from app.llm.workflow.survey_graph import SurveyBuilderGraph, SurveyConversation, SurveyStages
from app.survey.validator import SurveySchemaValidator
from app.utils.errors import SessionEndedError, SurveyNotInitializedError
from fakes import (
    CREDENTIALS,
    FakePlatform,
    ScriptedLlm,
    add_block,
    add_question,
    fixed_text_extractor,
    modify_response,
    remote_survey,
)

SCRATCH = {"kind": "from_scratch"}


class TestSurveyConversation(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.llm = ScriptedLlm()
        self.platform = FakePlatform(surveys={42: remote_survey(42)})
        self.validator = SurveySchemaValidator()
        stages = SurveyStages(
            llm=self.llm,
            platform=self.platform,
            validator=self.validator,
            extract_text=fixed_text_extractor("Section A\nQ1. How old are you?")
        )
        graph = SurveyBuilderGraph(stages).compile_graph(checkpointer=MemorySaver())
        self.conversation = SurveyConversation(graph)

    async def test_scratch_session_pauses_before_chat(self):
        result = await self.conversation.start("s1", SCRATCH, CREDENTIALS)

        self.assertFalse(result.ended)
        self.assertEqual(result.values["survey"]["blocks"], [])
        self.assertIsNone(result.values["remote_survey_id"])
        self.assertIn("new survey", result.values["display_text"])

    async def test_accepted_and_rejected_edits(self):
        await self.conversation.start("s1", SCRATCH, CREDENTIALS)

        self.llm.queue(modify_response(add_block("Demographics")))
        accepted = await self.conversation.send("s1", "Add a Demographics block")

        self.assertEqual(accepted.values["display_text"], "Survey successfully modified.")
        self.assertEqual(accepted.values["survey"]["blocks"][0]["name"], "Demographics")
        self.assertTrue(self.validator.is_valid(accepted.values["survey"]))

        self.llm.queue(modify_response(add_question(0, "Q1", "Slider", "How old are you?")))
        rejected = await self.conversation.send("s1", "Add an age slider")

        self.assertFalse(rejected.ended)
        self.assertEqual(rejected.values["survey"], accepted.values["survey"])
        self.assertTrue(rejected.values["violations"])
        self.assertTrue(rejected.values["display_text"].startswith("Modification rejected"))

    async def test_save_creates_remote_survey_exactly_once(self):
        await self.conversation.start("s1", SCRATCH, CREDENTIALS)

        first = await self.conversation.send("s1", "save")

        self.assertEqual(first.values["remote_survey_id"], 1001)
        self.assertEqual(first.values["save_status"], "succeeded")
        self.assertFalse(first.ended)

        self.llm.queue(modify_response({"op": "replace", "path": "/name", "value": "Brand Tracker"}))
        await self.conversation.send("s1", "Rename the survey to Brand Tracker")
        second = await self.conversation.send("s1", "save")

        self.assertEqual(second.values["remote_survey_id"], 1001)
        self.assertEqual(self.platform.count("create_survey"), 1)
        self.assertEqual(self.platform.count("replace_survey"), 2)
        self.assertEqual(self.platform.surveys[1001]["name"], "Brand Tracker")

    async def test_failed_save_surfaces_error_and_keeps_identity(self):
        self.platform.fail_on.add("replace_survey")
        await self.conversation.start("s1", SCRATCH, CREDENTIALS)

        failed = await self.conversation.send("s1", "save")

        self.assertFalse(failed.ended)
        self.assertTrue(failed.values["error_surfaced"])
        self.assertEqual(failed.values["save_status"], "failed")
        self.assertEqual(failed.values["remote_survey_id"], 1001)
        self.assertTrue(failed.values["display_text"].startswith("Failed to save survey"))

        self.platform.fail_on.clear()
        retried = await self.conversation.send("s1", "save")

        self.assertEqual(retried.values["save_status"], "succeeded")
        self.assertEqual(self.platform.count("create_survey"), 1)

    async def test_model_failure_returns_to_chat(self):
        await self.conversation.start("s1", SCRATCH, CREDENTIALS)

        result = await self.conversation.send("s1", "Add a block")

        self.assertFalse(result.ended)
        self.assertTrue(result.values["error_surfaced"])
        self.assertTrue(result.values["display_text"].startswith("ChatAgent failed"))

    async def test_exit_ends_conversation(self):
        await self.conversation.start("s1", SCRATCH, CREDENTIALS)

        result = await self.conversation.send("s1", "exit")

        self.assertTrue(result.ended)
        with self.assertRaises(SessionEndedError):
            await self.conversation.send("s1", "Add a block")

    async def test_send_before_start_is_rejected(self):
        with self.assertRaises(SurveyNotInitializedError):
            await self.conversation.send("unknown", "hello")

    async def test_remote_initialization(self):
        result = await self.conversation.start("s1", {"kind": "from_remote_id", "survey_id": 42}, CREDENTIALS)

        self.assertEqual(result.values["remote_survey_id"], 42)
        self.assertEqual(result.values["survey"]["blocks"][0]["name"], "Intro")

        await self.conversation.send("s1", "save")
        self.assertEqual(self.platform.count("create_survey"), 0)

    async def test_failed_remote_initialization_is_surfaced(self):
        result = await self.conversation.start("s1", {"kind": "from_remote_id", "survey_id": 7}, CREDENTIALS)

        self.assertFalse(result.ended)
        self.assertTrue(result.values["error_surfaced"])
        self.assertIsNone(result.values["survey"])
        self.assertTrue(result.values["display_text"].startswith("API import failed"))

    async def test_document_initialization_imports_chunks(self):
        self.llm.queue(
            [
                {"kind": "block", "text": "Section A"},
                {"kind": "question", "text": "Q1. How old are you?", "parent_context": "Section A"},
            ],
            [add_block("Section A")],
            [add_question(0, "Q1", "Numeric", "How old are you?")],
        )
        initialization = {
            "kind": "from_document",
            "content": b"docx-bytes",
            "base": {"type": "new_remote", "survey_name": "Age Study"},
        }

        result = await self.conversation.start("s1", initialization, CREDENTIALS)

        self.assertFalse(result.ended)
        self.assertEqual(result.values["remote_survey_id"], 1001)
        self.assertEqual(result.values["import_errors"], [])
        self.assertIsNone(result.values["document_text"])
        self.assertEqual(result.values["survey"]["blocks"][0]["questions"][0]["name"], "Q1")

        await self.conversation.send("s1", "save")
        self.assertEqual(self.platform.count("create_survey"), 1)

    async def test_sessions_are_isolated(self):
        await self.conversation.start("s1", SCRATCH, CREDENTIALS)
        await self.conversation.start("s2", SCRATCH, CREDENTIALS)

        self.llm.queue(modify_response(add_block("Only in s1")))
        await self.conversation.send("s1", "Add a block")

        other = await self.conversation.snapshot("s2")
        self.assertEqual(other.values["survey"]["blocks"], [])
