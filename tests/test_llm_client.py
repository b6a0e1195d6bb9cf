import unittest

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from app.llm.client import SurveyLlm, _content_text
from app.utils.errors import LlmError


def failing_model(messages):
    raise RuntimeError("upstream unavailable")


class TestSurveyLlm(unittest.IsolatedAsyncioTestCase):

    async def test_generate_returns_text(self):
        llm = SurveyLlm(model=FakeListChatModel(responses=['{"action": "save"}']))

        self.assertEqual(await llm.generate("save it", system_prompt="You are a survey assistant."), '{"action": "save"}')

    async def test_stream_pieces_join_to_response(self):
        llm = SurveyLlm(model=FakeListChatModel(responses=["The survey has two blocks."]))

        pieces = [piece async for piece in llm.stream("describe the survey")]

        self.assertGreater(len(pieces), 1)
        self.assertEqual("".join(pieces), "The survey has two blocks.")

    async def test_generate_wraps_model_failure(self):
        llm = SurveyLlm(model=RunnableLambda(failing_model))

        with self.assertRaisesRegex(LlmError, "LLM API call failed: upstream unavailable"):
            await llm.generate("add a block")

    async def test_stream_wraps_model_failure(self):
        llm = SurveyLlm(model=RunnableLambda(failing_model))

        with self.assertRaises(LlmError):
            async for _ in llm.stream("add a block"):
                pass


class TestContentText(unittest.TestCase):

    def test_string_content(self):
        self.assertEqual(_content_text("plain"), "plain")

    def test_content_parts(self):
        parts = [{"type": "text", "text": "Hello "}, {"type": "image_url", "image_url": "x"}, "world"]
        self.assertEqual(_content_text(parts), "Hello world")
