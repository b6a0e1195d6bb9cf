from functools import lru_cache
from typing import AsyncIterator, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI
from langsmith import traceable

from app.core.config import settings
from app.core.logging import logger
from app.utils.errors import LlmError


def _content_text(content) -> str:
    """Flatten message content, which some providers return as a list of parts."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class SurveyLlm:
    """Text-in/text-out wrapper around the chat model used by every survey stage."""

    def __init__(self, model: Optional[Runnable] = None):
        self.llm = model if model is not None else self._default_model()

    @staticmethod
    def _default_model() -> Runnable:
        model = ChatOpenAI(
            model=settings.OPENAI_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            max_retries=settings.LLM_MAX_RETRIES
        )
        gemini_model = ChatGoogleGenerativeAI(
            model=settings.GEMINI_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            max_retries=2
        )
        return model.with_fallbacks([gemini_model])

    @staticmethod
    def _messages(prompt: str, system_prompt: Optional[str]) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))
        return messages

    @traceable(run_type="llm", name="Survey LLM")
    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        try:
            response = await self.llm.ainvoke(self._messages(prompt, system_prompt))
        except Exception as e:
            logger.error(f"Error calling LLM: {e}")
            raise LlmError(f"LLM API call failed: {e}")
        return _content_text(response.content)

    async def stream(self, prompt: str, system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Yield the response text as it arrives; the pieces join to the full response."""
        try:
            async for chunk in self.llm.astream(self._messages(prompt, system_prompt)):
                text = _content_text(chunk.content)
                if text:
                    yield text
        except Exception as e:
            logger.error(f"Error streaming from LLM: {e}")
            raise LlmError(f"LLM API call failed: {e}")


@lru_cache
def get_llm() -> SurveyLlm:
    return SurveyLlm()
