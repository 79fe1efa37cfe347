"""LLM integration via LangChain + OpenAI."""

import logging

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from prepcoach.core.config import settings
from prepcoach.core.errors import CompletionError
from prepcoach.models.schemas import EvaluationResult, RankedPassage
from prepcoach.prompts.interview import build_evaluation_prompt, build_question_prompt
from prepcoach.services.evaluation_parser import parse_evaluation

logger = logging.getLogger(__name__)


def get_llm() -> ChatOpenAI:
    """Create a ChatOpenAI instance (stateless, no need to cache)."""
    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=settings.openai_temperature,
        timeout=settings.openai_timeout,
        max_retries=0,
    )


async def complete(system_prompt: str, user_prompt: str) -> str:
    """Send one system + user exchange and return the completion text.

    Any upstream failure surfaces as CompletionError.
    """
    llm = get_llm()
    messages = [
        SystemMessage(content=system_prompt),
        HumanMessage(content=user_prompt),
    ]

    try:
        response = await llm.ainvoke(messages)
    except Exception as exc:
        logger.error("Chat completion failed: %s", exc)
        raise CompletionError(f"completion request failed: {exc}") from exc

    text = response.content if isinstance(response.content, str) else ""
    if not text.strip():
        raise CompletionError("completion service returned no text")

    logger.info("LLM raw response: %s", text[:500])
    return text


async def generate_questions(jd_text: str) -> str:
    """Ask for three interview questions grounded in the job description."""
    system_prompt, user_prompt = build_question_prompt(jd_text, char_budget=settings.jd_char_budget)
    return await complete(system_prompt, user_prompt)


async def evaluate_response(
    question: str | None,
    response: str,
    passages: list[RankedPassage],
) -> EvaluationResult:
    """Score a candidate's answer against the retrieved context.

    A missing or out-of-range score is not an error; the evaluation text is
    still returned.
    """
    system_prompt, user_prompt = build_evaluation_prompt(question, response, passages)
    raw_text = await complete(system_prompt, user_prompt)

    result = parse_evaluation(raw_text)
    if result.score is None:
        logger.warning("No usable score in evaluation: %s", raw_text[:200])
    return result
