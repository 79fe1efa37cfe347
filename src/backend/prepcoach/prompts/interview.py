"""Prompt templates for interview practice.

Versioned so we can track which prompt produced which evaluations.
"""

from prepcoach.models.schemas import RankedPassage

PROMPT_VERSION = "v1.0"

QUESTION_SYSTEM_PROMPT = "You are an experienced technical interviewer."

QUESTION_PROMPT_TEMPLATE = """\
Based on this job description, generate exactly 3 interview questions that are \
relevant and specific to the role. Return ONLY the questions, numbered 1-3, \
without any additional text or explanations.

Job Description:
{jd_text}"""

EVALUATION_SYSTEM_PROMPT = "You are an expert technical interviewer providing constructive feedback."

DEFAULT_QUESTION = "the interview question"

EVALUATION_PROMPT_TEMPLATE = """\
You are an experienced technical interviewer evaluating a candidate's response.

Question: {question}

Candidate's Response: {response}

Relevant Information:
{context}

Evaluate the candidate's response based on:
1. Relevance to the question
2. Alignment with their resume/experience
3. Fit with job requirements
4. Communication clarity

Provide:
- A score from 1-10 (where 10 is excellent)
- Concise feedback in 100 words maximum
- One specific suggestion for improvement

Format your response as:
Score: [number]
Feedback: [your feedback]
Suggestion: [improvement suggestion]"""


def format_context(passages: list[RankedPassage]) -> str:
    """Label each passage with its 1-based rank and source document."""
    return "\n\n".join(
        f"[Source {i} - {p.source.value}]: {p.text}" for i, p in enumerate(passages, start=1)
    )


def build_question_prompt(jd_text: str, char_budget: int = 3000) -> tuple[str, str]:
    """Build system + user prompts asking for three interview questions.

    The job description is cut to ``char_budget`` characters.
    """
    user_prompt = QUESTION_PROMPT_TEMPLATE.format(jd_text=jd_text[:char_budget])
    return QUESTION_SYSTEM_PROMPT, user_prompt


def build_evaluation_prompt(
    question: str | None,
    response: str,
    passages: list[RankedPassage],
) -> tuple[str, str]:
    """Build system + user prompts for scoring a candidate's answer.

    Returns (system_prompt, user_prompt).
    """
    user_prompt = EVALUATION_PROMPT_TEMPLATE.format(
        question=question or DEFAULT_QUESTION,
        response=response,
        context=format_context(passages),
    )
    return EVALUATION_SYSTEM_PROMPT, user_prompt
