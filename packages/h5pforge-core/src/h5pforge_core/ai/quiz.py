"""Question generation prompts and response parsing.

Models answer with a JSON array, sometimes wrapped in prose or a fenced
code block. Parsers pull out the outermost array and validate every
question; anything unusable raises AIGenerationFailure.
"""

from __future__ import annotations

from enum import Enum
import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from h5pforge_core.ai.prompts import QUIZ_GUIDANCE, ResolvedAIConfig, build_user_prompt
from h5pforge_core.errors import AIGenerationFailure

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_TAG_RE = re.compile(r"<[^>]+>")
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


DIFFICULTY_INSTRUCTIONS: dict[Difficulty, str] = {
    Difficulty.easy: (
        "Create simple, obvious statements that are clearly true or false. "
        "Use straightforward facts."
    ),
    Difficulty.medium: (
        "Create moderately complex statements requiring some thought to evaluate. "
        "Include nuanced facts."
    ),
    Difficulty.hard: (
        "Create complex statements with subtle distinctions. "
        "Use advanced concepts that require careful analysis."
    ),
}


class QuizAnswer(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    text: str = Field(..., min_length=1)
    correct: bool = False


class QuizQuestion(BaseModel):
    """A multiple-choice question with at least one correct answer."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    question: str = Field(..., min_length=1)
    answers: list[QuizAnswer] = Field(..., min_length=1)


class TrueFalseStatement(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    question: str = Field(..., min_length=1)
    correct: bool


def build_quiz_prompt(source_text: str, question_count: int, config: ResolvedAIConfig) -> str:
    level = config.target_audience
    prompt = f"""Generate {question_count} multiple-choice quiz questions about this educational text:

{source_text}

Requirements:
- Each question should have 4 answer options
- Only one answer should be correct
- Questions should test understanding, not just recall
- Answers should be clear and unambiguous
- Include common misconceptions as incorrect answers
- Match the vocabulary and complexity to {level.value} reading level
{QUIZ_GUIDANCE[level]}

Return ONLY a JSON array with this exact format (no additional text):
[
  {{
    "question": "What is the main concept?",
    "answers": [
      {{ "text": "Correct answer", "correct": true }},
      {{ "text": "Incorrect answer 1", "correct": false }},
      {{ "text": "Incorrect answer 2", "correct": false }},
      {{ "text": "Incorrect answer 3", "correct": false }}
    ]
  }}
]"""
    return build_user_prompt(prompt, config)


def build_truefalse_prompt(
    prompt: str,
    question_count: int,
    difficulty: Difficulty,
    config: ResolvedAIConfig,
) -> str:
    body = f"""{prompt}

Generate exactly {question_count} true/false questions.

Difficulty: {difficulty.value}
{DIFFICULTY_INSTRUCTIONS[difficulty]}

Format your response as a JSON array with this exact structure:
[
  {{
    "question": "Statement to evaluate as true or false",
    "correct": true
  }},
  {{
    "question": "Another statement",
    "correct": false
  }}
]

Return ONLY the JSON array with no additional text or markdown code blocks."""
    return build_user_prompt(body, config)


def extract_json_array(response: str, *, provider: str) -> list[Any]:
    """Pull the outermost JSON array out of a model response.

    Raises:
        AIGenerationFailure: If no JSON array can be parsed.
    """
    match = _JSON_ARRAY_RE.search(response)
    candidate = match.group(0) if match else response
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AIGenerationFailure(provider, f"response is not valid JSON: {e.msg}") from e
    if not isinstance(parsed, list):
        raise AIGenerationFailure(provider, "response is not a JSON array")
    return parsed


def parse_quiz_response(response: str, *, provider: str) -> list[QuizQuestion]:
    """Parse a multiple-choice response.

    Raises:
        AIGenerationFailure: If the array is empty or any question is malformed
            or has no correct answer.
    """
    items = extract_json_array(response, provider=provider)
    if not items:
        raise AIGenerationFailure(provider, "response contains no questions")

    questions: list[QuizQuestion] = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict) or not isinstance(item.get("question"), str):
            raise AIGenerationFailure(provider, f"question {index} is missing its text")
        text = item["question"].strip()
        if not text:
            raise AIGenerationFailure(provider, f"question {index} is empty")
        answers = item.get("answers")
        if not isinstance(answers, list) or not answers:
            raise AIGenerationFailure(provider, f"question {index} has no answers")
        parsed_answers = [
            QuizAnswer(text=str(a.get("text", "")).strip() or "?", correct=a.get("correct") is True)
            for a in answers
            if isinstance(a, dict)
        ]
        if not any(a.correct for a in parsed_answers):
            raise AIGenerationFailure(provider, f"question {index} has no correct answer")
        try:
            questions.append(QuizQuestion(question=text, answers=parsed_answers))
        except PydanticValidationError as e:
            raise AIGenerationFailure(provider, f"question {index} is malformed: {e}") from e
    return questions


def parse_truefalse_response(
    response: str, *, provider: str, limit: int | None = None
) -> list[TrueFalseStatement]:
    """Parse a true/false response, stripping any HTML from the statements.

    Raises:
        AIGenerationFailure: If the array is empty or an entry lacks
            ``question`` (string) or ``correct`` (boolean).
    """
    items = extract_json_array(response, provider=provider)
    statements: list[TrueFalseStatement] = []
    for index, item in enumerate(items, start=1):
        if (
            not isinstance(item, dict)
            or not isinstance(item.get("question"), str)
            or not isinstance(item.get("correct"), bool)
        ):
            raise AIGenerationFailure(
                provider,
                f"statement {index} needs 'question' (string) and 'correct' (boolean)",
            )
        text = strip_html(item["question"])
        if not text:
            raise AIGenerationFailure(provider, f"statement {index} is empty")
        statements.append(TrueFalseStatement(question=text, correct=item["correct"]))

    if not statements:
        raise AIGenerationFailure(provider, "response contains no statements")
    return statements[:limit] if limit else statements


def strip_html(text: str) -> str:
    text = _BREAK_RE.sub(" ", text)
    return _TAG_RE.sub("", text).strip()
