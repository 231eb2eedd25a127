"""AI-generated questions: multiple-choice quizzes and true/false sets.

Each generated question becomes its own fragment, so these types are not
accepted as the single item of a standalone package.
"""

from __future__ import annotations

from typing import Any

from h5pforge_core.ai.prompts import build_system_prompt
from h5pforge_core.ai.quiz import (
    Difficulty,
    QuizQuestion,
    build_quiz_prompt,
    build_truefalse_prompt,
    parse_quiz_response,
    parse_truefalse_response,
)
from h5pforge_core.ai.service import GenerationRequest
from h5pforge_core.handlers.base import (
    AIContentHandler,
    RawItem,
    ValidationResult,
    check_ai_config,
    check_int_range,
    check_string,
    first_failure,
)
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.fragments import fragment
from h5pforge_core.handlers.questions import TRUEFALSE_LIBRARY, truefalse_fragment

MULTICHOICE_LIBRARY = "H5P.MultiChoice 1.16"

DEFAULT_QUESTION_COUNT = 5
MAX_QUESTION_COUNT = 20

MULTICHOICE_BEHAVIOUR: dict[str, Any] = {
    "enableRetry": True,
    "enableSolutionsButton": True,
    "enableCheckButton": True,
    "type": "auto",
    "singlePoint": False,
    "randomAnswers": True,
    "showSolutionsRequiresInput": True,
    "confirmCheckDialog": False,
    "confirmRetryDialog": False,
    "autoCheck": False,
    "passPercentage": 100,
    "showScorePoints": True,
}

MULTICHOICE_UI: dict[str, str] = {
    "checkAnswerButton": "Check",
    "submitAnswerButton": "Submit",
    "showSolutionButton": "Show solution",
    "tryAgainButton": "Retry",
    "tipsLabel": "Show tip",
    "scoreBarLabel": "You got :num out of :total points",
    "tipAvailable": "Tip available",
    "feedbackAvailable": "Feedback available",
    "readFeedback": "Read feedback",
    "wrongAnswer": "Wrong answer",
    "correctAnswer": "Correct answer",
    "shouldCheck": "Should have been checked",
    "shouldNotCheck": "Should not have been checked",
    "noInput": "Please answer before viewing the solution",
    "a11yCheck": (
        "Check the answers. The responses will be marked as correct, incorrect, or unanswered."
    ),
    "a11yShowSolution": "Show the solution. The task will be marked with its correct solution.",
    "a11yRetry": "Retry the task. Reset all responses and start the task over again.",
}


def multichoice_fragment(question: QuizQuestion, *, title: str, subcontent_id: str) -> dict[str, Any]:
    answers = [
        {
            "text": answer.text,
            "correct": answer.correct,
            "tipsAndFeedback": {
                "tip": "",
                "chosenFeedback": "Correct! Well done." if answer.correct else "Incorrect. Try again.",
                "notChosenFeedback": "",
            },
        }
        for answer in question.answers
    ]
    params = {
        "question": question.question,
        "answers": answers,
        "behaviour": dict(MULTICHOICE_BEHAVIOUR),
        "UI": dict(MULTICHOICE_UI),
        "overallFeedback": [{"from": 0, "to": 100}],
        "confirmCheck": {
            "header": "Finish?",
            "body": "Are you sure you wish to finish?",
            "cancelLabel": "Cancel",
            "confirmLabel": "Finish",
        },
        "confirmRetry": {
            "header": "Retry?",
            "body": "Are you sure you wish to retry?",
            "cancelLabel": "Cancel",
            "confirmLabel": "Retry",
        },
    }
    return fragment(
        MULTICHOICE_LIBRARY,
        params,
        content_type="Multiple Choice",
        title=title,
        subcontent_id=subcontent_id,
    )


class AIQuizHandler(AIContentHandler):
    """``type: ai-quiz`` with ``sourceText`` and optional ``questionCount`` (1-20)."""

    content_type = "ai-quiz"
    libraries = (MULTICHOICE_LIBRARY,)
    standalone = False

    def validate(self, item: RawItem) -> ValidationResult:
        return first_failure(
            check_string(item, "sourceText", label="AI quiz content"),
            check_int_range(
                item, "questionCount", label="AI quiz content", minimum=1, maximum=MAX_QUESTION_COUNT
            ),
            check_string(item, "title", label="AI quiz content", required=False),
            check_ai_config(item, label="AI quiz content"),
        )

    def prompt_of(self, item: RawItem) -> str:
        return item["sourceText"]

    def generate(self, context: HandlerContext, item: RawItem) -> list[dict[str, Any]]:
        assert context.ai_service is not None
        count = item.get("questionCount") or DEFAULT_QUESTION_COUNT
        config = context.resolve_ai_config(self.item_ai_config(item))
        response = context.ai_service.generate(
            GenerationRequest(
                system_prompt=build_system_prompt(config),
                user_prompt=build_quiz_prompt(item["sourceText"], count, config),
                purpose=self.content_type,
            )
        )
        questions = parse_quiz_response(response.text, provider=response.provider)[:count]
        context.log.info("ai_quiz_generated", questions=len(questions), requested=count)
        return [
            multichoice_fragment(
                question,
                title=f"Quiz Question {number}",
                subcontent_id=context.new_subcontent_id(),
            )
            for number, question in enumerate(questions, start=1)
        ]


class AITrueFalseHandler(AIContentHandler):
    """``type: ai-truefalse`` with ``prompt``, optional ``questionCount`` and ``difficulty``."""

    content_type = "ai-truefalse"
    libraries = (TRUEFALSE_LIBRARY,)
    standalone = False

    def validate(self, item: RawItem) -> ValidationResult:
        result = first_failure(
            check_string(item, "prompt", label="AI true/false content"),
            check_int_range(
                item,
                "questionCount",
                label="AI true/false content",
                minimum=1,
                maximum=MAX_QUESTION_COUNT,
            ),
            check_string(item, "title", label="AI true/false content", required=False),
            check_ai_config(item, label="AI true/false content"),
        )
        if not result.valid:
            return result
        difficulty = item.get("difficulty")
        if difficulty is not None and difficulty not in {d.value for d in Difficulty}:
            return ValidationResult.invalid(
                "difficulty must be one of: easy, medium, hard", "difficulty"
            )
        return ValidationResult.ok()

    def prompt_of(self, item: RawItem) -> str:
        return item["prompt"]

    def generate(self, context: HandlerContext, item: RawItem) -> list[dict[str, Any]]:
        assert context.ai_service is not None
        count = item.get("questionCount") or DEFAULT_QUESTION_COUNT
        difficulty = Difficulty(item.get("difficulty") or Difficulty.medium.value)
        config = context.resolve_ai_config(self.item_ai_config(item))
        response = context.ai_service.generate(
            GenerationRequest(
                system_prompt=build_system_prompt(config),
                user_prompt=build_truefalse_prompt(item["prompt"], count, difficulty, config),
                purpose=self.content_type,
            )
        )
        statements = parse_truefalse_response(response.text, provider=response.provider, limit=count)
        context.log.info("ai_truefalse_generated", questions=len(statements), requested=count)
        title = item.get("title") or "True/False Question"
        return [
            truefalse_fragment(
                statement.question,
                statement.correct,
                title=title,
                subcontent_id=context.new_subcontent_id(),
            )
            for statement in statements
        ]
