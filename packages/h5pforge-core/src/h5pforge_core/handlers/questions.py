"""Authored interactive content: accordion, true/false and crossword."""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

from h5pforge_core.handlers.base import (
    ContentHandler,
    RawItem,
    ValidationResult,
    check_string,
    first_failure,
)
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.fragments import ADVANCED_TEXT, escape_html, fragment

TRUEFALSE_LIBRARY = "H5P.TrueFalse 1.8"

TRUEFALSE_BEHAVIOUR: dict[str, Any] = {
    "enableRetry": True,
    "enableSolutionsButton": True,
    "enableCheckButton": True,
    "confirmCheckDialog": False,
    "confirmRetryDialog": False,
    "autoCheck": False,
}

TRUEFALSE_L10N: dict[str, str] = {
    "trueText": "True",
    "falseText": "False",
    "score": "You got @score of @total points",
    "checkAnswer": "Check",
    "submitAnswer": "Submit",
    "showSolutionButton": "Show solution",
    "tryAgain": "Retry",
    "wrongAnswerMessage": "Wrong answer",
    "correctAnswerMessage": "Correct answer",
    "scoreBarLabel": "You got :num out of :total points",
    "a11yCheck": (
        "Check the answers. The responses will be marked as correct, incorrect, or unanswered."
    ),
    "a11yShowSolution": (
        "Show the solution. The task will be marked with its correct solution."
    ),
    "a11yRetry": "Retry the task. Reset all responses and start the task over again.",
}

TRUEFALSE_BOOLEAN_BEHAVIOUR = (
    "enableRetry",
    "enableSolutionsButton",
    "confirmCheckDialog",
    "confirmRetryDialog",
    "autoCheck",
)
TRUEFALSE_FEEDBACK = ("feedbackOnCorrect", "feedbackOnWrong")
MAX_FEEDBACK_LENGTH = 2048


def truefalse_fragment(
    question: str,
    correct: bool,
    *,
    title: str,
    subcontent_id: str,
    behaviour: Mapping[str, Any] | None = None,
    labels: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build an ``H5P.TrueFalse`` fragment.

    The library expects ``correct`` as the string ``"true"`` or ``"false"``.
    """
    params = {
        "question": f"<p>{escape_html(question)}</p>",
        "correct": "true" if correct else "false",
        "behaviour": {**TRUEFALSE_BEHAVIOUR, **(behaviour or {})},
        "l10n": {**TRUEFALSE_L10N, **(labels or {})},
        "confirmCheck": {
            "header": "Finish ?",
            "body": "Are you sure you wish to finish ?",
            "cancelLabel": "Cancel",
            "confirmLabel": "Finish",
        },
        "confirmRetry": {
            "header": "Retry ?",
            "body": "Are you sure you wish to retry ?",
            "cancelLabel": "Cancel",
            "confirmLabel": "Confirm",
        },
    }
    return fragment(
        TRUEFALSE_LIBRARY,
        params,
        content_type="True/False Question",
        title=title,
        subcontent_id=subcontent_id,
    )


class AccordionHandler(ContentHandler):
    """``type: accordion`` with ``panels`` of ``{title, content}``."""

    content_type = "accordion"
    libraries = ("H5P.Accordion 1.0", ADVANCED_TEXT)

    HEADING_TAGS = ("h2", "h3", "h4")

    def validate(self, item: RawItem) -> ValidationResult:
        panels = item.get("panels")
        if not isinstance(panels, list):
            return ValidationResult.invalid(
                "Accordion requires a 'panels' list; each panel needs 'title' and 'content'",
                "panels",
            )
        if not panels:
            return ValidationResult.invalid("Accordion must have at least one panel", "panels")
        for index, panel in enumerate(panels):
            if not isinstance(panel, Mapping):
                return ValidationResult.invalid(
                    f"Panel {index + 1} must be a mapping with 'title' and 'content'",
                    f"panels[{index}]",
                )
            for key in ("title", "content"):
                value = panel.get(key)
                if not isinstance(value, str) or not value.strip():
                    return ValidationResult.invalid(
                        f"Panel {index + 1} '{key}' must be a non-empty string",
                        f"panels[{index}].{key}",
                    )
        h_tag = item.get("hTag")
        if h_tag is not None and h_tag not in self.HEADING_TAGS:
            return ValidationResult.invalid(
                f"hTag must be one of: {', '.join(self.HEADING_TAGS)}", "hTag"
            )
        return check_string(item, "title", label="Accordion", required=False)

    def process(self, context: HandlerContext, item: RawItem) -> None:
        panels = [
            {
                "title": panel["title"],
                "content": fragment(
                    ADVANCED_TEXT,
                    {"text": f"<p>{escape_html(panel['content'])}</p>"},
                    content_type="Text",
                    title="Untitled Text",
                    subcontent_id=context.new_subcontent_id(),
                ),
            }
            for panel in item["panels"]
        ]
        context.add_fragment(
            fragment(
                self.libraries[0],
                {"panels": panels, "hTag": item.get("hTag") or "h2"},
                content_type="Accordion",
                title=item.get("title") or "Accordion",
                subcontent_id=context.new_subcontent_id(),
            )
        )


class TrueFalseHandler(ContentHandler):
    """``type: truefalse`` with ``question`` and boolean ``correct``.

    Optional ``behaviour`` and ``labels`` mappings override the defaults.
    """

    content_type = "truefalse"
    libraries = (TRUEFALSE_LIBRARY,)

    def validate(self, item: RawItem) -> ValidationResult:
        result = first_failure(
            check_string(item, "question", label="TrueFalse"),
            check_string(item, "title", label="TrueFalse", required=False),
        )
        if not result.valid:
            return result
        if not isinstance(item.get("correct"), bool):
            return ValidationResult.invalid(
                "TrueFalse requires 'correct' to be a boolean (true or false)", "correct"
            )

        behaviour = item.get("behaviour")
        if behaviour is not None:
            if not isinstance(behaviour, Mapping):
                return ValidationResult.invalid("TrueFalse 'behaviour' must be a mapping", "behaviour")
            for key in TRUEFALSE_BOOLEAN_BEHAVIOUR:
                if key in behaviour and not isinstance(behaviour[key], bool):
                    return ValidationResult.invalid(
                        f"TrueFalse behaviour '{key}' must be a boolean", f"behaviour.{key}"
                    )
            for key in TRUEFALSE_FEEDBACK:
                if key not in behaviour:
                    continue
                value = behaviour[key]
                if not isinstance(value, str) or len(value) > MAX_FEEDBACK_LENGTH:
                    return ValidationResult.invalid(
                        f"TrueFalse behaviour '{key}' must be a string of at most "
                        f"{MAX_FEEDBACK_LENGTH} characters",
                        f"behaviour.{key}",
                    )

        labels = item.get("labels")
        if labels is not None:
            if not isinstance(labels, Mapping):
                return ValidationResult.invalid("TrueFalse 'labels' must be a mapping", "labels")
            for key, value in labels.items():
                if key not in TRUEFALSE_L10N:
                    return ValidationResult.invalid(
                        f"Unknown TrueFalse label '{key}'", f"labels.{key}"
                    )
                if not isinstance(value, str):
                    return ValidationResult.invalid(
                        f"TrueFalse label '{key}' must be a string", f"labels.{key}"
                    )
        return ValidationResult.ok()

    def process(self, context: HandlerContext, item: RawItem) -> None:
        context.add_fragment(
            truefalse_fragment(
                item["question"],
                item["correct"],
                title=item.get("title") or "True/False Question",
                subcontent_id=context.new_subcontent_id(),
                behaviour=item.get("behaviour"),
                labels=item.get("labels"),
            )
        )


CROSSWORD_L10N = {
    "across": "Across",
    "down": "Down",
    "checkAnswer": "Check",
    "submitAnswer": "Submit",
    "showSolution": "Show solution",
    "tryAgain": "Retry",
    "extraClue": "Extra clue",
    "closeWindow": "Close window",
    "couldNotGenerateCrossword": "Could not generate crossword with those words",
    "couldNotGenerateCrosswordTooFewWords": (
        "Could not generate crossword. You need at least two words."
    ),
}

CROSSWORD_A11Y = {
    "crosswordGrid": (
        "Crossword grid. Use arrow keys to navigate and keyboard to enter characters. "
        "Use tab to navigate to clue list."
    ),
    "column": "column",
    "row": "row",
    "across": "across",
    "down": "down",
    "empty": "Empty",
    "resultFor": "Result for",
    "correct": "Correct",
    "wrong": "Wrong",
    "point": "Point",
    "solutionFor": "Solution for",
    "extraClue": "Extra clue",
    "letterSevenOfNine": "Letter @position of @length",
    "lettersWord": "Letters of the word:",
    "check": (
        "Check the characters. Correct answers will be marked with a green background, "
        "wrong answers with a red background."
    ),
    "showSolution": "Show the solution. The crossword will be filled with the correct answers.",
    "retry": "Retry the task. Reset all responses and start the task over again.",
    "solutionText": "Solution",
    "clueText": "Clue",
}

CROSSWORD_BEHAVIOUR: dict[str, Any] = {
    "enableInstantFeedback": False,
    "scoreWords": True,
    "applyPenalties": False,
    "enableRetry": True,
    "enableSolutionsButton": True,
    "keepCorrectAnswers": False,
    "poolSize": 0,
}

CROSSWORD_FEEDBACK = [
    {"from": 0, "to": 49, "feedback": "Keep practicing!"},
    {"from": 50, "to": 79, "feedback": "Good work!"},
    {"from": 80, "to": 100, "feedback": "Excellent!"},
]

_HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
CROSSWORD_THEME_KEYS = (
    "backgroundColor",
    "gridColor",
    "cellBackgroundColor",
    "cellColor",
    "clueIdColor",
    "cellBackgroundColorHighlight",
    "cellColorHighlight",
    "clueIdColorHighlight",
)


class CrosswordHandler(ContentHandler):
    """``type: crossword`` with ``words`` of ``{clue, answer, extraClue?}``.

    The crossword library cannot run inside a book page, so this type is
    only accepted as standalone content.
    """

    content_type = "crossword"
    libraries = ("H5P.Crossword 0.5", ADVANCED_TEXT)
    embeddable = False

    MIN_WORDS = 2
    MIN_ANSWER_LENGTH = 3
    MAX_ANSWER_LENGTH = 15

    def validate(self, item: RawItem) -> ValidationResult:
        words = item.get("words")
        if not isinstance(words, list):
            return ValidationResult.invalid(
                "Crossword requires a 'words' list of {clue, answer} pairs", "words"
            )
        if len(words) < self.MIN_WORDS:
            return ValidationResult.invalid(
                f"Crossword requires at least {self.MIN_WORDS} words", "words"
            )
        for index, word in enumerate(words):
            result = self._validate_word(index, word)
            if not result.valid:
                return result

        theme = item.get("theme")
        if theme is not None:
            if not isinstance(theme, Mapping):
                return ValidationResult.invalid("Crossword 'theme' must be a mapping", "theme")
            for key, value in theme.items():
                if key not in CROSSWORD_THEME_KEYS:
                    return ValidationResult.invalid(f"Unknown theme color '{key}'", f"theme.{key}")
                if not isinstance(value, str) or not _HEX_COLOR_RE.match(value):
                    return ValidationResult.invalid(
                        f"theme.{key} must be a hex color like '#173354'", f"theme.{key}"
                    )

        behaviour = item.get("behaviour")
        if behaviour is not None and not isinstance(behaviour, Mapping):
            return ValidationResult.invalid("Crossword 'behaviour' must be a mapping", "behaviour")
        pool_size = (behaviour or {}).get("poolSize")
        if pool_size is not None and (
            isinstance(pool_size, bool)
            or not isinstance(pool_size, int)
            or not self.MIN_WORDS <= pool_size <= len(words)
        ):
            return ValidationResult.invalid(
                f"behaviour.poolSize must be an integer between {self.MIN_WORDS} and {len(words)}",
                "behaviour.poolSize",
            )
        return first_failure(
            check_string(item, "title", label="Crossword", required=False),
            check_string(item, "taskDescription", label="Crossword", required=False),
        )

    def _validate_word(self, index: int, word: Any) -> ValidationResult:
        prefix = f"words[{index}]"
        if not isinstance(word, Mapping):
            return ValidationResult.invalid(f"Word {index + 1} must be a mapping", prefix)
        for key in ("clue", "answer"):
            value = word.get(key)
            if not isinstance(value, str) or not value.strip():
                return ValidationResult.invalid(
                    f"Word {index + 1} '{key}' must be a non-empty string", f"{prefix}.{key}"
                )
        answer = word["answer"]
        if " " in answer:
            return ValidationResult.invalid(
                f"Word {index + 1} answer must be a single word without spaces: '{answer}'",
                f"{prefix}.answer",
            )
        if not self.MIN_ANSWER_LENGTH <= len(answer) <= self.MAX_ANSWER_LENGTH:
            return ValidationResult.invalid(
                f"Word {index + 1} answer must be {self.MIN_ANSWER_LENGTH}-"
                f"{self.MAX_ANSWER_LENGTH} characters long: '{answer}'",
                f"{prefix}.answer",
            )
        extra = word.get("extraClue")
        if extra is not None and (
            not isinstance(extra, Mapping)
            or extra.get("type") != "text"
            or not isinstance(extra.get("content"), str)
            or not extra["content"].strip()
        ):
            return ValidationResult.invalid(
                f"Word {index + 1} extraClue must be {{type: text, content: <non-empty string>}}",
                f"{prefix}.extraClue",
            )
        return ValidationResult.ok()

    def process(self, context: HandlerContext, item: RawItem) -> None:
        words = []
        for word in item["words"]:
            entry: dict[str, Any] = {
                "clue": escape_html(word["clue"]),
                "answer": word["answer"],
                "orientation": "across",
                "fixWord": False,
            }
            extra = word.get("extraClue")
            if extra is not None:
                entry["extraClue"] = fragment(
                    ADVANCED_TEXT,
                    {"text": f"<p>{escape_html(extra['content'])}</p>"},
                    content_type="Text",
                    title="Untitled Text",
                    subcontent_id=context.new_subcontent_id(),
                )
            words.append(entry)

        description = item.get("taskDescription")
        params: dict[str, Any] = {
            "taskDescription": f"<p>{escape_html(description)}</p>" if description else "",
            "words": words,
            "behaviour": {**CROSSWORD_BEHAVIOUR, **(item.get("behaviour") or {})},
            "overallFeedback": [
                {**band, "feedback": escape_html(band["feedback"])} for band in CROSSWORD_FEEDBACK
            ],
            "l10n": dict(CROSSWORD_L10N),
            "a11y": dict(CROSSWORD_A11Y),
        }
        if item.get("theme"):
            params["theme"] = dict(item["theme"])

        context.add_fragment(
            fragment(
                self.libraries[0],
                params,
                content_type="Crossword",
                title=item.get("title") or "Crossword",
                subcontent_id=context.new_subcontent_id(),
            )
        )
