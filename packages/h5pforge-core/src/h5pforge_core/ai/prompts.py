"""Prompt construction for AI-generated content.

Authors write short content prompts; this module wraps them with the
formatting rules the book viewer needs plus reading level and tone guidance.
AI settings cascade item > chapter > document > defaults, field by field.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from h5pforge_core.schemas.document import AIConfig, OutputStyle, ReadingLevel, Tone

DEFAULT_READING_LEVEL = ReadingLevel.grade_6
DEFAULT_TONE = Tone.educational
DEFAULT_OUTPUT_STYLE = OutputStyle.plain_html


@dataclass(frozen=True)
class ReadingLevelPreset:
    sentence_length: str
    vocabulary: str
    style: str
    examples: str


READING_LEVELS: dict[ReadingLevel, ReadingLevelPreset] = {
    ReadingLevel.elementary: ReadingLevelPreset(
        sentence_length="Use very short sentences (8-12 words). Avoid complex sentence structures.",
        vocabulary=(
            "Use simple, everyday vocabulary. Avoid technical terms. If a technical term "
            "is necessary, explain it in very simple words."
        ),
        style="Use a friendly, encouraging tone. Break concepts into very small steps.",
        examples="Use concrete, tangible examples from everyday life. Avoid abstract concepts.",
    ),
    ReadingLevel.grade_6: ReadingLevelPreset(
        sentence_length="Use medium-length sentences (12-15 words). Keep structure clear and direct.",
        vocabulary=(
            "Use grade-appropriate vocabulary. Define technical terms when first introduced. "
            "Build on concepts students already know."
        ),
        style="Use a clear, instructional tone. Make concepts relatable to students' lives.",
        examples=(
            "Use relatable examples from school, home, and popular culture. "
            "Include analogies when helpful."
        ),
    ),
    ReadingLevel.grade_9: ReadingLevelPreset(
        sentence_length=(
            "Use longer sentences (15-20 words) with some complexity. "
            "Vary sentence structure for engagement."
        ),
        vocabulary=(
            "Use broader vocabulary. Introduce technical terms with brief definitions. "
            "Expect increasing subject knowledge."
        ),
        style="Use an engaging, analytical tone. Encourage critical thinking.",
        examples="Use real-world applications and current events. Connect to broader themes.",
    ),
    ReadingLevel.high_school: ReadingLevelPreset(
        sentence_length=(
            "Use complex sentences (18-25 words) with varied structure. "
            "Expect comprehension of compound ideas."
        ),
        vocabulary=(
            "Use advanced vocabulary and subject-specific terminology. "
            "Define only highly specialized terms."
        ),
        style="Use a sophisticated, academic tone. Promote analysis and evaluation.",
        examples=(
            "Use college-level examples, research references, and interdisciplinary connections."
        ),
    ),
    ReadingLevel.college: ReadingLevelPreset(
        sentence_length=(
            "Use academic sentence structures of varying complexity. "
            "Expect comprehension of dense text."
        ),
        vocabulary=(
            "Use discipline-specific language freely. "
            "Assume foundational knowledge in the subject area."
        ),
        style="Use a scholarly, precise tone. Encourage synthesis and original thought.",
        examples=(
            "Reference research, theories, and debates in the field. Assume intellectual maturity."
        ),
    ),
    ReadingLevel.professional: ReadingLevelPreset(
        sentence_length="Use concise, efficient sentences. Get to the point quickly.",
        vocabulary="Use industry-standard terminology. Assume professional expertise.",
        style="Use a professional, actionable tone. Focus on practical application.",
        examples=(
            "Use industry case studies, best practices, and real-world scenarios. "
            "Emphasize outcomes."
        ),
    ),
    ReadingLevel.esl_beginner: ReadingLevelPreset(
        sentence_length=(
            "Use very short, simple sentences (5-8 words). "
            "Use subject-verb-object order consistently."
        ),
        vocabulary=(
            "Use only common, high-frequency vocabulary (top 1000-2000 words). "
            "Avoid idioms and slang."
        ),
        style="Use a patient, supportive tone. Repeat key concepts. Use explicit context.",
        examples=(
            "Use universal concepts (food, family, weather, time). "
            "Avoid culturally specific references."
        ),
    ),
    ReadingLevel.esl_intermediate: ReadingLevelPreset(
        sentence_length=(
            "Use medium sentences (10-15 words). Introduce varied sentence patterns gradually."
        ),
        vocabulary=(
            "Expand vocabulary to everyday situations. Introduce common idioms with "
            "explanations. Use multiple tenses."
        ),
        style="Use a clear, encouraging tone. Build confidence with scaffolded complexity.",
        examples=(
            "Include cultural context when introducing idioms. "
            "Use travel, work, and education scenarios."
        ),
    ),
}

TONES: dict[Tone, str] = {
    Tone.educational: (
        "Use a clear, instructional, and approachable tone. Make learning engaging and "
        "accessible. Explain concepts step-by-step."
    ),
    Tone.professional: (
        "Use a formal, business-like tone. Be concise and action-oriented. "
        "Focus on practical outcomes."
    ),
    Tone.casual: (
        "Use a conversational, friendly tone. Write as if talking to a peer. "
        "Be relatable and warm."
    ),
    Tone.academic: (
        "Use a scholarly, research-oriented tone. Be precise and objective. "
        "Support claims with evidence."
    ),
}

# Quiz-specific guidance per reading level
QUIZ_GUIDANCE: dict[ReadingLevel, str] = {
    ReadingLevel.elementary: (
        "- Use very simple vocabulary in questions and answers\n"
        "- Questions should test basic comprehension only\n"
        "- Avoid complex sentence structures in questions"
    ),
    ReadingLevel.grade_6: (
        "- Use grade-appropriate vocabulary\n"
        "- Include some application questions beyond recall\n"
        "- Keep questions clear and direct"
    ),
    ReadingLevel.grade_9: (
        "- Use broader vocabulary and some technical terms\n"
        "- Include analysis and application questions\n"
        "- Test deeper understanding of concepts"
    ),
    ReadingLevel.high_school: (
        "- Use advanced vocabulary and subject terminology\n"
        "- Focus on analysis, evaluation, and synthesis\n"
        "- Test critical thinking skills"
    ),
    ReadingLevel.college: (
        "- Use discipline-specific language freely\n"
        "- Test higher-order thinking and analysis\n"
        "- Include questions requiring synthesis of concepts"
    ),
    ReadingLevel.professional: (
        "- Use industry terminology\n"
        "- Focus on practical application and problem-solving\n"
        "- Test real-world scenario understanding"
    ),
    ReadingLevel.esl_beginner: (
        "- Use only common, high-frequency vocabulary\n"
        "- Keep questions very simple and direct\n"
        "- Avoid idioms and complex grammar"
    ),
    ReadingLevel.esl_intermediate: (
        "- Use everyday vocabulary with some expansion\n"
        "- Include varied sentence patterns\n"
        "- Introduce common expressions gradually"
    ),
}

FORMATTING_RULES = """\
CRITICAL FORMATTING REQUIREMENTS (NON-NEGOTIABLE):
- Use ONLY plain HTML tags: <p>, <h2>, <strong>, <em>, <ul>, <li>
- Wrap all paragraphs in <p> tags
- Use <h2> for section headings only (not <h1> or <h3>)
- Use <strong> for emphasis, <em> for italics
- Use <ul> and <li> for lists
- DO NOT use markdown formatting (no **, no *, no #, no -)
- DO NOT use special characters for formatting
- DO NOT use code blocks or syntax highlighting
- Separate paragraphs with blank lines for readability
- Output valid, clean HTML that renders correctly in H5P Interactive Books"""

SYSTEM_PREAMBLE = (
    "You are an expert educational content generator creating content for "
    "H5P Interactive Books."
)


class ResolvedAIConfig(BaseModel):
    """AI settings after the scope cascade; every preset field is set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target_audience: ReadingLevel = DEFAULT_READING_LEVEL
    tone: Tone = DEFAULT_TONE
    output_style: OutputStyle = DEFAULT_OUTPUT_STYLE
    customization: str | None = None


def resolve_config(*scopes: AIConfig | None) -> ResolvedAIConfig:
    """Merge AI settings from the most specific scope to the least.

    Args:
        *scopes: Configs ordered item, chapter, document. ``None`` entries
            are skipped.

    Example:
        >>> item = AIConfig(tone=Tone.casual)
        >>> book = AIConfig(target_audience=ReadingLevel.college, tone=Tone.academic)
        >>> cfg = resolve_config(item, None, book)
        >>> cfg.tone, cfg.target_audience
        (<Tone.casual: 'casual'>, <ReadingLevel.college: 'college'>)
    """
    present = [scope for scope in scopes if scope is not None]

    def pick(field_name: str) -> object:
        for scope in present:
            value = getattr(scope, field_name)
            if value:
                return value
        return None

    values = {
        name: pick(name) for name in ("target_audience", "tone", "output_style", "customization")
    }
    return ResolvedAIConfig(**{name: value for name, value in values.items() if value is not None})


def build_system_prompt(config: ResolvedAIConfig | None = None) -> str:
    """Build the system prompt: formatting rules, reading level and tone."""
    config = config or ResolvedAIConfig()
    level = READING_LEVELS[config.target_audience]
    return "\n".join(
        [
            SYSTEM_PREAMBLE,
            "",
            FORMATTING_RULES,
            "",
            f"READING LEVEL: {config.target_audience.value.upper()}",
            level.sentence_length,
            level.vocabulary,
            level.style,
            level.examples,
            "",
            f"TONE: {config.tone.value.upper()}",
            TONES[config.tone],
        ]
    )


def build_user_prompt(prompt: str, config: ResolvedAIConfig | None = None) -> str:
    """Append the customization section, if any, to an author prompt."""
    customization = (config.customization or "").strip() if config else ""
    if not customization:
        return prompt
    return f"{prompt}\n\nADDITIONAL CUSTOMIZATION:\n{customization}"


def build_complete_prompt(prompt: str, config: ResolvedAIConfig | None = None) -> str:
    """Single-string prompt for providers without a separate system role."""
    return f"{build_system_prompt(config)}\n\n---\n\n{build_user_prompt(prompt, config)}"
