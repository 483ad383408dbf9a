"""
Prompts for the tutor agent.

The system prompt is rebuilt from the topic's language files every time an
agent process starts, so the agent always sees the latest notes.
"""

from ..content.store import LanguageContext

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "es": "Spanish (Spain)",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese (Brazil)",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Mandarin Chinese",
    "ar": "Arabic",
    "ru": "Russian",
    "nl": "Dutch",
    "sv": "Swedish",
    "pl": "Polish",
    "tr": "Turkish",
}

PRIMING_INSTRUCTION = (
    "The user wants to start a new session for learning this language. If this is a brand new "
    "language (no existing files), interview them to assess their level. Otherwise, present session "
    "type options using the present_options tool. YOU MUST use the present_options tool to present "
    "options - do not type them out as text."
)

WRAP_UP_INSTRUCTION = (
    "The user has ended the session. Please wrap up: summarize what was covered, propose any file "
    "changes (items to move between current/review/learned) with propose_file_changes, apply the "
    "accepted ones with write_file, and write the session log with write_session_log. Finish all "
    "file edits before your final message."
)

RESUME_NOTE = (
    "The connection was restored. The conversation above is the session so far; continue from "
    "where it left off."
)

FILE_SCHEMA_DOCS = """## Language files

- summary.md: CEFR level, known tenses and grammar, identified gaps
- learned.md: what the student clearly knows well
- current.md: concepts at the edge of their knowledge, the focus of practice
- review.md: items due for spaced review, with SM-2 state from compute_sm2
- plan.md: the next 2-3 planned sessions
- future.md: concepts beyond the current level, queued in a sensible order

Use read_file and write_file to maintain these. Write one session log per session with
write_session_log."""

TUTOR_BEHAVIOR_DOCS = """## Tutor behavior

- Keep every message to 1-3 sentences and ask one question at a time.
- Do not use bullet lists or markdown formatting in chat messages.
- When the student gets something wrong, help them find the mistake rather than giving the answer.
- Present exercises with present_exercise and choices with present_options; never type them out.
- Wrap all target-language text in <tl></tl> tags so the UI can make it interactive."""


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def build_system_prompt(ctx: LanguageContext, native_language: str = "en") -> str:
    """System prompt for a topic, onboarding or tutoring depending on its files."""
    target = language_name(ctx.topic)
    native = language_name(native_language)

    if ctx.is_new or not ctx.onboarded:
        return "\n\n".join([
            f"You are an agentic language tutor helping a native {native} speaker learn {target}. "
            "This is a NEW language for the user: there are no existing files yet.",
            "## Your goal\n\n"
            "Run a quick diagnostic interview (5-8 questions) to find the boundary between what the "
            "user knows well and what they do not know yet. Ask ONE concrete question at a time. "
            "Never ask open-ended questions about goals or difficulties. Then create the initial "
            "language files without asking for permission.",
            FILE_SCHEMA_DOCS,
            TUTOR_BEHAVIOR_DOCS,
        ])

    file_sections = "\n\n".join(
        f"### {name}\n```\n{content}\n```"
        for name, content in ctx.files.items()
        if content is not None
    )

    return "\n\n".join([
        f"You are an agentic language tutor helping a native {native} speaker learn {target}.",
        f"## Current language context\n\n{file_sections}",
        "## Session instructions\n\n"
        "At the start of a session offer the three session types with present_options: a practice "
        "session (structured review of current and review material, about 10 exercises, ~80% "
        "current and ~20% review), a conversation session (natural conversation at the student's "
        "level with gentle corrections), or a learning session (introduce the next concept from "
        "plan.md, then practise it). Exercise sentences are at most 12 words and only use "
        "vocabulary and grammar the student already knows.",
        FILE_SCHEMA_DOCS,
        TUTOR_BEHAVIOR_DOCS,
    ])


def language_mode_suffix(topic: str, target_language_mode: bool, native_language: str = "en") -> str:
    """Instruction appended to every outbound agent message."""
    if target_language_mode:
        return (
            f"[Language mode: write all instructional text in {language_name(topic)}. "
            f"Use {language_name(native_language)} only if the student explicitly asks.]"
        )
    return (
        f"[Language mode: write instructional text in {language_name(native_language)}; "
        f"use {language_name(topic)} for examples and exercises.]"
    )


def decorate(text: str, topic: str, target_language_mode: bool, native_language: str = "en") -> str:
    return f"{text}\n\n{language_mode_suffix(topic, target_language_mode, native_language)}"
