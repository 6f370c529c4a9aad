"""Registry of the four study group personas."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from .errors import UnknownPersonaError
from .prompts import (
    ADVOCATE_SYSTEM_PROMPT,
    EXPLAINER_SYSTEM_PROMPT,
    MOTIVATOR_SYSTEM_PROMPT,
    QUIZMASTER_SYSTEM_PROMPT,
)


class Persona(BaseModel):
    """A scripted tutoring role."""

    model_config = ConfigDict(frozen=True)

    tag: str
    name: str
    role: str
    style: str
    system_prompt: str


PERSONAS: Dict[str, Persona] = {
    "quizmaster": Persona(
        tag="quizmaster",
        name="Professor Quiz",
        role="quizmaster",
        style="encouraging but rigorous",
        system_prompt=QUIZMASTER_SYSTEM_PROMPT,
    ),
    "explainer": Persona(
        tag="explainer",
        name="Dr. Clarity",
        role="explainer",
        style="patient and uses analogies",
        system_prompt=EXPLAINER_SYSTEM_PROMPT,
    ),
    "advocate": Persona(
        tag="advocate",
        name="The Challenger",
        role="devil's advocate",
        style="provocative but fair",
        system_prompt=ADVOCATE_SYSTEM_PROMPT,
    ),
    "motivator": Persona(
        tag="motivator",
        name="Coach Spark",
        role="motivator",
        style="enthusiastic and celebratory",
        system_prompt=MOTIVATOR_SYSTEM_PROMPT,
    ),
}


def get_persona(tag: str) -> Persona:
    """Look up a persona by tag.

    Raises:
        UnknownPersonaError: If the tag is not one of the four personas.
    """
    try:
        return PERSONAS[tag]
    except KeyError:
        raise UnknownPersonaError(tag) from None


def build_greeting(tag: str, topic: Optional[str] = None, streak_days: int = 0) -> str:
    """Scripted opening line a persona uses when it is brought in."""
    persona = get_persona(tag)

    if tag == "quizmaster":
        topic = topic or "today's topic"
        topic_word = topic.split(" ")[0]
        return (
            f"🎯 Let's quiz on {topic}!\n\nHere's your first question:\n\n"
            f"What is the primary purpose of {topic_word} in a system?\n\n"
            "A) Performance optimization\nB) Data organization\n"
            "C) Security enhancement\nD) User interface improvement"
        )
    if tag == "explainer":
        return (
            f"📚 Hi there! I'm {persona.name}. I heard you'd like some help understanding "
            f"{topic or 'this concept'}. Don't worry - by the time we're done, this will "
            "make perfect sense. What part is confusing you the most?"
        )
    if tag == "advocate":
        return (
            f"😈 Well, well! I'm {persona.name}. I see you've been doing well on "
            f"{topic or 'this topic'}. But do you REALLY understand it, or have you just "
            "memorized the answers? Let's find out..."
        )

    if streak_days > 0:
        return (
            f"🔥 Hey champion! {persona.name} here! You're on a {streak_days}-day streak - "
            "that's incredible dedication!"
        )
    return (
        f"💪 Hey there! I'm {persona.name}. I'm here to make sure you stay motivated and "
        "don't burn out. How are you feeling about your study session?"
    )
