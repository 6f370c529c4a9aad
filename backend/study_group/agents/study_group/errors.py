"""Errors raised by the study group orchestrator."""


class StudyGroupError(Exception):
    """Base class for study group errors."""


class UnknownPersonaError(StudyGroupError):
    """A caller asked for a persona tag outside the fixed set of four."""

    def __init__(self, persona: str):
        self.persona = persona
        super().__init__(f"Unknown persona: {persona}")


class SessionNotFoundError(StudyGroupError):
    """An operation required a session that was never initialised."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class GenerationError(StudyGroupError):
    """The content generator failed to produce a persona reply."""
