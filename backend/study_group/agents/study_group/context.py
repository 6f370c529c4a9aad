"""Per-turn context snapshot and student engagement updates."""

from datetime import datetime
from typing import Optional, Sequence

from .state import ContextSnapshot, Session, StudentProfile
from .transitions import answer_outcomes, count_consecutive

DEFAULT_HISTORY_WINDOW = 10


def session_duration_minutes(session: Session, now: datetime) -> int:
    """Whole minutes elapsed since the session started."""
    elapsed = (now - session.started_at).total_seconds()
    return max(0, int(elapsed // 60))


def average_score(scores: Sequence[float]) -> Optional[float]:
    if not scores:
        return None
    return sum(scores) / len(scores)


def build_context_snapshot(
    session: Session,
    profile: Optional[StudentProfile],
    recent_scores: Sequence[float],
    now: datetime,
    history_window: int = DEFAULT_HISTORY_WINDOW,
) -> ContextSnapshot:
    """
    Assemble the score engine input. Pure.

    Args:
        session: Session as it stood when the turn began
        profile: Student profile, if the student is known
        recent_scores: Past performance scores, most recent first
        now: Current time
        history_window: Number of trailing messages quoted back to personas

    Returns:
        A fresh ContextSnapshot
    """
    outcomes = answer_outcomes(session.messages)

    return ContextSnapshot(
        topic=session.topic,
        recent_score=average_score(recent_scores),
        weak_topics=profile.weak_topics if profile else (),
        streak_days=profile.streak_days if profile else 0,
        session_duration=session_duration_minutes(session, now),
        consecutive_correct=count_consecutive(outcomes, True),
        consecutive_wrong=count_consecutive(outcomes, False),
        last_persona=session.active_persona,
        message_count=len(session.messages),
        explanation_style=profile.preferred_explanation_style if profile else "analogies",
        history=session.messages[-history_window:] if history_window > 0 else (),
    )


def advance_streak(profile: StudentProfile, now: datetime) -> StudentProfile:
    """
    Record activity and update the day-over-day streak.

    Activity the day after the last active day extends the streak, activity
    on the same day keeps it, and a longer gap restarts it at 1.
    """
    last_active = profile.last_active_at
    streak = profile.streak_days

    if last_active is None:
        streak = 1
    else:
        gap_days = (now.date() - last_active.date()).days
        if gap_days == 1:
            streak += 1
        elif gap_days > 1:
            streak = 1
        elif streak == 0:
            streak = 1

    return profile.model_copy(update={"streak_days": streak, "last_active_at": now})
