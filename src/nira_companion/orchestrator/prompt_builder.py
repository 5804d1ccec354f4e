"""System prompt composition for a chat turn."""

from __future__ import annotations

from ..memory.models import EmotionalState, FriendshipStats, MidTermSummary, UserProfile


def _identity_section(profile: UserProfile | None, emotion: EmotionalState | None) -> str:
    lines = []
    if profile is not None and profile.name:
        lines.append(f"Your friend's name is {profile.name}.")
    if emotion is not None and not emotion.is_empty:
        lines.append(
            f"Their recent mood: {emotion.mood or 'unknown'}, "
            f"energy: {emotion.energy or 'unknown'}."
        )
    if not lines:
        return ""
    return "[WHO YOU ARE TALKING TO]\n" + "\n".join(lines)


def _facts_section(facts: list[str]) -> str:
    facts = [f for f in facts if f and f.strip()]
    if not facts:
        return ""
    return "[THINGS YOU REMEMBER]\n" + "\n".join(f"- {fact}" for fact in facts)


def _summary_section(summary: MidTermSummary | None) -> str:
    if summary is None or not summary.summary.strip():
        return ""
    return f"[RECENT CONVERSATIONS]\n{summary.summary.strip()}"


def _stats_section(stats: FriendshipStats | None) -> str:
    if stats is None or stats.interactions <= 0:
        return ""
    return (
        f"[FRIENDSHIP]\nYou have known each other for {stats.days} day(s) "
        f"and talked {stats.interactions} time(s)."
    )


def _global_section(global_prompt: str | None) -> str:
    if not global_prompt or not global_prompt.strip():
        return ""
    return f"[ADDITIONAL INSTRUCTIONS]\n{global_prompt.strip()}"


def _search_section(search_results: str | None) -> str:
    if not search_results or not search_results.strip():
        return ""
    return (
        "[LIVE WEB RESULTS]\nUse these if relevant, mention links naturally.\n"
        f"{search_results.strip()}"
    )


def build_system_prompt(
    persona_prompt: str,
    profile: UserProfile | None = None,
    emotional_state: EmotionalState | None = None,
    facts: list[str] | None = None,
    summary: MidTermSummary | None = None,
    stats: FriendshipStats | None = None,
    global_prompt: str | None = None,
    search_results: str | None = None,
) -> str:
    """Compose the system prompt.

    Sections always appear in this order: persona, identity, long-term
    facts, mid-term summary, friendship stats, global prompt, search
    results. A section whose source is empty is left out entirely.
    """
    sections = [
        persona_prompt.strip(),
        _identity_section(profile, emotional_state),
        _facts_section(facts or []),
        _summary_section(summary),
        _stats_section(stats),
        _global_section(global_prompt),
        _search_section(search_results),
    ]
    return "\n\n".join(s for s in sections if s)
