"""Policy Engine.

Pure decision logic for onboarding, access (maintenance and trial) and
usage accounting. Nothing here touches the store; the orchestrator applies
the decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from loguru import logger

from ..config_manager.persona import PersonaConfig
from ..config_manager.policy import PolicyConfig
from ..memory.exceptions import MaintenanceModeError, TrialEndedError
from ..memory.models import GlobalSettings, OnboardingState, UserProfile


class OnboardingAction(str, Enum):
    PROCEED = "proceed"
    PROMPT_FOR_NAME = "prompt_for_name"
    CAPTURE_NAME = "capture_name"


@dataclass(frozen=True)
class OnboardingDecision:
    """What to do with a message given the user's onboarding state.

    ``reply`` is the fixed text to return instead of calling a model, and
    ``next_state`` / ``name`` are what to persist. Both are None for PROCEED.
    """

    action: OnboardingAction
    reply: str | None = None
    next_state: OnboardingState | None = None
    name: str | None = None

    @property
    def short_circuits(self) -> bool:
        return self.action != OnboardingAction.PROCEED


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PolicyEngine:
    def __init__(
        self,
        policy: PolicyConfig | None = None,
        persona: PersonaConfig | None = None,
    ):
        self._policy = policy or PolicyConfig()
        self._persona = persona or PersonaConfig()

    def evaluate_onboarding(
        self, profile: UserProfile | None, message: str
    ) -> OnboardingDecision:
        """Decide the onboarding step for this message.

        A user with a name always proceeds. A user without one is asked for
        it, and the next message is taken as the name.
        """
        if profile is not None and profile.name:
            return OnboardingDecision(OnboardingAction.PROCEED)

        step = profile.setup_step if profile is not None else OnboardingState.NEW
        if step == OnboardingState.COMPLETE:
            return OnboardingDecision(OnboardingAction.PROCEED)
        if step == OnboardingState.AWAITING_NAME:
            name = message.strip()[: self._policy.name_max_length]
            if name:
                return OnboardingDecision(
                    OnboardingAction.CAPTURE_NAME,
                    reply=self._persona.name_confirmation.format(name=name),
                    next_state=OnboardingState.COMPLETE,
                    name=name,
                )

        return OnboardingDecision(
            OnboardingAction.PROMPT_FOR_NAME,
            reply=self._persona.onboarding_prompt,
            next_state=OnboardingState.AWAITING_NAME,
        )

    def check_access(self, profile: UserProfile | None, settings: GlobalSettings) -> None:
        """Raise a PolicyRejection subclass if the user may not chat now.

        Raises:
            MaintenanceModeError: Maintenance is on and the user is not exempt.
            TrialEndedError: A free user has used up the trial minutes.
        """
        is_pro = bool(profile and profile.is_pro)

        if settings.maintenance_mode and not (
            is_pro and self._policy.maintenance_allows_pro
        ):
            logger.info("Request rejected: maintenance mode")
            raise MaintenanceModeError(self._persona.maintenance_message)

        if is_pro:
            return
        used = profile.usage_minutes if profile is not None else 0.0
        limit = settings.trial_limit_minutes
        if used >= limit:
            logger.info(f"Trial ended ({used:.2f} >= {limit} minutes)")
            raise TrialEndedError(
                self._persona.trial_ended_message,
                link=self._persona.upgrade_link,
                used_minutes=used,
                limit_minutes=limit,
            )

    def compute_usage_increment(
        self, last_turn_at: datetime | None, now: datetime
    ) -> float:
        """Minutes to add for this exchange.

        Gaps shorter than the session gap count in full, anything longer
        (or a first message) starts a new session worth a flat amount.
        """
        if last_turn_at is None:
            return self._policy.new_session_minutes
        gap = (_as_aware(now) - _as_aware(last_turn_at)).total_seconds() / 60
        gap = max(0.0, gap)
        if gap < self._policy.session_gap_minutes:
            return gap
        return self._policy.new_session_minutes
