"""Tests for onboarding decisions, the access gate and usage accounting."""

from datetime import datetime, timedelta, timezone

import pytest

from nira_companion.config_manager.persona import PersonaConfig
from nira_companion.config_manager.policy import PolicyConfig
from nira_companion.memory.exceptions import MaintenanceModeError, TrialEndedError
from nira_companion.memory.models import GlobalSettings, OnboardingState, UserProfile
from nira_companion.policy.policy_engine import OnboardingAction, PolicyEngine

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def policy():
    return PolicyEngine()


class TestOnboarding:
    def test_unknown_user_is_asked_for_name(self, policy):
        decision = policy.evaluate_onboarding(None, "Hi")
        assert decision.action == OnboardingAction.PROMPT_FOR_NAME
        assert decision.short_circuits
        assert decision.reply == PersonaConfig().onboarding_prompt
        assert decision.next_state == OnboardingState.AWAITING_NAME
        assert decision.name is None

    def test_new_profile_without_name_is_asked(self, policy):
        decision = policy.evaluate_onboarding(UserProfile(usage_minutes=1.0), "hello")
        assert decision.action == OnboardingAction.PROMPT_FOR_NAME

    def test_awaiting_name_captures_message(self, policy):
        profile = UserProfile(setup_step=OnboardingState.AWAITING_NAME)
        decision = policy.evaluate_onboarding(profile, "  Rahul  ")
        assert decision.action == OnboardingAction.CAPTURE_NAME
        assert decision.name == "Rahul"
        assert decision.next_state == OnboardingState.COMPLETE
        assert '"Rahul"' in decision.reply

    def test_captured_name_is_truncated(self, policy):
        profile = UserProfile(setup_step=OnboardingState.AWAITING_NAME)
        decision = policy.evaluate_onboarding(profile, "A" * 30)
        assert decision.name == "A" * 20

    def test_blank_answer_asks_again(self, policy):
        profile = UserProfile(setup_step=OnboardingState.AWAITING_NAME)
        decision = policy.evaluate_onboarding(profile, "   ")
        assert decision.action == OnboardingAction.PROMPT_FOR_NAME
        assert decision.next_state == OnboardingState.AWAITING_NAME

    def test_named_user_proceeds(self, policy):
        decision = policy.evaluate_onboarding(UserProfile(name="Asha"), "hey")
        assert decision.action == OnboardingAction.PROCEED
        assert not decision.short_circuits
        assert decision.reply is None

    def test_complete_without_name_proceeds(self, policy):
        profile = UserProfile(setup_step=OnboardingState.COMPLETE)
        assert policy.evaluate_onboarding(profile, "hey").action == OnboardingAction.PROCEED

    def test_custom_name_length(self):
        policy = PolicyEngine(PolicyConfig(name_max_length=4))
        profile = UserProfile(setup_step=OnboardingState.AWAITING_NAME)
        assert policy.evaluate_onboarding(profile, "Priyanka").name == "Priy"


class TestAccess:
    def test_within_trial(self, policy):
        policy.check_access(UserProfile(name="A", usage_minutes=4.9), GlobalSettings())

    def test_trial_ended(self, policy):
        with pytest.raises(TrialEndedError) as exc_info:
            policy.check_access(UserProfile(name="A", usage_minutes=5.2), GlobalSettings())
        error = exc_info.value
        assert error.error_code == "TRIAL_ENDED"
        assert error.status_code == 403
        assert error.link == PersonaConfig().upgrade_link
        assert error.used_minutes == 5.2
        assert error.limit_minutes == 5
        assert error.to_payload()["link"] == error.link

    def test_exactly_at_limit_is_ended(self, policy):
        with pytest.raises(TrialEndedError):
            policy.check_access(UserProfile(usage_minutes=5.0), GlobalSettings())

    def test_limit_read_from_settings(self, policy):
        settings = GlobalSettings(trial_limit_minutes=30)
        policy.check_access(UserProfile(usage_minutes=12.0), settings)

    def test_zero_limit_blocks_free_users_immediately(self, policy):
        with pytest.raises(TrialEndedError):
            policy.check_access(None, GlobalSettings(trial_limit_minutes=0))

    def test_pro_user_bypasses_trial(self, policy):
        policy.check_access(UserProfile(is_pro=True, usage_minutes=500), GlobalSettings())

    def test_maintenance_blocks_free_user(self, policy):
        with pytest.raises(MaintenanceModeError) as exc_info:
            policy.check_access(UserProfile(), GlobalSettings(maintenance_mode=True))
        assert exc_info.value.error_code == "MAINTENANCE"
        assert exc_info.value.status_code == 503

    def test_maintenance_checked_before_trial(self, policy):
        with pytest.raises(MaintenanceModeError):
            policy.check_access(
                UserProfile(usage_minutes=99), GlobalSettings(maintenance_mode=True)
            )

    def test_maintenance_lets_pro_through(self, policy):
        policy.check_access(UserProfile(is_pro=True), GlobalSettings(maintenance_mode=True))

    def test_maintenance_blocks_pro_when_configured(self):
        policy = PolicyEngine(PolicyConfig(maintenance_allows_pro=False))
        with pytest.raises(MaintenanceModeError):
            policy.check_access(UserProfile(is_pro=True), GlobalSettings(maintenance_mode=True))


class TestUsageIncrement:
    def test_first_message(self, policy):
        assert policy.compute_usage_increment(None, NOW) == 0.5

    def test_gap_within_session_counts_in_full(self, policy):
        assert policy.compute_usage_increment(NOW - timedelta(minutes=3), NOW) == pytest.approx(3.0)

    def test_long_gap_starts_new_session(self, policy):
        assert policy.compute_usage_increment(NOW - timedelta(minutes=45), NOW) == 0.5

    def test_exactly_session_gap_is_new_session(self, policy):
        assert policy.compute_usage_increment(NOW - timedelta(minutes=10), NOW) == 0.5

    def test_clock_skew_is_clamped(self, policy):
        assert policy.compute_usage_increment(NOW + timedelta(minutes=2), NOW) == 0.0

    def test_naive_timestamp_treated_as_utc(self, policy):
        last = (NOW - timedelta(minutes=2)).replace(tzinfo=None)
        assert policy.compute_usage_increment(last, NOW) == pytest.approx(2.0)
