"""End-to-end chat turn tests over a real store and fake providers."""

import random
from unittest.mock import AsyncMock

import pytest

from nira_companion.config_manager.llm import LLMConfig, SearchConfig
from nira_companion.memory.exceptions import (
    MaintenanceModeError,
    MalformedInputError,
    StoreFailure,
    TrialEndedError,
)
from nira_companion.memory.models import ConversationTurn, OnboardingState, TurnRole
from nira_companion.orchestrator.orchestrator import Orchestrator
from nira_companion.policy.policy_engine import PolicyEngine
from nira_companion.providers.gateway import ProviderGateway

from conftest import FALLBACKS

IMAGE = "data:image/png;base64," + "A" * 200


def _smart_handler(facts='["User likes chess"]', summary="They chatted about chess."):
    """Answers the maintenance prompts like a model would."""

    def handler(system_prompt, messages):
        if system_prompt.startswith("Extract key personal facts"):
            return facts
        if system_prompt.startswith("You maintain a rolling summary"):
            return summary
        return "primary reply"

    return handler


async def _seed_exchanges(memory, uid, count):
    for i in range(count):
        await memory.commit_exchange(
            uid,
            ConversationTurn(role=TurnRole.USER, content=f"question {i}"),
            ConversationTurn(role=TurnRole.ASSISTANT, content=f"answer {i}"),
            usage_increment=0.0,
            is_first_write=i == 0,
        )


def _maintenance_calls(provider, prefix):
    return [c for c in provider.calls if c["system_prompt"].startswith(prefix)]


class TestValidation:
    async def test_empty_message(self, orchestrator):
        with pytest.raises(MalformedInputError):
            await orchestrator.handle_message("user-1", "   ")

    async def test_missing_user(self, orchestrator):
        with pytest.raises(MalformedInputError):
            await orchestrator.handle_message("", "hi")


class TestOnboarding:
    async def test_first_contact_asks_for_name(self, orchestrator, memory, primary, persona):
        result = await orchestrator.handle_message("new-user", "Hi")

        assert result.kind == "onboarding"
        assert result.response == persona.onboarding_prompt
        profile = await memory.get_profile("new-user")
        assert profile.setup_step == OnboardingState.AWAITING_NAME
        assert primary.calls == []
        assert await memory.get_recent_turns("new-user", 10) == []

    async def test_next_message_is_the_name(self, orchestrator, memory, primary):
        await orchestrator.handle_message("new-user", "Hi")
        result = await orchestrator.handle_message("new-user", "Rahul Kumar Sharma Verma")

        profile = await memory.get_profile("new-user")
        assert profile.name == "Rahul Kumar Sharma V"
        assert len(profile.name) == 20
        assert profile.setup_step == OnboardingState.COMPLETE
        assert result.kind == "onboarding"
        assert "Rahul Kumar Sharma V" in result.response
        assert primary.calls == []

    async def test_onboarding_runs_before_trial_gate(self, orchestrator, memory):
        await memory.update_global_settings({"trialLimitMinutes": 0})
        result = await orchestrator.handle_message("new-user", "Hi")
        assert result.kind == "onboarding"


class TestAccessGate:
    async def test_trial_ended(self, orchestrator, memory, named_user, primary, persona):
        await memory.merge_profile(named_user, {"usageMinutes": 5.2})

        with pytest.raises(TrialEndedError) as exc_info:
            await orchestrator.handle_message(named_user, "hello")

        assert exc_info.value.link == persona.upgrade_link
        assert primary.calls == []
        profile = await memory.get_profile(named_user)
        assert profile.usage_minutes == 5.2
        assert profile.total_interactions == 0

    async def test_pro_user_keeps_chatting(self, orchestrator, memory, named_user):
        await memory.merge_profile(named_user, {"usageMinutes": 50, "isPro": True})
        result = await orchestrator.handle_message(named_user, "hello")
        assert result.response == "primary reply"

    async def test_maintenance(self, orchestrator, memory, named_user, primary):
        await memory.update_global_settings({"maintenanceMode": True})
        with pytest.raises(MaintenanceModeError):
            await orchestrator.handle_message(named_user, "hello")
        assert primary.calls == []


class TestExchange:
    async def test_reply_and_persistence(self, orchestrator, memory, named_user):
        result = await orchestrator.handle_message(named_user, "I had a good day")

        assert result.response == "primary reply"
        assert result.kind == "reply"
        assert result.persisted
        turns = await memory.get_recent_turns(named_user, 10)
        assert [(t.role, t.content) for t in turns] == [
            (TurnRole.USER, "I had a good day"),
            (TurnRole.ASSISTANT, "primary reply"),
        ]
        profile = await memory.get_profile(named_user)
        assert profile.total_interactions == 1
        assert profile.is_pro is False
        assert profile.created_at is not None

    async def test_usage_accounting(self, orchestrator, memory, named_user, clock):
        await orchestrator.handle_message(named_user, "hello")
        assert (await memory.get_profile(named_user)).usage_minutes == pytest.approx(0.5)

        clock.advance(minutes=3)
        await orchestrator.handle_message(named_user, "still here")
        assert (await memory.get_profile(named_user)).usage_minutes == pytest.approx(3.5)

        clock.advance(minutes=45)
        await orchestrator.handle_message(named_user, "back again")
        assert (await memory.get_profile(named_user)).usage_minutes == pytest.approx(4.0)

    async def test_system_prompt_carries_memory(self, orchestrator, memory, named_user, primary):
        await memory.append_facts(named_user, ["User loves chai"])
        await memory.update_global_settings({"globalPrompt": "Speak Hinglish."})

        await orchestrator.handle_message(named_user, "hey")

        system_prompt = primary.calls[0]["system_prompt"]
        assert "Your friend's name is Asha." in system_prompt
        assert "- User loves chai" in system_prompt
        assert "Speak Hinglish." in system_prompt

    async def test_history_sent_to_provider(self, orchestrator, memory, named_user, primary):
        await _seed_exchanges(memory, named_user, 2)
        await orchestrator.handle_message(named_user, "third")
        assert primary.calls[0]["messages"] == [
            {"role": "user", "content": "question 0"},
            {"role": "assistant", "content": "answer 0"},
            {"role": "user", "content": "question 1"},
            {"role": "assistant", "content": "answer 1"},
            {"role": "user", "content": "third"},
        ]

    async def test_all_providers_down(self, orchestrator, memory, named_user, primary, secondary):
        primary.fail = True
        secondary.fail = True

        result = await orchestrator.handle_message(named_user, "hello")

        assert result.response in FALLBACKS
        assert result.persisted
        assert (await memory.get_profile(named_user)).total_interactions == 1

    async def test_image_stored_on_user_turn_only(self, orchestrator, memory, named_user, primary):
        await orchestrator.handle_message(named_user, "look at this", image=IMAGE)

        assert primary.calls[0]["image"] == IMAGE
        documents = await memory.get_recent_turn_documents(named_user, 10)
        assert documents[0]["image"] == IMAGE
        assert "image" not in documents[1]

    async def test_degraded_read_still_replies(self, orchestrator, memory, named_user):
        memory.get_long_term_facts = AsyncMock(side_effect=StoreFailure("locked"))
        result = await orchestrator.handle_message(named_user, "hello")
        assert result.response == "primary reply"

    async def test_settings_read_failure_propagates(self, orchestrator, memory, named_user):
        memory.get_global_settings = AsyncMock(side_effect=StoreFailure("locked"))
        with pytest.raises(StoreFailure):
            await orchestrator.handle_message(named_user, "hello")


class TestPersistFailure:
    async def test_reply_returned_but_flagged(self, orchestrator, memory, named_user):
        memory.commit_exchange = AsyncMock(side_effect=StoreFailure("disk full"))

        result = await orchestrator.handle_message(named_user, "hello")

        assert result.response == "primary reply"
        assert result.persisted is False
        assert "disk full" in result.persist_error
        assert memory.commit_exchange.await_count == 2
        assert (await memory.get_emotional_state(named_user)).is_empty

    async def test_retry_succeeds(self, orchestrator, memory, named_user):
        real_commit = memory.commit_exchange
        memory.commit_exchange = AsyncMock(side_effect=[StoreFailure("busy"), None])
        result = await orchestrator.handle_message(named_user, "hello")
        assert result.persisted
        assert memory.commit_exchange.await_count == 2
        memory.commit_exchange = real_commit


class TestMaintenance:
    async def test_emotional_state_updated(self, orchestrator, memory, named_user):
        await orchestrator.handle_message(named_user, "so much stress")
        state = await memory.get_emotional_state(named_user)
        assert state.mood == "stressed"
        assert state.energy == "high"

    async def test_long_message_triggers_extraction(self, orchestrator, memory, named_user, primary):
        await _seed_exchanges(memory, named_user, 3)
        primary.handler = _smart_handler()
        message = "I have been playing chess every single evening"
        assert len(message) > 40

        await orchestrator.handle_message(named_user, message)

        assert await memory.get_long_term_facts(named_user, 10) == ["User likes chess"]
        transcript = _maintenance_calls(primary, "Extract key")[0]["messages"][0]["content"]
        assert "User: question 0" in transcript
        assert f"User: {message}" in transcript

    async def test_short_message_off_cadence_skips_extraction(
        self, orchestrator, memory, named_user, primary
    ):
        await _seed_exchanges(memory, named_user, 3)
        primary.handler = _smart_handler()

        await orchestrator.handle_message(named_user, "ok cool")

        assert _maintenance_calls(primary, "Extract key") == []
        assert await memory.get_long_term_facts(named_user, 10) == []

    async def test_summary_every_tenth_interaction(self, orchestrator, memory, named_user, primary):
        await _seed_exchanges(memory, named_user, 2)
        await memory.merge_profile(named_user, {"totalInteractions": 9})
        primary.handler = _smart_handler()

        await orchestrator.handle_message(named_user, "ok")

        summary = await memory.get_mid_term_summary(named_user)
        assert summary.summary == "They chatted about chess."
        assert summary.turn_count == 6

    async def test_maintenance_failure_does_not_affect_reply(
        self, orchestrator, memory, named_user, background
    ):
        memory.set_emotional_state = AsyncMock(side_effect=StoreFailure("locked"))
        result = await orchestrator.handle_message(named_user, "hello")
        assert result.response == "primary reply"
        assert [f.job_name for f in background.failures] == ["emotional_state"]

    async def test_schedule_summarization(self, orchestrator, memory, named_user, primary):
        await _seed_exchanges(memory, named_user, 3)
        primary.handler = _smart_handler(summary="Manual summary.")
        await orchestrator.schedule_summarization(named_user)
        assert (await memory.get_mid_term_summary(named_user)).summary == "Manual summary."


class TestSearch:
    class FakeSearch:
        name = "tavily"

        def __init__(self):
            self.queries = []

        async def search(self, query):
            self.queries.append(query)
            return "[Forecast](https://w.example): Sunny"

    @pytest.fixture
    def search(self):
        return self.FakeSearch()

    @pytest.fixture
    def searching_orchestrator(self, memory, primary, persona, search, background):
        gateway = ProviderGateway(
            [primary],
            fallback_responses=FALLBACKS,
            llm_config=LLMConfig(providers=[]),
            search_provider=search,
            search_config=SearchConfig(api_key="k"),
            rng=random.Random(0),
        )
        return Orchestrator(
            memory, gateway, PolicyEngine(persona=persona), persona=persona,
            background=background,
        )

    async def test_search_results_in_prompt(self, searching_orchestrator, named_user, primary, search):
        result = await searching_orchestrator.handle_message(named_user, "weather today?")

        assert result.searched
        assert search.queries == ["weather today?"]
        assert "[LIVE WEB RESULTS]" in primary.calls[0]["system_prompt"]

    async def test_search_skipped_with_image(self, searching_orchestrator, named_user, search):
        result = await searching_orchestrator.handle_message(
            named_user, "weather today?", image=IMAGE
        )
        assert not result.searched
        assert search.queries == []

    async def test_no_search_for_small_talk(self, searching_orchestrator, named_user, search):
        await searching_orchestrator.handle_message(named_user, "I miss you")
        assert search.queries == []


class TestProactiveGreeting:
    async def test_unknown_user(self, orchestrator, primary):
        assert await orchestrator.handle_proactive_greeting("nobody") == ""
        assert primary.calls == []

    async def test_awaiting_name(self, orchestrator, primary):
        await orchestrator.handle_message("new-user", "Hi")
        assert await orchestrator.handle_proactive_greeting("new-user") == ""
        assert primary.calls == []

    async def test_named_user_greeted(self, orchestrator, named_user, primary, persona):
        greeting = await orchestrator.handle_proactive_greeting(named_user)

        assert greeting == "primary reply"
        call = primary.calls[0]
        assert call["messages"] == [{"role": "user", "content": persona.greeting_instruction}]
        assert "Asha" in call["system_prompt"]

    async def test_trial_ended_user_not_greeted(self, orchestrator, memory, named_user, primary):
        await memory.merge_profile(named_user, {"usageMinutes": 10})
        assert await orchestrator.handle_proactive_greeting(named_user) == ""
        assert primary.calls == []

    async def test_greeting_does_not_persist(self, orchestrator, memory, named_user):
        await orchestrator.handle_proactive_greeting(named_user)
        assert await memory.get_recent_turns(named_user, 10) == []
