"""Tests for promethee.progress.service — serialised load/reduce/save cycles."""

import asyncio

import pytest

from promethee.errors import CollaboratorError
from promethee.tests.conftest import NEVER_GAIN, TODAY


class TestStepsAndRewards:
    """increment_step, apply_quiz_result and apply_challenge_score."""

    @pytest.mark.asyncio
    async def test_step_is_persisted(self, make_service) -> None:
        service = make_service()
        state = await service.increment_step()
        assert state.steps_completed == 1
        stored = await service.get_state()
        assert stored == state
        assert stored.history[0].date == TODAY
        assert service._repository.save_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_steps_share_one_record(self, make_service) -> None:
        service = make_service()
        await asyncio.gather(*(service.increment_step() for _ in range(5)))
        state = await service.get_state()
        assert state.steps_completed == 5
        assert state.xp == 50
        assert len(state.history) == 1
        assert state.history[0].steps_added == 5
        assert state.history[0].xp == 50

    @pytest.mark.asyncio
    async def test_zero_quiz_result_not_saved(self, make_service) -> None:
        service = make_service()
        await service.apply_quiz_result(0)
        assert service._repository.save_count == 0

    @pytest.mark.asyncio
    async def test_quiz_result(self, make_service) -> None:
        service = make_service()
        state = await service.apply_quiz_result(3)
        assert state.xp == 90
        assert state.gem_coins == 15

    @pytest.mark.asyncio
    async def test_challenge_level_up(self, make_service, make_state, caplog) -> None:
        service = make_service(state=make_state(xp=950))
        with caplog.at_level("INFO", logger="promethee.progress.service"):
            state = await service.apply_challenge_score(80)
        assert state.xp == 1110
        assert state.level == 2
        assert state.build_points == 2
        assert "Level up 1 -> 2 after challenge" in caplog.text


class TestQuestCompletion:
    """complete_quest — both documents saved together, refusals are not errors."""

    @pytest.mark.asyncio
    async def test_completion(self, make_service, make_quest) -> None:
        service = make_service(quests=[make_quest()])
        result = await service.complete_quest("q-1-0")
        assert result.applied is True
        assert result.state.xp == 100
        assert result.state.stats.code_quests_completed == 1
        assert (await service.get_quests())[0].is_completed is True
        assert (await service.get_state()).gem_coins == 20

    @pytest.mark.asyncio
    async def test_second_completion_refused(self, make_service, make_quest) -> None:
        service = make_service(quests=[make_quest()])
        await service.complete_quest("q-1-0")
        result = await service.complete_quest("q-1-0")
        assert result.applied is False
        assert result.state.xp == 100

    @pytest.mark.asyncio
    async def test_concurrent_completions_apply_once(self, make_service, make_quest) -> None:
        service = make_service(quests=[make_quest()], rng=NEVER_GAIN)
        results = await asyncio.gather(
            service.complete_quest("q-1-0"), service.complete_quest("q-1-0")
        )
        assert sorted(r.applied for r in results) == [False, True]
        state = await service.get_state()
        assert state.xp == 100
        assert state.history[0].quests_completed == 1

    @pytest.mark.asyncio
    async def test_unknown_quest(self, make_service) -> None:
        result = await make_service().complete_quest("q-404")
        assert result.applied is False
        assert result.quests == []


class TestUnlock:
    """unlock_node — the gate decides, unknown ids raise KeyError."""

    @pytest.mark.asyncio
    async def test_unlock_root_with_skill_point(self, make_service, make_state) -> None:
        service = make_service(state=make_state(skill_points={"anglais": 1}))
        result = await service.unlock_node("en_lex_1")
        assert result.applied is True
        stored = await service.get_state()
        assert stored.unlocked_nodes == ["en_lex_1"]
        assert stored.skill_points["anglais"] == 0

    @pytest.mark.asyncio
    async def test_refused_without_points(self, make_service) -> None:
        service = make_service()
        result = await service.unlock_node("ai_int_1")
        assert result.applied is False
        assert service._repository.save_count == 0

    @pytest.mark.asyncio
    async def test_refused_with_locked_parent(self, make_service, make_state) -> None:
        service = make_service(state=make_state(skill_points={"anglais": 5}))
        result = await service.unlock_node("en_lex_2")
        assert result.applied is False

    @pytest.mark.asyncio
    async def test_build_point_node(self, make_service, make_state) -> None:
        state = make_state(build_points=1, unlocked_nodes=["en_lex_1", "en_lex_2"])
        service = make_service(state=state)
        result = await service.unlock_node("en_lex_3")
        assert result.applied is True
        assert result.state.build_points == 0

    @pytest.mark.asyncio
    async def test_unknown_node(self, make_service) -> None:
        with pytest.raises(KeyError):
            await make_service().unlock_node("nope")


class TestRegeneration:
    """regenerate_quests — stale results are discarded."""

    @pytest.mark.asyncio
    async def test_replaces_quest_list(self, make_service, make_quest, make_draft) -> None:
        service = make_service(quests=[make_quest()])

        async def source(state):
            return [make_draft(titre=f"Q{i}") for i in range(3)]

        quests = await service.regenerate_quests(source)
        assert [q.titre for q in quests] == ["Q0", "Q1", "Q2"]
        assert await service.get_quests() == quests
        assert all(not q.is_completed for q in quests)

    @pytest.mark.asyncio
    async def test_source_receives_current_state(self, make_service, make_state, make_draft) -> None:
        service = make_service(state=make_state(steps_completed=42))
        seen = []

        async def source(state):
            seen.append(state.steps_completed)
            return [make_draft()]

        await service.regenerate_quests(source)
        assert seen == [42]

    @pytest.mark.asyncio
    async def test_stale_generation_discarded(self, make_service, make_draft) -> None:
        service = make_service()
        release = asyncio.Event()

        async def slow_source(state):
            await release.wait()
            return [make_draft(titre="ancienne")]

        async def fast_source(state):
            return [make_draft(titre="nouvelle")]

        slow = asyncio.create_task(service.regenerate_quests(slow_source))
        await asyncio.sleep(0)
        fresh = await service.regenerate_quests(fast_source)
        release.set()
        stale = await slow

        assert stale is None
        assert [q.titre for q in fresh] == ["nouvelle"]
        assert [q.titre for q in await service.get_quests()] == ["nouvelle"]

    @pytest.mark.asyncio
    async def test_source_error_keeps_quests(self, make_service, make_quest) -> None:
        service = make_service(quests=[make_quest()])

        async def failing(state):
            raise CollaboratorError("AI_ERROR", "boom", "quests")

        with pytest.raises(CollaboratorError):
            await service.regenerate_quests(failing)
        assert [q.id for q in await service.get_quests()] == ["q-1-0"]


class TestReads:
    @pytest.mark.asyncio
    async def test_streak_and_history(self, make_service) -> None:
        service = make_service()
        await service.increment_step()
        assert await service.streak() == 1
        summary = await service.history("week")
        assert summary.total_steps == 1

    @pytest.mark.asyncio
    async def test_town(self, make_service, make_state) -> None:
        state = make_state(stats={"wordsMastered": 60})
        statuses = await make_service(state=state).town()
        english = next(s for s in statuses if s.building.domaine == "Anglais")
        assert english.metric == 60
        assert english.resolution.current_tier is not None
