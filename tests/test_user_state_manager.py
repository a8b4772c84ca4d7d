import asyncio
import json
from datetime import timedelta

import pytest

from onboarding.core.exceptions import InvalidPatchError, StorageError
from onboarding.models.user_state import UserState
from onboarding.services.user_state_manager import UserStateManager
from onboarding.utils.time_utils import utc_now

USER_ID = "user123"
GUILD_ID = "guild456"


def _hours_ago(hours: float) -> str:
    return (utc_now() - timedelta(hours=hours)).isoformat()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data" / "onboarding"


@pytest.fixture
def manager(data_dir):
    return UserStateManager(data_dir=data_dir)


def _read_file(manager):
    return json.loads(manager.user_states_file.read_text(encoding="utf-8"))


def test_get_user_key(manager):
    assert manager.get_user_key(USER_ID, GUILD_ID) == "guild456-user123"


def test_initialize_with_no_existing_data(manager, data_dir):
    asyncio.run(manager.initialize())

    assert manager.initialized is True
    assert manager.user_states == {}
    assert data_dir.is_dir()
    assert not manager.user_states_file.exists()


def test_initialize_is_idempotent(manager):
    asyncio.run(manager.initialize())
    manager.user_states_file.write_text(
        json.dumps({"g-u": UserState(user_id="u", guild_id="g").to_json()}),
        encoding="utf-8",
    )

    asyncio.run(manager.initialize())

    assert manager.user_states == {}


def test_initialize_loads_existing_file(data_dir):
    data_dir.mkdir(parents=True)
    stored = UserState(user_id=USER_ID, guild_id=GUILD_ID)
    stored.complete_step("rules")
    (data_dir / "userStates.json").write_text(
        json.dumps({stored.key: stored.to_json()}), encoding="utf-8"
    )

    manager = UserStateManager(data_dir=data_dir)
    state = asyncio.run(manager.get_user_state(USER_ID, GUILD_ID))

    assert state is not None
    assert state.rules_acknowledged is True
    assert state.onboarding_step == "github"


def test_initialize_raises_on_malformed_json(manager, data_dir):
    data_dir.mkdir(parents=True)
    manager.user_states_file.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError) as exc_info:
        asyncio.run(manager.initialize())

    assert exc_info.value.code == "STORAGE_ERROR"
    assert manager.initialized is False


def test_initialize_raises_on_non_object_document(manager, data_dir):
    data_dir.mkdir(parents=True)
    manager.user_states_file.write_text("[]", encoding="utf-8")

    with pytest.raises(StorageError):
        asyncio.run(manager.initialize())


def test_get_user_state_absent(manager):
    assert asyncio.run(manager.get_user_state(USER_ID, GUILD_ID)) is None


def test_update_user_state_creates_record(manager):
    state = asyncio.run(manager.update_user_state(USER_ID, GUILD_ID, {"onboardingStep": "rules"}))

    assert isinstance(state, UserState)
    assert state.user_id == USER_ID
    assert state.guild_id == GUILD_ID
    assert state.onboarding_step == "rules"
    assert state.rules_acknowledged is False


def test_update_user_state_without_patch_creates_defaults(manager):
    state = asyncio.run(manager.update_user_state(USER_ID, GUILD_ID))

    assert state.onboarding_step == "welcome"
    assert "guild456-user123" in _read_file(manager)


def test_update_user_state_merges_patches(manager):
    async def run():
        await manager.update_user_state(USER_ID, GUILD_ID, {"githubConnected": True, "githubUsername": "octocat"})
        return await manager.update_user_state(USER_ID, GUILD_ID, {"githubUsername": "hubot", "remindersSent": 1})

    state = asyncio.run(run())

    assert state.github_connected is True
    assert state.github_username == "hubot"
    assert state.reminders_sent == 1


def test_update_user_state_persists_whole_map(manager):
    async def run():
        await manager.update_user_state("u1", GUILD_ID, {"remindersSent": 2})
        await manager.update_user_state("u2", "other", {"onboardingStep": "tutorial"})

    asyncio.run(run())
    data = _read_file(manager)

    assert list(data) == [f"{GUILD_ID}-u1", "other-u2"]
    assert data[f"{GUILD_ID}-u1"]["remindersSent"] == 2
    assert data["other-u2"]["onboardingStep"] == "tutorial"
    assert data["other-u2"]["userId"] == "u2"


def test_file_is_pretty_printed(manager):
    asyncio.run(manager.update_user_state(USER_ID, GUILD_ID))
    text = manager.user_states_file.read_text(encoding="utf-8")

    assert text.startswith('{\n  "guild456-user123": {\n    "userId"')
    assert not (manager.user_states_file.parent / "userStates.json.tmp").exists()


def test_update_user_state_rejects_unknown_fields(manager):
    with pytest.raises(InvalidPatchError):
        asyncio.run(manager.update_user_state(USER_ID, GUILD_ID, {"customField": "x"}))

    assert asyncio.run(manager.get_user_state(USER_ID, GUILD_ID)) is None


def test_state_survives_reload(manager, data_dir):
    asyncio.run(manager.update_user_state(USER_ID, GUILD_ID, {"githubUsername": "octocat"}))

    reloaded = UserStateManager(data_dir=data_dir)
    state = asyncio.run(reloaded.get_user_state(USER_ID, GUILD_ID))

    assert state.github_username == "octocat"


def test_set_onboarding_step(manager):
    state = asyncio.run(manager.set_onboarding_step(USER_ID, GUILD_ID, "tutorial"))

    assert state.onboarding_step == "tutorial"
    assert state.tutorial_completed is False
    assert _read_file(manager)["guild456-user123"]["onboardingStep"] == "tutorial"


def test_set_onboarding_step_rejects_unknown_step(manager):
    with pytest.raises(InvalidPatchError):
        asyncio.run(manager.set_onboarding_step(USER_ID, GUILD_ID, "finished"))


def test_mark_step_complete_creates_and_advances(manager):
    state = asyncio.run(manager.mark_step_complete(USER_ID, GUILD_ID, "rules"))

    assert state.rules_acknowledged is True
    assert state.rules_acknowledged_at is not None
    assert state.onboarding_step == "github"
    assert _read_file(manager)["guild456-user123"]["rulesAcknowledged"] is True


def test_mark_step_complete_full_flow(manager):
    async def run():
        for step in ("rules", "github", "tutorial"):
            state = await manager.mark_step_complete(USER_ID, GUILD_ID, step)
        return state

    state = asyncio.run(run())

    assert state.is_complete()
    assert state.tutorial_completed is True
    assert state.onboarding_completed_at is not None


def test_mark_step_complete_unknown_step_still_creates_record(manager):
    state = asyncio.run(manager.mark_step_complete(USER_ID, GUILD_ID, "invalid"))

    assert state.onboarding_step == "welcome"
    assert "guild456-user123" in _read_file(manager)


def test_get_guild_user_states(manager):
    async def run():
        await manager.update_user_state("user1", GUILD_ID)
        await manager.update_user_state("user2", "other-guild")
        await manager.update_user_state("user3", GUILD_ID)
        return await manager.get_guild_user_states(GUILD_ID)

    states = asyncio.run(run())

    assert [s.user_id for s in states] == ["user1", "user3"]
    assert all(s.guild_id == GUILD_ID for s in states)


def test_get_guild_user_states_empty(manager):
    assert asyncio.run(manager.get_guild_user_states("nobody")) == []


def test_delete_user_state(manager):
    async def run():
        await manager.update_user_state(USER_ID, GUILD_ID)
        await manager.delete_user_state(USER_ID, GUILD_ID)
        return await manager.get_user_state(USER_ID, GUILD_ID)

    assert asyncio.run(run()) is None
    assert _read_file(manager) == {}


def test_delete_missing_user_state_is_not_an_error(manager):
    asyncio.run(manager.delete_user_state(USER_ID, GUILD_ID))
    assert _read_file(manager) == {}


def test_get_users_needing_reminders(manager):
    async def run():
        await manager.update_user_state("a", GUILD_ID, {"onboardingStartedAt": _hours_ago(25)})
        await manager.update_user_state(
            "b", GUILD_ID, {"onboardingStartedAt": _hours_ago(25), "rulesAcknowledged": True}
        )
        await manager.update_user_state("c", GUILD_ID, {"onboardingStartedAt": _hours_ago(1)})
        await manager.update_user_state("d", "other-guild", {"onboardingStartedAt": _hours_ago(48)})
        return await manager.get_users_needing_reminders(GUILD_ID)

    users = asyncio.run(run())

    assert [u.user_id for u in users] == ["a"]


def test_get_users_needing_reminders_respects_max(manager):
    async def run():
        await manager.update_user_state(
            "at-max", GUILD_ID, {"onboardingStartedAt": _hours_ago(30), "remindersSent": 2}
        )
        await manager.update_user_state(
            "below-max", GUILD_ID, {"onboardingStartedAt": _hours_ago(30), "remindersSent": 1}
        )
        return await manager.get_users_needing_reminders(GUILD_ID, max_reminders=2)

    users = asyncio.run(run())

    assert [u.user_id for u in users] == ["below-max"]


def test_get_users_needing_reminders_default_max_is_three(manager):
    async def run():
        await manager.update_user_state(
            "u", GUILD_ID, {"onboardingStartedAt": _hours_ago(30), "remindersSent": 3}
        )
        return await manager.get_users_needing_reminders(GUILD_ID)

    assert asyncio.run(run()) == []


def test_get_users_needing_reminders_does_not_mutate(manager):
    async def run():
        await manager.update_user_state("a", GUILD_ID, {"onboardingStartedAt": _hours_ago(25)})
        await manager.get_users_needing_reminders(GUILD_ID)
        return await manager.get_user_state("a", GUILD_ID)

    assert asyncio.run(run()).reminders_sent == 0


def test_get_users_needing_reminders_skips_unparseable_timestamps(manager):
    async def run():
        await manager.update_user_state("a", GUILD_ID, {"onboardingStartedAt": "not-a-date"})
        return await manager.get_users_needing_reminders(GUILD_ID)

    assert asyncio.run(run()) == []


def test_concurrent_first_calls_load_once(manager, data_dir):
    data_dir.mkdir(parents=True)
    stored = UserState(user_id=USER_ID, guild_id=GUILD_ID)
    manager.user_states_file.write_text(
        json.dumps({stored.key: stored.to_json()}), encoding="utf-8"
    )

    async def run():
        await asyncio.gather(
            manager.update_user_state("new", GUILD_ID, {"remindersSent": 1}),
            manager.get_user_state(USER_ID, GUILD_ID),
        )

    asyncio.run(run())

    assert set(_read_file(manager)) == {"guild456-user123", "guild456-new"}


def test_null_reminder_count_is_rejected_before_it_reaches_the_query(manager):
    async def run():
        await manager.update_user_state("a", GUILD_ID, {"onboardingStartedAt": _hours_ago(30)})
        with pytest.raises(InvalidPatchError):
            await manager.update_user_state("a", GUILD_ID, {"remindersSent": None})
        return await manager.get_users_needing_reminders(GUILD_ID)

    users = asyncio.run(run())

    assert [u.user_id for u in users] == ["a"]
    assert users[0].reminders_sent == 0


def test_set_onboarding_step_rejects_none(manager):
    with pytest.raises(InvalidPatchError):
        asyncio.run(manager.set_onboarding_step(USER_ID, GUILD_ID, None))

    assert not manager.user_states_file.exists()


def test_initialize_loads_record_with_key_named_like_a_property(manager, data_dir):
    data_dir.mkdir(parents=True)
    stored = UserState(user_id=USER_ID, guild_id=GUILD_ID).to_json()
    stored["key"] = "legacy"
    manager.user_states_file.write_text(
        json.dumps({"guild456-user123": stored}), encoding="utf-8"
    )

    state = asyncio.run(manager.get_user_state(USER_ID, GUILD_ID))

    assert state.key == "guild456-user123"
    assert "key" not in state.to_json()
