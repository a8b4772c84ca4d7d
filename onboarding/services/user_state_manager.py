"""
onboarding/services/user_state_manager.py

Purpose: User onboarding state management

- Lazily loads all user states from one JSON file
- Create or update user states (fetch-or-create + patch)
- Step completion through the onboarding state machine
- Guild-scoped and reminder-eligibility queries
- Flushes the whole map to disk on every change
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from onboarding.core.config import settings
from onboarding.core.logging import get_logger, LogContext
from onboarding.db.json_store import JsonDocumentStore
from onboarding.flow.steps import OnboardingStep
from onboarding.models.user_state import UserState, UserStatePatch, serialize_states
from onboarding.utils.constants import DEFAULT_MAX_REMINDERS, REMINDER_THRESHOLD
from onboarding.utils.time_utils import has_elapsed, utc_now

logger = get_logger(__name__)


class UserStateManager:
    """
    Owns the composite-key -> UserState map and its JSON file.

    Every public coroutine initializes the manager first. Mutations hold the
    manager's lock from the in-memory change until the file is rewritten.
    The lock ties a manager to one event loop; create a manager per loop.
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, os.PathLike]] = None,
        filename: Optional[str] = None,
    ):
        self.data_dir = Path(data_dir or settings.ONBOARDING_DATA_DIR)
        self.user_states_file = self.data_dir / (filename or settings.USER_STATES_FILENAME)
        self.user_states: Dict[str, UserState] = {}
        self.initialized = False
        self._store = JsonDocumentStore(self.user_states_file)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """
        Creates the data directory and loads existing states. Runs once.

        Raises:
            StorageError: If the directory or file cannot be read
        """
        if self.initialized:
            return

        async with self._lock:
            if self.initialized:
                return
            try:
                await self._store.ensure_directory()
                await self._load_user_states()
            except Exception:
                logger.exception("Error initializing UserStateManager")
                raise
            self.initialized = True

        logger.info(
            f"UserStateManager initialized with {len(self.user_states)} states",
            extra={"path": str(self.user_states_file)}
        )

    async def _load_user_states(self) -> None:
        data = await self._store.read()
        self.user_states = {
            key: UserState.from_json(state_data)
            for key, state_data in data.items()
        }

    async def _save_user_states(self) -> None:
        await self._store.write(serialize_states(self.user_states))

    def get_user_key(self, user_id: str, guild_id: str) -> str:
        """
        Builds the storage key for a user in a guild.

        Returns:
            "{guild_id}-{user_id}"
        """
        return f"{guild_id}-{user_id}"

    def _get_or_create(self, user_id: str, guild_id: str) -> UserState:
        key = self.get_user_key(user_id, guild_id)
        state = self.user_states.get(key)

        if state is None:
            logger.info("Creating new user state")
            state = UserState(user_id=user_id, guild_id=guild_id)
            self.user_states[key] = state

        return state

    async def get_user_state(self, user_id: str, guild_id: str) -> Optional[UserState]:
        """
        Retrieves a user's onboarding state.

        Returns:
            UserState or None if the user has no state in this guild
        """
        await self.initialize()
        return self.user_states.get(self.get_user_key(user_id, guild_id))

    async def update_user_state(
        self,
        user_id: str,
        guild_id: str,
        updates: Union[UserStatePatch, Mapping[str, Any], None] = None,
    ) -> UserState:
        """
        Creates or updates a user's state.

        Args:
            user_id: Discord user ID
            guild_id: Discord guild ID
            updates: Fields to overwrite; fields not set are left untouched

        Returns:
            The updated UserState

        Raises:
            InvalidPatchError: If `updates` has unknown or ill-typed fields
            StorageError: If the file cannot be written
        """
        patch = UserStatePatch.coerce(updates)
        await self.initialize()

        with LogContext(user_id=user_id, guild_id=guild_id):
            async with self._lock:
                state = self._get_or_create(user_id, guild_id)
                state.apply_patch(patch)
                await self._save_user_states()

            logger.debug(
                "User state updated",
                extra={"fields": sorted(patch.changes())}
            )

        return state

    async def set_onboarding_step(
        self,
        user_id: str,
        guild_id: str,
        step: Union[OnboardingStep, str],
    ) -> UserState:
        """
        Sets the user's current step directly, without running the
        completion side effects.
        """
        return await self.update_user_state(user_id, guild_id, {"onboardingStep": step})

    async def mark_step_complete(
        self,
        user_id: str,
        guild_id: str,
        step: Union[OnboardingStep, str],
    ) -> UserState:
        """
        Completes a step for the user, creating their state if needed.

        Unknown steps leave the state unchanged but still persist a newly
        created record.
        """
        await self.initialize()

        with LogContext(user_id=user_id, guild_id=guild_id, step=str(getattr(step, "value", step))):
            async with self._lock:
                state = self._get_or_create(user_id, guild_id)
                previous = state.onboarding_step
                state.complete_step(step)
                await self._save_user_states()

            if state.onboarding_step != previous:
                logger.info(f"Onboarding step advanced: {previous} -> {state.onboarding_step}")

        return state

    async def get_guild_user_states(self, guild_id: str) -> List[UserState]:
        """
        Returns every state belonging to a guild, in insertion order.
        """
        await self.initialize()
        return [state for state in self.user_states.values() if state.guild_id == guild_id]

    async def delete_user_state(self, user_id: str, guild_id: str) -> None:
        """
        Removes a user's state. Missing states are not an error.
        """
        await self.initialize()

        async with self._lock:
            removed = self.user_states.pop(self.get_user_key(user_id, guild_id), None)
            await self._save_user_states()

        if removed is not None:
            with LogContext(user_id=user_id, guild_id=guild_id):
                logger.info("User state deleted")

    async def get_users_needing_reminders(
        self,
        guild_id: str,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
    ) -> List[UserState]:
        """
        Finds guild members who should be reminded to accept the rules.

        A state qualifies when the rules are not acknowledged, fewer than
        `max_reminders` reminders were sent, and onboarding started at least
        24 hours ago. The reminder counter is not touched.
        """
        await self.initialize()

        now = utc_now()
        return [
            state
            for state in self.user_states.values()
            if state.guild_id == guild_id
            and not state.rules_acknowledged
            and state.reminders_sent < max_reminders
            and has_elapsed(state.onboarding_started_at, REMINDER_THRESHOLD, now=now)
        ]
