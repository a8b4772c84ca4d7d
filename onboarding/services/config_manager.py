"""
onboarding/services/config_manager.py

Purpose: Guild onboarding configuration management

- Loads and persists per-guild OnboardingConfig records
- Creates default configs on first use
- Logs (but never blocks) saving an invalid config
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from onboarding.core.config import settings
from onboarding.core.logging import get_logger, LogContext
from onboarding.db.json_store import JsonDocumentStore
from onboarding.models.onboarding_config import OnboardingConfig, OnboardingConfigPatch

logger = get_logger(__name__)


class OnboardingConfigManager:
    """
    Stores one OnboardingConfig per guild in a single JSON file.

    The lock ties a manager to one event loop; create a manager per loop.
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, os.PathLike]] = None,
        filename: Optional[str] = None,
    ):
        self.data_dir = Path(data_dir or settings.ONBOARDING_DATA_DIR)
        self.configs_file = self.data_dir / (filename or settings.ONBOARDING_CONFIGS_FILENAME)
        self.configs: Dict[str, OnboardingConfig] = {}
        self.initialized = False
        self._store = JsonDocumentStore(self.configs_file)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self.initialized:
            return

        async with self._lock:
            if self.initialized:
                return
            try:
                await self._store.ensure_directory()
                data = await self._store.read()
            except Exception:
                logger.exception("Error initializing OnboardingConfigManager")
                raise
            self.configs = {
                guild_id: OnboardingConfig.from_json(config_data)
                for guild_id, config_data in data.items()
            }
            self.initialized = True

        logger.info(
            f"OnboardingConfigManager initialized with {len(self.configs)} configs",
            extra={"path": str(self.configs_file)}
        )

    async def _save_configs(self) -> None:
        await self._store.write(
            {guild_id: config.to_json() for guild_id, config in self.configs.items()}
        )

    async def get_config(self, guild_id: str) -> Optional[OnboardingConfig]:
        await self.initialize()
        return self.configs.get(guild_id)

    async def get_or_create_config(self, guild_id: str) -> OnboardingConfig:
        """
        Returns the guild's config, creating and persisting defaults if absent.
        """
        await self.initialize()

        async with self._lock:
            config = self.configs.get(guild_id)
            if config is None:
                with LogContext(guild_id=guild_id):
                    logger.info("Creating default onboarding config")
                config = OnboardingConfig(guild_id=guild_id)
                self.configs[guild_id] = config
                await self._save_configs()

        return config

    async def save_config(self, config: OnboardingConfig) -> OnboardingConfig:
        """
        Persists `config` under its guild ID.

        Invalid configs are saved anyway; the validation errors are logged.
        """
        await self.initialize()

        with LogContext(guild_id=config.guild_id):
            result = config.validate()
            if not result.is_valid:
                logger.warning(f"Saving invalid onboarding config: {'; '.join(result.errors)}")

            async with self._lock:
                self.configs[config.guild_id] = config
                await self._save_configs()

        return config

    async def update_config(
        self,
        guild_id: str,
        updates: Union[OnboardingConfigPatch, Mapping[str, Any], None] = None,
    ) -> OnboardingConfig:
        """
        Applies `updates` to the guild's config (created if absent) and saves it.

        Raises:
            InvalidPatchError: If `updates` has unknown or ill-typed fields
        """
        patch = OnboardingConfigPatch.coerce(updates)
        await self.initialize()

        config = self.configs.get(guild_id) or OnboardingConfig(guild_id=guild_id)
        config.update(patch)
        return await self.save_config(config)

    async def delete_config(self, guild_id: str) -> None:
        await self.initialize()

        async with self._lock:
            removed = self.configs.pop(guild_id, None)
            await self._save_configs()

        if removed is not None:
            with LogContext(guild_id=guild_id):
                logger.info("Onboarding config deleted")
