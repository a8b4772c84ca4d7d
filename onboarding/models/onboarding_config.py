"""
onboarding/models/onboarding_config.py

Purpose: Per-guild onboarding configuration

- Welcome/rules channel routing
- Welcome and rules copy (Spanish defaults)
- Feature toggles and reminder settings
- Advisory validation and the message catalog
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Union

from pydantic import Field

from onboarding.models.base import JsonPatch, JsonRecord
from onboarding.utils.constants import (
    DEFAULT_MAX_REMINDERS,
    DEFAULT_REMINDER_INTERVAL_HOURS,
    DEFAULT_RULES_CONTENT,
    DEFAULT_WELCOME_MESSAGE,
    ERROR_GUILD_ID_REQUIRED,
    ERROR_MAX_REMINDERS_RANGE,
    ERROR_REMINDER_INTERVAL_RANGE,
    ERROR_RULES_CONTENT_EMPTY,
    ERROR_WELCOME_MESSAGE_EMPTY,
    MAX_MAX_REMINDERS,
    MAX_REMINDER_INTERVAL_HOURS,
    MIN_MAX_REMINDERS,
    MIN_REMINDER_INTERVAL_HOURS,
    ONBOARDING_MESSAGES,
)


@dataclass
class ConfigValidationResult:
    """
    Outcome of OnboardingConfig.validate(). Errors keep the order in which
    the checks run.
    """
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _in_range(value, low: int, high: int) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return low <= value <= high


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


class OnboardingConfig(JsonRecord):
    """
    Onboarding settings for one guild.

    Nothing is validated on assignment or update; call validate() and decide
    what to do with the result.
    """

    guild_id: str = Field(alias="guildId")
    welcome_channel_id: Optional[str] = Field(default=None, alias="welcomeChannelId")
    rules_channel_id: Optional[str] = Field(default=None, alias="rulesChannelId")
    welcome_message: str = Field(default=DEFAULT_WELCOME_MESSAGE, alias="welcomeMessage")
    rules_content: str = Field(default=DEFAULT_RULES_CONTENT, alias="rulesContent")
    github_integration_enabled: bool = Field(default=True, alias="githubIntegrationEnabled")
    tutorial_enabled: bool = Field(default=True, alias="tutorialEnabled")
    reminder_interval_hours: int = Field(default=DEFAULT_REMINDER_INTERVAL_HOURS, alias="reminderIntervalHours")
    max_reminders: int = Field(default=DEFAULT_MAX_REMINDERS, alias="maxReminders")

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "OnboardingConfig":
        """
        Rebuilds a config from stored JSON: defaults first, then every key in
        `data` copied over without validation.
        """
        config = cls.model_construct(guild_id=data.get("guildId", data.get("guild_id")))
        config.overwrite(data)
        return config

    @staticmethod
    def get_default_welcome_message() -> str:
        return DEFAULT_WELCOME_MESSAGE

    @staticmethod
    def get_default_rules_content() -> str:
        return DEFAULT_RULES_CONTENT

    def update(self, patch: Union["OnboardingConfigPatch", Mapping[str, Any], None]) -> "OnboardingConfig":
        """Shallow overwrite with the fields set on `patch`. Does not validate."""
        for name, value in OnboardingConfigPatch.coerce(patch).changes().items():
            setattr(self, name, value)
        return self

    def validate(self) -> ConfigValidationResult:
        """
        Runs every check and collects all violations.

        Order: guild ID, reminder interval, max reminders, welcome message,
        rules content.
        """
        errors = []

        if not self.guild_id:
            errors.append(ERROR_GUILD_ID_REQUIRED)

        if not _in_range(self.reminder_interval_hours, MIN_REMINDER_INTERVAL_HOURS, MAX_REMINDER_INTERVAL_HOURS):
            errors.append(ERROR_REMINDER_INTERVAL_RANGE)

        if not _in_range(self.max_reminders, MIN_MAX_REMINDERS, MAX_MAX_REMINDERS):
            errors.append(ERROR_MAX_REMINDERS_RANGE)

        if _is_blank(self.welcome_message):
            errors.append(ERROR_WELCOME_MESSAGE_EMPTY)

        if _is_blank(self.rules_content):
            errors.append(ERROR_RULES_CONTENT_EMPTY)

        return ConfigValidationResult(is_valid=not errors, errors=errors)

    def get_messages(self) -> Dict[str, str]:
        """
        Localized strings for each onboarding interaction.

        Static catalog; independent of welcome_message and rules_content.
        """
        return dict(ONBOARDING_MESSAGES)


class OnboardingConfigPatch(JsonPatch):
    """
    Partial update for an OnboardingConfig. Ranges are not enforced here.
    """

    NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"welcome_channel_id", "rules_channel_id"})

    welcome_channel_id: Optional[str] = Field(default=None, alias="welcomeChannelId")
    rules_channel_id: Optional[str] = Field(default=None, alias="rulesChannelId")
    welcome_message: Optional[str] = Field(default=None, alias="welcomeMessage")
    rules_content: Optional[str] = Field(default=None, alias="rulesContent")
    github_integration_enabled: Optional[bool] = Field(default=None, alias="githubIntegrationEnabled")
    tutorial_enabled: Optional[bool] = Field(default=None, alias="tutorialEnabled")
    reminder_interval_hours: Optional[int] = Field(default=None, alias="reminderIntervalHours")
    max_reminders: Optional[int] = Field(default=None, alias="maxReminders")
