"""
onboarding/models/user_state.py

Purpose: Onboarding state of one user in one guild

- Discord user and guild IDs (composite key "{guild_id}-{user_id}")
- Current onboarding step and per-step flags
- Start/completion timestamps and reminder counter
"""

from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Union

from pydantic import Field

from onboarding.core.logging import get_logger
from onboarding.flow.steps import OnboardingStep, get_next_step, parse_step
from onboarding.models.base import JsonPatch, JsonRecord
from onboarding.utils.time_utils import utc_now_iso

logger = get_logger(__name__)


class UserState(JsonRecord):
    """
    Onboarding progress for a single guild member.

    Timestamps are ISO-8601 strings, the same form they take on disk.
    `github_connected`, `github_username` and `reminders_sent` are only ever
    changed by callers through patches.
    """

    user_id: str = Field(alias="userId")
    guild_id: str = Field(alias="guildId")
    onboarding_step: str = Field(default=OnboardingStep.WELCOME.value, alias="onboardingStep")
    rules_acknowledged: bool = Field(default=False, alias="rulesAcknowledged")
    rules_acknowledged_at: Optional[str] = Field(default=None, alias="rulesAcknowledgedAt")
    github_connected: bool = Field(default=False, alias="githubConnected")
    github_username: Optional[str] = Field(default=None, alias="githubUsername")
    tutorial_completed: bool = Field(default=False, alias="tutorialCompleted")
    onboarding_started_at: str = Field(default_factory=utc_now_iso, alias="onboardingStartedAt")
    onboarding_completed_at: Optional[str] = Field(default=None, alias="onboardingCompletedAt")
    reminders_sent: int = Field(default=0, alias="remindersSent")

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "UserState":
        """
        Rebuilds a UserState from stored JSON.

        Defaults are filled first, then every key in `data` is copied over
        as-is. Nothing is validated.
        """
        state = cls.model_construct(
            user_id=data.get("userId", data.get("user_id")),
            guild_id=data.get("guildId", data.get("guild_id")),
        )
        state.overwrite(data)
        return state

    @property
    def key(self) -> str:
        return f"{self.guild_id}-{self.user_id}"

    def apply_patch(self, patch: Union["UserStatePatch", Mapping[str, Any], None]) -> "UserState":
        """Shallow overwrite with the fields set on `patch`."""
        for name, value in UserStatePatch.coerce(patch).changes().items():
            setattr(self, name, value)
        return self

    def complete_step(self, step: Union[OnboardingStep, str]) -> None:
        """
        Marks `step` as complete and advances to the following step.

        The record's current step is not consulted, so completing "tutorial"
        on a fresh record jumps straight to "complete". Steps other than
        rules, github and tutorial are ignored.
        """
        completed = parse_step(step)
        next_step = get_next_step(completed) if completed else None

        if next_step is None:
            logger.debug(f"Ignoring completion of unknown step {step!r} for {self.key}")
            return

        if completed == OnboardingStep.RULES:
            self.rules_acknowledged = True
            self.rules_acknowledged_at = utc_now_iso()
        elif completed == OnboardingStep.TUTORIAL:
            self.tutorial_completed = True
            self.onboarding_completed_at = utc_now_iso()

        self.onboarding_step = next_step.value

    def is_complete(self) -> bool:
        return self.onboarding_step == OnboardingStep.COMPLETE


class UserStatePatch(JsonPatch):
    """
    Partial update for a UserState. Identity fields cannot be patched.
    """

    NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"rules_acknowledged_at", "github_username", "onboarding_completed_at"})

    onboarding_step: Optional[OnboardingStep] = Field(default=None, alias="onboardingStep")
    rules_acknowledged: Optional[bool] = Field(default=None, alias="rulesAcknowledged")
    rules_acknowledged_at: Optional[str] = Field(default=None, alias="rulesAcknowledgedAt")
    github_connected: Optional[bool] = Field(default=None, alias="githubConnected")
    github_username: Optional[str] = Field(default=None, alias="githubUsername")
    tutorial_completed: Optional[bool] = Field(default=None, alias="tutorialCompleted")
    onboarding_started_at: Optional[str] = Field(default=None, alias="onboardingStartedAt")
    onboarding_completed_at: Optional[str] = Field(default=None, alias="onboardingCompletedAt")
    reminders_sent: Optional[int] = Field(default=None, alias="remindersSent", ge=0)


def serialize_states(states: Mapping[str, UserState]) -> Dict[str, Dict[str, Any]]:
    """Composite key -> canonical JSON for every state, preserving order."""
    return {key: state.to_json() for key, state in states.items()}
