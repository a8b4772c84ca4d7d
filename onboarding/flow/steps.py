"""
onboarding/flow/steps.py

Purpose: Defines the onboarding steps

- Enum for each stage of the onboarding flow
  (WELCOME, RULES, GITHUB, TUTORIAL, COMPLETE)
- Completion table: which step a user lands on after completing one
- Metadata for each step (display name, position)
"""

from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass


class OnboardingStep(str, Enum):
    """
    Stages a guild member passes through, in order.
    """

    WELCOME = "welcome"
    RULES = "rules"
    GITHUB = "github"
    TUTORIAL = "tutorial"
    COMPLETE = "complete"


@dataclass
class StepMetadata:
    """
    Metadata associated with each onboarding step.
    """
    name: OnboardingStep
    display_name: str
    step_number: Optional[int] = None  # For progress tracking
    total_steps: int = 4
    optional: bool = False
    description: str = ""


STEP_METADATA: Dict[OnboardingStep, StepMetadata] = {
    OnboardingStep.WELCOME: StepMetadata(
        name=OnboardingStep.WELCOME,
        display_name="Bienvenida",
        step_number=0,
        description="Entry point - welcome message sent on join"
    ),
    OnboardingStep.RULES: StepMetadata(
        name=OnboardingStep.RULES,
        display_name="Reglas",
        step_number=1,
        description="Read and accept the server rules"
    ),
    OnboardingStep.GITHUB: StepMetadata(
        name=OnboardingStep.GITHUB,
        display_name="GitHub",
        step_number=2,
        optional=True,
        description="Connect a GitHub account or skip"
    ),
    OnboardingStep.TUTORIAL: StepMetadata(
        name=OnboardingStep.TUTORIAL,
        display_name="Tutorial",
        step_number=3,
        optional=True,
        description="Short walkthrough of the server"
    ),
    OnboardingStep.COMPLETE: StepMetadata(
        name=OnboardingStep.COMPLETE,
        display_name="Completado",
        step_number=4,
        description="Onboarding finished"
    ),
}


# Step reached after completing the key step. Only these three steps can be
# completed; the current step of the record is not checked.
STEP_COMPLETIONS: Dict[OnboardingStep, OnboardingStep] = {
    OnboardingStep.RULES: OnboardingStep.GITHUB,
    OnboardingStep.GITHUB: OnboardingStep.TUTORIAL,
    OnboardingStep.TUTORIAL: OnboardingStep.COMPLETE,
}


def parse_step(value) -> Optional[OnboardingStep]:
    """
    Converts a raw value to an OnboardingStep.

    Returns:
        The matching step, or None if the value is not a known step
    """
    if isinstance(value, OnboardingStep):
        return value
    try:
        return OnboardingStep(value)
    except ValueError:
        return None


def get_next_step(step: OnboardingStep) -> Optional[OnboardingStep]:
    """
    Returns the step reached after completing `step`, or None if `step`
    cannot be completed.
    """
    return STEP_COMPLETIONS.get(step)


def get_step_metadata(step: OnboardingStep) -> StepMetadata:
    """
    Retrieves metadata for a given step.
    """
    return STEP_METADATA.get(step, StepMetadata(
        name=step,
        display_name=str(step),
        description="Unknown step"
    ))


def get_progress_message(step: OnboardingStep) -> str:
    """
    Generates a progress message for the current step.

    Returns:
        Progress message (e.g., "📍 Paso 2 de 4"), empty for the welcome step
    """
    metadata = get_step_metadata(step)
    if metadata.step_number and metadata.step_number > 0:
        return f"📍 Paso {metadata.step_number} de {metadata.total_steps}"
    return ""
