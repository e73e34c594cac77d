"""Pydantic schemas for the scenario catalog."""
from pydantic import BaseModel, ConfigDict


class TarotSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    keywords: tuple[str, ...]
    image_url: str
    image_prompt: str = ""


class RationalSolutionSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    advice: str
    action_item: str


class EmotionalContentSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str  # long-form, lines separated by "\n"


class ScenarioSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    question: str
    tarot: TarotSchema
    rational_solution: RationalSolutionSchema
    emotional_content: EmotionalContentSchema


class ScenarioSummarySchema(BaseModel):
    """What the selection screen needs; no reading content."""

    id: str
    category: str
    question: str
