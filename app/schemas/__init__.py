from app.schemas.reveal import (
    RevealContinueSchema,
    RevealLineSchema,
    RevealOutSchema,
    RevealSelectSchema,
)
from app.schemas.scenario import (
    EmotionalContentSchema,
    RationalSolutionSchema,
    ScenarioSchema,
    ScenarioSummarySchema,
    TarotSchema,
)
from app.schemas.subscription import SubscriptionRequestSchema, SubscriptionResultSchema

__all__ = [
    "EmotionalContentSchema",
    "RationalSolutionSchema",
    "RevealContinueSchema",
    "RevealLineSchema",
    "RevealOutSchema",
    "RevealSelectSchema",
    "ScenarioSchema",
    "ScenarioSummarySchema",
    "SubscriptionRequestSchema",
    "SubscriptionResultSchema",
    "TarotSchema",
]
