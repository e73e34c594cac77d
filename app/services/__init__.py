from app.services.catalog import ScenarioCatalog, get_catalog
from app.services.reveal import RevealMachine, RevealSessionStore, reveal_step
from app.services.subscription import SubscriptionService, validate_subscription

__all__ = [
    "RevealMachine",
    "RevealSessionStore",
    "ScenarioCatalog",
    "SubscriptionService",
    "get_catalog",
    "reveal_step",
    "validate_subscription",
]
