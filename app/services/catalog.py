"""Static scenario catalog: loaded once from app/data/scenarios.json, read-only afterwards."""
import json
import logging
from functools import lru_cache
from pathlib import Path

from app.core.config import APP_DIR
from app.schemas.scenario import ScenarioSchema, ScenarioSummarySchema

logger = logging.getLogger(__name__)

CATALOG_PATH = APP_DIR / "data" / "scenarios.json"


class ScenarioCatalog:
    """Ordered, immutable collection of scenarios."""

    def __init__(self, scenarios: list[ScenarioSchema], version: int = 1):
        ids = [s.id for s in scenarios]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate scenario id in catalog")
        self.version = version
        self._scenarios = tuple(scenarios)
        self._by_id = {s.id: s for s in scenarios}

    @classmethod
    def from_file(cls, path: Path) -> "ScenarioCatalog":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        scenarios = [ScenarioSchema.model_validate(item) for item in data["scenarios"]]
        logger.info("Loaded %d scenarios from %s (version %s)", len(scenarios), path, data.get("version"))
        return cls(scenarios, version=int(data.get("version", 1)))

    def __len__(self) -> int:
        return len(self._scenarios)

    def __iter__(self):
        return iter(self._scenarios)

    def get(self, scenario_id: str) -> ScenarioSchema | None:
        return self._by_id.get(scenario_id)

    def summaries(self) -> list[ScenarioSummarySchema]:
        return [ScenarioSummarySchema(id=s.id, category=s.category, question=s.question) for s in self._scenarios]


@lru_cache
def get_catalog() -> ScenarioCatalog:
    return ScenarioCatalog.from_file(CATALOG_PATH)
