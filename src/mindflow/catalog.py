"""FlowCatalog — loads flow definitions and support constants from ``flows/``.

The catalog is loaded once at startup and hands out registries, hook sets
and ready-to-drive controllers by definition id.

Layout::

    flows/
      mood_checkin.yaml            # one FlowDefinition per file
      assessment.yaml
      const/
        crisis_keywords.yaml       # CrisisKeywords
        low_moods.yaml             # LowMoodConfig
        support_resources.yaml     # list[SupportResource]

Usage::

    catalog = FlowCatalog()         # defaults to flows/ relative to repo root
    catalog.load()

    flow = catalog.create_flow("mood_checkin")
    flow.select("sad")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from mindflow.engine import FlowController
from mindflow.hooks import CrisisKeywordDetector, LowMoodSupportSuggester, SideEffectHook
from mindflow.models.flow import FlowSnapshot
from mindflow.models.schema import (
    CrisisKeywords,
    FlowDefinition,
    LowMoodConfig,
    SupportResource,
)
from mindflow.models.step import step_mapper
from mindflow.registry import StepRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def default_flows_dir() -> Path:
    """``MINDFLOW_FLOWS_DIR`` if set, else ``flows/`` at the repo root."""
    env = os.getenv("MINDFLOW_FLOWS_DIR")
    if env:
        return Path(env)
    return find_repo_root() / "flows"


# ---------------------------------------------------------------------------
# FlowCatalog
# ---------------------------------------------------------------------------

class FlowCatalog:
    """Loads every flow definition under ``flows/`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        definitions        — dict[flow_id, FlowDefinition]
        crisis_keywords    — CrisisKeywords
        low_moods          — LowMoodConfig
        support_resources  — list[SupportResource], ordered by priority
    """

    def __init__(self, flows_dir: str | Path | None = None) -> None:
        self._base = Path(flows_dir) if flows_dir is not None else default_flows_dir()

        # Populated by load()
        self.definitions: dict[str, FlowDefinition] = {}
        self.crisis_keywords: CrisisKeywords | None = None
        self.low_moods: LowMoodConfig | None = None
        self.support_resources: list[SupportResource] = []
        self._registries: dict[str, StepRegistry] = {}

    @property
    def base_dir(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse all YAML files under the flows directory.

        Raises ``FileNotFoundError`` if expected constant files are missing
        and ``ValueError`` for malformed or duplicate definitions.
        """
        self._load_constants()
        self._load_definitions()
        logger.info(
            "FlowCatalog loaded: %d flows, %d crisis patterns, %d support resources",
            len(self.definitions),
            len(self.crisis_keywords.patterns),
            len(self.support_resources),
        )

    def _load_constants(self) -> None:
        """Load flows/const/*.yaml into typed models."""
        const_dir = self._base / "const"

        self.crisis_keywords = CrisisKeywords(**load_yaml(const_dir / "crisis_keywords.yaml"))
        self.low_moods = LowMoodConfig(**load_yaml(const_dir / "low_moods.yaml"))

        resources = [SupportResource(**raw) for raw in load_yaml(const_dir / "support_resources.yaml")]
        self.support_resources = sorted(resources, key=lambda r: r.priority)

    def _load_definitions(self) -> None:
        """Load flows/*.yaml, parsing each step through ``step_mapper``."""
        for path in sorted(self._base.glob("*.yaml")):
            raw = load_yaml(path)
            steps = []
            for step_dict in raw.get("steps", []):
                kind = step_dict.get("kind")
                cls = step_mapper.get(kind)
                if cls is None:
                    raise ValueError(f"Unknown step kind '{kind}' in {path.name}")
                steps.append(cls(**step_dict))

            definition = FlowDefinition(**{**raw, "steps": steps})
            if definition.flow_id in self.definitions:
                raise ValueError(f"Duplicate flow_id '{definition.flow_id}' in {path.name}")

            self.definitions[definition.flow_id] = definition
            self._registries[definition.flow_id] = StepRegistry.from_definition(definition)
            logger.debug("Loaded flow '%s' (%d steps)", definition.flow_id, len(steps))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_definition(self, definition_id: str) -> FlowDefinition:
        """Return the flow definition.  Raises ``KeyError`` if not found."""
        if definition_id not in self.definitions:
            raise KeyError(f"Unknown flow definition: {definition_id}")
        return self.definitions[definition_id]

    def get_registry(self, definition_id: str) -> StepRegistry:
        self.get_definition(definition_id)
        return self._registries[definition_id]

    def build_hooks(self, definition: FlowDefinition) -> list[SideEffectHook]:
        """Instantiate the side-effect hooks a definition names."""
        hooks: list[SideEffectHook] = []
        for name in definition.hooks:
            if name == "crisis_keywords":
                hooks.append(
                    CrisisKeywordDetector.from_config(self.crisis_keywords, self.support_resources)
                )
            elif name == "low_mood_support":
                hooks.append(
                    LowMoodSupportSuggester.from_config(self.low_moods, self.support_resources)
                )
        return hooks

    # ------------------------------------------------------------------
    # Controllers
    # ------------------------------------------------------------------

    def create_flow(self, definition_id: str, *, flow_id: str | None = None) -> FlowController:
        """Start a new controller for ``definition_id``."""
        definition = self.get_definition(definition_id)
        return FlowController(
            self._registries[definition_id],
            flow_id=flow_id,
            hooks=self.build_hooks(definition),
        )

    def restore_flow(self, definition_id: str, snapshot: FlowSnapshot) -> FlowController:
        """Rebuild a controller for ``definition_id`` from a persisted snapshot."""
        definition = self.get_definition(definition_id)
        return FlowController.restore(
            self._registries[definition_id],
            snapshot,
            hooks=self.build_hooks(definition),
        )
