"""Build engine: runs the aggregate -> calculate -> validate pipeline.

Holds the static game data and ruleset configuration so callers don't
have to thread them through every call. The engine keeps no character
state and caches nothing; every call recomputes from the snapshot it is
given.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from sr4_planner.engine.bonus_aggregator import AggregateModifiers, aggregate
from sr4_planner.engine.build_config import BuildConfig
from sr4_planner.engine.build_validator import ValidationResult, validate
from sr4_planner.models.character import Character
from sr4_planner.models.derived_stats import CharacterStats, calculate_all, dice_pool
from sr4_planner.models.game_data import GameData

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Everything the engine derives from one character snapshot."""

    modifiers: AggregateModifiers
    stats: CharacterStats
    validation: ValidationResult

    @property
    def valid(self) -> bool:
        return self.validation.valid


class BuildEngine:
    """Evaluates character snapshots against one game-data table and ruleset.

    Consumes GameData and BuildConfig without modifying either.
    """

    __slots__ = ("_game_data", "_config")

    def __init__(self, game_data: GameData, config: BuildConfig | None = None) -> None:
        self._game_data = game_data
        self._config = config or BuildConfig()

    @classmethod
    def from_json(cls, path: Path, config: BuildConfig | None = None) -> BuildEngine:
        """Load game data from a converted Chummer JSON file."""
        return cls(GameData.from_json(path), config)

    @property
    def game_data(self) -> GameData:
        return self._game_data

    @property
    def config(self) -> BuildConfig:
        return self._config

    def aggregate(self, character: Character) -> AggregateModifiers:
        return aggregate(character, self._game_data)

    def calculate(
        self, character: Character, modifiers: AggregateModifiers | None = None,
    ) -> CharacterStats:
        if modifiers is None:
            modifiers = self.aggregate(character)
        return calculate_all(character, modifiers, self._game_data, self._config)

    def validate(
        self, character: Character, modifiers: AggregateModifiers | None = None,
    ) -> ValidationResult:
        if modifiers is None:
            modifiers = self.aggregate(character)
        return validate(character, self._game_data, modifiers, self._config)

    def dice_pool(self, character: Character, skill: str, attribute: str | None = None) -> int:
        return dice_pool(character, skill, attribute, self.aggregate(character), self._game_data)

    def evaluate(self, character: Character) -> BuildReport:
        """Aggregate once, then derive stats and validate from that aggregate."""
        modifiers = self.aggregate(character)
        report = BuildReport(
            modifiers=modifiers,
            stats=self.calculate(character, modifiers),
            validation=self.validate(character, modifiers),
        )
        logger.debug(
            "build_evaluated",
            character=character.identity.name,
            valid=report.valid,
            qualities=len(character.qualities),
        )
        return report
