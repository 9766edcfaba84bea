"""
Pipeline options for theory and punishment generation.

Options are read from a YAML file (see config/centauro.yml) and validated
against centauro.config_validator.SCHEMA. Any problem raises
ConfigurationError before a pipeline touches its input.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .config_validator import validate_options
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4
DEFAULT_ENGINE_PATH = os.getenv("STOCKFISH_PATH", "/usr/local/bin/stockfish")

CONFIG_CANDIDATES = (
    Path("centauro.yml"),
    Path("config/centauro.yml"),
)


@dataclass(frozen=True)
class TheoryOptions:
    """Thresholds for main-line selection."""

    min_frequency: float
    max_depth: int
    min_samples_per_node: int


@dataclass(frozen=True)
class PunishmentOptions:
    """Blunder detection and punishment-line construction settings."""

    # Evaluation drop (centipawns) that qualifies as a blunder
    eval_drop_threshold: float
    movetime_ms: int
    max_branch_length: int
    # Side whose drops are detected: "white" or "black"
    perspective: str = "white"


@dataclass(frozen=True)
class CentauroOptions:
    theory: TheoryOptions
    punishment: PunishmentOptions
    concurrency: int = DEFAULT_CONCURRENCY
    opening_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CentauroOptions":
        """Build validated options from a raw mapping."""
        result = validate_options(data)
        if not result.is_valid:
            raise ConfigurationError("Invalid CENTAURO options", result.errors)
        for warning in result.warnings:
            logger.warning("Ignoring option: %s", warning)

        theory = data["theory"]
        punishment = data["punishment"]
        return cls(
            theory=TheoryOptions(
                min_frequency=float(theory["min_frequency"]),
                max_depth=int(theory["max_depth"]),
                min_samples_per_node=int(theory["min_samples_per_node"]),
            ),
            punishment=PunishmentOptions(
                eval_drop_threshold=float(punishment["eval_drop_threshold"]),
                movetime_ms=int(punishment["movetime_ms"]),
                max_branch_length=int(punishment["max_branch_length"]),
                perspective=punishment.get("perspective", "white"),
            ),
            concurrency=int(data.get("concurrency", DEFAULT_CONCURRENCY)),
            opening_id=data.get("opening_id"),
        )

    @classmethod
    def from_yaml(cls, yaml_path: Optional[Union[str, Path]] = None) -> "CentauroOptions":
        """
        Load options from a YAML file.

        Args:
            yaml_path: Path to the options file. If None, searches the usual
                locations (centauro.yml, config/centauro.yml).

        Raises:
            ConfigurationError: the file is missing, unreadable or invalid.
        """
        if yaml_path is None:
            for candidate in CONFIG_CANDIDATES:
                if candidate.exists():
                    yaml_path = candidate
                    break
        if yaml_path is None:
            raise ConfigurationError("No CENTAURO options file found")

        path = Path(yaml_path)
        if not path.exists():
            raise ConfigurationError(f"Options file not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Could not read options file {path}: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theory": {
                "min_frequency": self.theory.min_frequency,
                "max_depth": self.theory.max_depth,
                "min_samples_per_node": self.theory.min_samples_per_node,
            },
            "punishment": {
                "eval_drop_threshold": self.punishment.eval_drop_threshold,
                "movetime_ms": self.punishment.movetime_ms,
                "max_branch_length": self.punishment.max_branch_length,
                "perspective": self.punishment.perspective,
            },
            "concurrency": self.concurrency,
            "opening_id": self.opening_id,
        }


def resolve_options(options: Union[CentauroOptions, Mapping[str, Any], None]) -> CentauroOptions:
    """Accept ready options or a raw mapping; anything else is a ConfigurationError."""
    if isinstance(options, CentauroOptions):
        result = validate_options(options.to_dict())
        if not result.is_valid:
            raise ConfigurationError("Invalid CENTAURO options", result.errors)
        return options
    if options is None:
        raise ConfigurationError("CENTAURO options are missing")
    return CentauroOptions.from_dict(options)


__all__ = [
    "DEFAULT_CONCURRENCY",
    "DEFAULT_ENGINE_PATH",
    "TheoryOptions",
    "PunishmentOptions",
    "CentauroOptions",
    "resolve_options",
]
