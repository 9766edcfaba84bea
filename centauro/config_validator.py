"""
Schema validation for CENTAURO pipeline options.

Validation collects every problem instead of stopping at the first one, so a
broken configuration file can be fixed in a single pass:

    from centauro.config_validator import validate_options

    result = validate_options(yaml.safe_load(path.read_text()))
    if not result.is_valid:
        for error in result.errors:
            print(f"  - {error}")
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

# Per-field constraints; "required" fields have no default.
SCHEMA: Dict[str, Dict[str, Dict[str, Any]]] = {
    "theory": {
        "min_frequency": {"type": float, "min": 0.0, "max": 1.0, "required": True},
        "max_depth": {"type": int, "min": 0, "max": 200, "required": True},
        "min_samples_per_node": {"type": int, "min": 1, "max": 1_000_000, "required": True},
    },
    "punishment": {
        "eval_drop_threshold": {"type": float, "min": 0.0, "max": 100_000.0, "required": True},
        "movetime_ms": {"type": int, "min": 1, "max": 600_000, "required": True},
        "max_branch_length": {"type": int, "min": 1, "max": 100, "required": True},
        "perspective": {"type": str, "choices": ("white", "black"), "required": False},
    },
}

TOP_LEVEL = {
    "concurrency": {"type": int, "min": 1, "max": 256, "required": False},
    "opening_id": {"type": str, "required": False, "nullable": True},
}


@dataclass
class ValidationResult:
    """Result of options validation."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _check_value(name: str, value: Any, constraints: Dict[str, Any], errors: List[str]) -> None:
    expected = constraints["type"]
    if value is None:
        if not constraints.get("nullable"):
            errors.append(f"{name}: must not be null")
        return

    # bool is an int subclass; never accept it for numeric fields
    if isinstance(value, bool) and expected is not bool:
        errors.append(f"{name}: expected {expected.__name__}, got bool")
        return
    if expected is float:
        if not isinstance(value, (int, float)):
            errors.append(f"{name}: expected float, got {type(value).__name__}")
            return
    elif not isinstance(value, expected):
        errors.append(f"{name}: expected {expected.__name__}, got {type(value).__name__}")
        return

    if "min" in constraints and value < constraints["min"]:
        errors.append(f"{name}: {value} is below minimum {constraints['min']}")
    if "max" in constraints and value > constraints["max"]:
        errors.append(f"{name}: {value} is above maximum {constraints['max']}")
    if "choices" in constraints and value not in constraints["choices"]:
        choices = ", ".join(constraints["choices"])
        errors.append(f"{name}: {value!r} is not one of {choices}")


def validate_options(data: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Validate a raw options mapping (as loaded from YAML) against SCHEMA."""
    errors: List[str] = []
    warnings: List[str] = []

    if data is None:
        return ValidationResult(is_valid=False, errors=["Options are missing"])
    if not isinstance(data, Mapping):
        return ValidationResult(
            is_valid=False,
            errors=[f"Options must be a mapping, got {type(data).__name__}"],
        )

    for section, fields in SCHEMA.items():
        section_data = data.get(section)
        if section_data is None:
            errors.append(f"Missing section: {section}")
            continue
        if not isinstance(section_data, Mapping):
            errors.append(f"Section {section} must be a mapping")
            continue
        for field_name, constraints in fields.items():
            if field_name not in section_data:
                if constraints.get("required"):
                    errors.append(f"Missing field: {section}.{field_name}")
                continue
            _check_value(f"{section}.{field_name}", section_data[field_name], constraints, errors)
        for unknown in sorted(set(section_data) - set(fields)):
            warnings.append(f"Unknown field: {section}.{unknown}")

    for field_name, constraints in TOP_LEVEL.items():
        if field_name in data:
            _check_value(field_name, data[field_name], constraints, errors)

    known = set(SCHEMA) | set(TOP_LEVEL)
    for unknown in sorted(set(data) - known):
        warnings.append(f"Unknown section: {unknown}")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


__all__ = ["SCHEMA", "TOP_LEVEL", "ValidationResult", "validate_options"]
