"""
Configuration Schema.

Typed field declarations used by both the loader configuration and the
per-module settings stores.

Key features:
- Field definitions with defaults and constraints
- Validation of single values and whole sections
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Raised when a field declaration is inconsistent."""

    pass


class ValidationError(SchemaError):
    """Raised when a value does not satisfy its field."""

    pass


_SIZED = (str, list)
_NUMERIC = (int, float)


@dataclass
class ConfigField:
    """
    One declared configuration field.

    Attributes:
        type_: Expected value type
        default: Value used when the field is absent
        description: Rendered as a comment in generated files
        min: Lower bound (value for numbers, length for str/list)
        max: Upper bound (value for numbers, length for str/list)
        choices: Allowed values
    """

    type_: type
    default: Any
    description: str = ""
    min: Any = None
    max: Any = None
    choices: list[Any] | None = None

    def __post_init__(self):
        if not self._is_type(self.default):
            raise SchemaError(
                f"Default {self.default!r} is not a {self.type_.__name__}"
            )
        bounded = self.min is not None or self.max is not None
        if bounded and self.type_ not in _NUMERIC + _SIZED:
            raise SchemaError(f"min/max not supported for {self.type_.__name__}")
        if self.choices is not None and self.default not in self.choices:
            raise SchemaError(f"Default {self.default!r} not in {self.choices}")

    def _is_type(self, value: Any) -> bool:
        # ints are accepted where floats are declared, bools never count as ints
        if self.type_ is float and isinstance(value, int) and not isinstance(value, bool):
            return True
        if self.type_ in _NUMERIC and isinstance(value, bool):
            return False
        return isinstance(value, self.type_)

    def validate(self, value: Any) -> None:
        """
        Check a value against the field.

        Raises:
            ValidationError: If the value is rejected
        """
        if not self._is_type(value):
            raise ValidationError(
                f"Expected {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.choices is not None and value not in self.choices:
            raise ValidationError(f"{value!r} not in allowed choices {self.choices}")

        measured = len(value) if self.type_ in _SIZED else value
        if self.min is not None and measured < self.min:
            raise ValidationError(f"{value!r} is below minimum {self.min}")
        if self.max is not None and measured > self.max:
            raise ValidationError(f"{value!r} is above maximum {self.max}")


def validate_section(
    section: dict[str, Any], schema: dict[str, ConfigField], partial: bool = False
) -> None:
    """
    Validate a config section against a schema.

    Args:
        section: Values read from file
        schema: field name -> ConfigField
        partial: Allow fields to be missing (defaults fill them in)

    Raises:
        ValidationError: On unknown, missing or invalid fields
    """
    for key in section:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    for name, spec in schema.items():
        if name not in section:
            if partial:
                continue
            raise ValidationError(f"Missing required field: {name}")
        try:
            spec.validate(section[name])
        except ValidationError as e:
            raise ValidationError(f"Field '{name}': {e}") from e


def defaults(schema: dict[str, ConfigField]) -> dict[str, Any]:
    return {name: spec.default for name, spec in schema.items()}
