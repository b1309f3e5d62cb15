"""
JSON-schema contracts for upstream payloads.
Sub-schemas are registered by name, schemas are compiled once and reused.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

import pydantic
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

from core.exceptions import ConfigurationError, ValidationError
from core.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T", bound=pydantic.BaseModel)


@dataclass(frozen=True)
class SchemaViolation:
    """One failed constraint at one location of a payload."""

    path: str
    constraint: str
    expected: Any
    actual: Any
    message: str = field(default="", compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "constraint": self.constraint,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


def format_path(base: str, parts: Iterable[Any]) -> str:
    """
    Render a location as ``$[0].token.decimals``.

    Args:
        base: Path prefix (``$`` for the document root)
        parts: Keys and indices below the prefix

    Returns:
        Path string
    """
    path = base
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def _iter_refs(schema: Any) -> Iterator[str]:
    if isinstance(schema, dict):
        for key, value in schema.items():
            if key == "$ref" and isinstance(value, str):
                yield value
            else:
                yield from _iter_refs(value)
    elif isinstance(schema, list):
        for item in schema:
            yield from _iter_refs(item)


class CompiledSchema(Generic[T]):
    """A compiled validator bound to the entity model it produces."""

    def __init__(self, validator: Draft202012Validator, model: Type[T]):
        self._validator = validator
        self._model = model

    @property
    def model(self) -> Type[T]:
        return self._model

    def errors(self, payload: Any, path: str = "$") -> List[SchemaViolation]:
        """
        Collect every schema violation of a payload.

        Args:
            payload: Untyped JSON value
            path: Location of the payload inside its enclosing document

        Returns:
            Violations in validator order, empty when the payload is valid
        """
        return [
            SchemaViolation(
                path=format_path(path, error.absolute_path),
                constraint=str(error.validator),
                expected=error.validator_value,
                actual=error.instance,
                message=error.message,
            )
            for error in self._validator.iter_errors(payload)
        ]

    def is_valid(self, payload: Any) -> bool:
        return self._validator.is_valid(payload)

    def validate(self, payload: Any, path: str = "$") -> Tuple[Optional[T], List[SchemaViolation]]:
        """
        Validate a payload and build its entity.

        Args:
            payload: Untyped JSON value
            path: Location used when reporting violations

        Returns:
            ``(entity, [])`` when valid, ``(None, violations)`` otherwise
        """
        violations = self.errors(payload, path)
        if violations:
            return None, violations

        try:
            return self._model.model_validate(payload), []
        except pydantic.ValidationError as e:
            return None, [
                SchemaViolation(
                    path=format_path(path, error["loc"]),
                    constraint=error["type"],
                    expected=error["msg"],
                    actual=error.get("input"),
                    message=error["msg"],
                )
                for error in e.errors()
            ]


class JsonSchemaService:
    """Registry of named sub-schemas and compiler of top-level schemas."""

    def __init__(self):
        self._registry: Registry = Registry()
        self._names: List[str] = []

    def add_schema(self, schema: Dict[str, Any], name: str) -> None:
        """
        Register a sub-schema so later schemas can ``$ref`` it by name.

        Args:
            schema: JSON schema document
            name: Reference name

        Raises:
            ConfigurationError: If the schema is malformed or already registered
        """
        if name in self._names:
            raise ConfigurationError(f"Schema '{name}' is already registered", details={"schema": name})
        self._check(schema, name)

        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        self._registry = self._registry.with_resource(uri=name, resource=resource)
        self._names.append(name)
        logger.debug(f"Registered schema '{name}'")

    def compile(self, schema: Dict[str, Any], model: Type[T], name: Optional[str] = None) -> CompiledSchema[T]:
        """
        Compile a schema against the sub-schemas registered so far.

        Args:
            schema: JSON schema document
            model: Pydantic model built from valid payloads
            name: Name used in error reports

        Returns:
            Compiled schema

        Raises:
            ConfigurationError: If the schema is malformed or references an unregistered schema
        """
        label = name or model.__name__
        self._check(schema, label)
        validator = Draft202012Validator(schema, registry=self._registry)
        return CompiledSchema(validator, model)

    def _check(self, schema: Dict[str, Any], label: str) -> None:
        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            raise ConfigurationError(
                f"Schema '{label}' is invalid: {e.message}",
                details={"schema": label},
            )

        resolver = self._registry.resolver()
        for ref in _iter_refs(schema):
            if ref.startswith("#"):
                continue
            try:
                resolver.lookup(ref)
            except Unresolvable:
                raise ConfigurationError(
                    f"Schema '{label}' references '{ref}' before it was registered",
                    details={"schema": label, "ref": ref, "registered": list(self._names)},
                )


class ValidationErrorFactory:
    """Converts violation records into a single domain error."""

    def from_violations(self, violations: List[SchemaViolation]) -> ValidationError:
        """
        Build a ValidationError describing every violation.

        Args:
            violations: Violation records

        Returns:
            ValidationError carrying the records
        """
        summary = "; ".join(f"{v.path}: {v.message}" for v in violations[:5])
        if len(violations) > 5:
            summary += f"; ... {len(violations) - 5} more"
        return ValidationError(
            f"Validation failed with {len(violations)} violation(s): {summary}",
            violations=violations,
        )
