"""Exception hierarchy for mixver.

Two families of errors exist:

- Validation errors (E2xx) come from malformed configuration and are
  raised as soon as a mutator, planner or config object is built.
- Lookup errors (E3xx) mean a referenced node or plan step is missing.
  They reach the caller untouched.

A mutator that finds no legal position for a change does not raise; it
returns fewer mutations.

Example:
    try:
        ClusterSettingMutator("sql.txn.mode", [])
    except MutatorConfigError as e:
        print(e.format_verbose())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class ErrorCode(Enum):
    """Stable codes printed in front of every error message."""

    VALIDATION_FAILED = "E201"
    INVALID_CONFIG = "E202"
    INVALID_MUTATOR = "E203"
    INVALID_VERSION = "E204"
    INVALID_PLAN = "E205"

    LOOKUP_FAILED = "E301"
    NODE_NOT_FOUND = "E302"
    ANCHOR_NOT_FOUND = "E303"


@dataclass
class ErrorContext:
    """Where in a plan or configuration an error was detected.

    Attributes:
        mutator_name: Mutator being built or run.
        step_id: Plan step involved.
        node: Node id involved in a topology lookup.
        extra: Anything else worth showing, e.g. the config file path.
    """

    mutator_name: str | None = None
    step_id: int | None = None
    node: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def format_location(self) -> str | None:
        parts = []
        if self.mutator_name:
            parts.append(f"mutator={self.mutator_name}")
        if self.step_id is not None:
            parts.append(f"step={self.step_id}")
        if self.node is not None:
            parts.append(f"node={self.node}")
        return " > ".join(parts) or None


class MixverError(Exception):
    """Base class of every mixver error.

    Subclasses set ``error_code``, ``default_message`` and, where there
    is something useful to say, ``default_suggestions``.
    """

    error_code: ClassVar[ErrorCode]
    default_message: ClassVar[str] = "mixver error"
    default_suggestions: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        message: str | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = list(self.default_suggestions) if suggestions is None else suggestions
        super().__init__(self.message)

    def __str__(self) -> str:
        text = f"[{self.error_code.value}] {self.message}"
        location = self.context.format_location()
        if location:
            text += f" | at {location}"
        return text

    def _detail_lines(self) -> list[str]:
        lines = []
        location = self.context.format_location()
        if location:
            lines.append(f"Location: {location}")
        for key, value in self.context.extra.items():
            lines.append(f"{key}: {value}")
        if self.cause is not None:
            lines.append(f"Caused by: {self.cause}")
        return lines

    def format_verbose(self) -> str:
        """Multi-line rendering with location, cause and suggestions."""
        lines = [f"Error [{self.error_code.value}]: {self.message}"]
        details = self._detail_lines()
        if details:
            lines.append("")
            lines.extend(details)
        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            lines.extend(f"  - {s}" for s in self.suggestions)
        return "\n".join(lines)


class ValidationError(MixverError):
    """A value failed validation; ``field`` and ``value`` say which."""

    error_code = ErrorCode.VALIDATION_FAILED
    default_message = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        value: Any = None,
        expected: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(message=message, **kwargs)

    def __str__(self) -> str:
        text = super().__str__()
        if self.field:
            text += f" (field: {self.field})"
        return text

    def _detail_lines(self) -> list[str]:
        lines = super()._detail_lines()
        if self.expected:
            lines.append(f"Expected: {self.expected}")
        return lines


class ConfigValidationError(ValidationError):
    """The configuration file or environment holds an invalid value."""

    error_code = ErrorCode.INVALID_CONFIG
    default_message = "Invalid configuration"
    default_suggestions = (
        "Run 'mixver settings' to check the configuration",
        "Each cluster setting may appear only once in cluster_settings",
    )


class MutatorConfigError(ValidationError):
    error_code = ErrorCode.INVALID_MUTATOR
    default_message = "Invalid mutator configuration"
    default_suggestions = (
        "Provide at least one possible value for the cluster setting",
        "max_changes must be a positive integer",
    )


class VersionParseError(ValidationError):
    error_code = ErrorCode.INVALID_VERSION
    default_message = "Invalid version string"
    default_suggestions = ("Versions look like 'v24.1.3' or '23.2.0-beta.1'",)


class PlanConfigError(ValidationError):
    """The planner was asked for a plan it cannot build."""

    error_code = ErrorCode.INVALID_PLAN
    default_message = "Invalid plan configuration"
    default_suggestions = (
        "Provide at least two versions, oldest first",
        "Provide at least one node",
    )


class PlanLookupError(MixverError):
    error_code = ErrorCode.LOOKUP_FAILED
    default_message = "Lookup failed"


class NodeNotFoundError(PlanLookupError, LookupError):
    """A node is not part of the topology snapshot it was looked up in."""

    error_code = ErrorCode.NODE_NOT_FOUND
    default_message = "Node not found in context"


class MutationApplyError(PlanLookupError):
    """A mutation references an anchor step that is not in the plan."""

    error_code = ErrorCode.ANCHOR_NOT_FOUND
    default_message = "Mutation anchor not found in plan"
    default_suggestions = (
        "Apply mutations against the plan they were generated from",
        "Apply the output of one mutator before running the next",
    )
