"""
modelgen - Validation Policy Resolver
======================================
Decides, per column, whether a validation constraint is declared on the
generated model and renders its message.

Rules are a tagged union keyed by their ``type`` tag. New kinds register
themselves with :func:`register_rule` and are picked up by
:func:`parse_validation_rule` without touching existing rule code.

Per column the resolver is a one-step state machine:

    no rules configured              → SKIPPED
    string-length rule, bounds None  → SKIPPED
    string-length rule, max None     → SKIPPED
    otherwise                        → len constraint [min, max] + message
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from modelgen.diagnostics import ConfigurationError, Diagnostics

if TYPE_CHECKING:
    from modelgen.dialects.base import DialectOptions, StringBounds

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.validation")

# ---------------------------------------------------------------------------
# Message templates
# ---------------------------------------------------------------------------

DEFAULT_LENGTH_MESSAGE: str = (
    "Field {tableName}.{fieldName} may not exceed {maxBound} characters. "
    "Original DataType: {declaredType}."
)

_PLACEHOLDER_RE: re.Pattern[str] = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


# ---------------------------------------------------------------------------
# Resolver inputs / outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnContext:
    """Everything a rule may look at for one column."""

    table_name: str
    field_name: str
    declared_type: str
    dialect: "DialectOptions"


@dataclass(frozen=True, slots=True)
class ValidationConstraint:
    """A constraint declaration attached to a generated column."""

    kind: str
    args: List[int] = field(default_factory=list)
    msg: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {"args": list(self.args), "msg": self.msg}


def render_message(
    template: str,
    values: Mapping[str, str],
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """
    Substitute ``{name}`` placeholders from *values*.

    Unknown placeholders stay in the output as literal text and are
    reported as ``UNKNOWN_TEMPLATE_PLACEHOLDER`` warnings.
    """
    unknown: List[str] = []

    def _substitute(match: re.Match[str]) -> str:
        name: str = match.group(1)
        if name in values:
            return values[name]
        if name not in unknown:
            unknown.append(name)
        return match.group(0)

    rendered: str = _PLACEHOLDER_RE.sub(_substitute, template)

    if unknown and diagnostics is not None:
        diagnostics.add_warning(
            "UNKNOWN_TEMPLATE_PLACEHOLDER",
            f"Message template uses unknown placeholder(s) "
            f"{', '.join('{' + u + '}' for u in unknown)}; left as literal text.",
            {"template": template, "placeholders": unknown},
        )
    return rendered


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

_RULE_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


class ValidationRule(BaseModel):
    """Base of every validation rule. ``type`` is the discriminating tag."""

    model_config = _RULE_CONFIG

    type: str = Field(..., min_length=1)

    def resolve(
        self,
        context: ColumnContext,
        diagnostics: Optional[Diagnostics] = None,
    ) -> Optional[ValidationConstraint]:
        raise NotImplementedError


_RULE_REGISTRY: Dict[str, Type[ValidationRule]] = {}

_R = TypeVar("_R", bound=Type[ValidationRule])


def register_rule(*tags: str) -> Callable[[_R], _R]:
    """Class decorator registering a rule under one or more ``type`` tags."""

    def decorator(rule_cls: _R) -> _R:
        if rule_cls.resolve is ValidationRule.resolve:
            raise TypeError(f"{rule_cls.__name__} must override resolve() to be registered.")
        for tag in tags:
            _RULE_REGISTRY[tag] = rule_cls
        return rule_cls

    return decorator


def known_rule_types() -> List[str]:
    return sorted(_RULE_REGISTRY)


@register_rule("string_length_check", "stringLengthCheck")
class StringLengthCheckRule(ValidationRule):
    """Emit a ``len`` constraint from the dialect's declared string bounds."""

    error_message_template: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("error_message_template", "errorMessageTemplate"),
    )

    def resolve(
        self,
        context: ColumnContext,
        diagnostics: Optional[Diagnostics] = None,
    ) -> Optional[ValidationConstraint]:
        bounds: Optional["StringBounds"] = context.dialect.get_string_bounds(
            context.declared_type
        )
        if bounds is None or bounds.max is None:
            return None

        values: Dict[str, str] = {
            "fieldName": context.field_name,
            "tableName": context.table_name,
            "minBound": str(bounds.min),
            "maxBound": str(bounds.max),
            "declaredType": context.declared_type,
        }
        template: str = (
            self.error_message_template
            if self.error_message_template is not None
            else DEFAULT_LENGTH_MESSAGE
        )
        return ValidationConstraint(
            kind="len",
            args=[bounds.min, bounds.max],
            msg=render_message(template, values, diagnostics),
        )


def parse_validation_rule(raw: Any) -> ValidationRule:
    """
    Turn a configuration entry into a rule instance.

    Raises:
        ConfigurationError: unknown ``type`` tag or malformed entry.
    """
    if isinstance(raw, ValidationRule):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            "INVALID_VALIDATION_RULE",
            f"Validation rule must be a mapping, got {type(raw).__name__}.",
            {"rule": raw},
        )

    tag: Any = raw.get("type")
    rule_cls: Optional[Type[ValidationRule]] = (
        _RULE_REGISTRY.get(tag) if isinstance(tag, str) else None
    )
    if rule_cls is None:
        raise ConfigurationError(
            "INVALID_VALIDATION_RULE",
            f"Unknown validation rule type {tag!r}. "
            f"Known types: {', '.join(known_rule_types())}.",
            {"rule": dict(raw)},
        )

    try:
        return rule_cls.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(
            "INVALID_VALIDATION_RULE",
            f"Validation rule {tag!r} is malformed: {exc}",
            {"rule": dict(raw)},
        ) from exc


def resolve_constraints(
    rules: Sequence[ValidationRule],
    context: ColumnContext,
    diagnostics: Optional[Diagnostics] = None,
) -> List[ValidationConstraint]:
    """
    Apply every configured rule to one column, in configuration order.

    Only the first constraint of each kind is kept.
    """
    if not rules:
        return []

    constraints: List[ValidationConstraint] = []
    seen_kinds: set = set()
    for rule in rules:
        constraint: Optional[ValidationConstraint] = rule.resolve(context, diagnostics)
        if constraint is None or constraint.kind in seen_kinds:
            continue
        seen_kinds.add(constraint.kind)
        constraints.append(constraint)
    return constraints


__all__: List[str] = [
    "DEFAULT_LENGTH_MESSAGE",
    "ColumnContext",
    "ValidationConstraint",
    "ValidationRule",
    "StringLengthCheckRule",
    "register_rule",
    "known_rule_types",
    "parse_validation_rule",
    "resolve_constraints",
    "render_message",
]
