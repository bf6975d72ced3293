"""Model validation as a free function.

Rules are registered per model type and return ``Ok(model)`` or
``Err(handler)``, where *handler* produces the error response::

    @validator(Car)
    def check_wheels(car: Car) -> Ok | Err:
        if 2 <= car.wheels <= 6:
            return Ok(car)
        return Err(bad_request("Wheels must be a value between 2 and 6."))

    validate(Car(wheels=4))   # Ok(value=Car(...))

Types without a registered rule always validate.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from okapi.pipeline import Handler


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    """A failed validation; *handler* answers the request."""

    handler: Handler

    def __bool__(self) -> bool:
        return False


type ValidationOutcome = Ok[Any] | Err
type Rule = Callable[[Any], ValidationOutcome]

_rules: dict[type, Rule] = {}


def validator(model_type: type) -> Callable[[Rule], Rule]:
    """Register the decorated function as *model_type*'s validation rule.

    Registering twice for the same type replaces the earlier rule.
    """

    def register(rule: Rule) -> Rule:
        _rules[model_type] = rule
        return rule

    return register


def unregister(model_type: type) -> None:
    _rules.pop(model_type, None)


def rule_for(model_type: type) -> Rule | None:
    """The rule for *model_type* or its nearest registered base class."""
    for klass in model_type.__mro__:
        rule = _rules.get(klass)
        if rule is not None:
            return rule
    return None


def validate(model: Any) -> ValidationOutcome:
    """Run the registered rule for ``type(model)``."""
    rule = rule_for(type(model))
    if rule is None:
        return Ok(model)
    outcome = rule(model)
    if not isinstance(outcome, Ok | Err):
        msg = f"Validation rule for {type(model).__name__} must return Ok or Err, got {outcome!r}"
        raise TypeError(msg)
    return outcome
