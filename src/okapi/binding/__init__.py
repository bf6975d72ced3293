"""Model binding and validation."""

from okapi.binding.binder import (
    BindingError,
    bind,
    convert,
    from_form,
    from_json,
    from_query,
    from_request,
    from_xml,
)
from okapi.binding.handlers import (
    bind_form,
    bind_json,
    bind_model,
    bind_query,
    try_bind_query,
    validate_model,
)
from okapi.binding.validation import Err, Ok, validate, validator

__all__ = [
    "BindingError",
    "Err",
    "Ok",
    "bind",
    "bind_form",
    "bind_json",
    "bind_model",
    "bind_query",
    "convert",
    "from_form",
    "from_json",
    "from_query",
    "from_request",
    "from_xml",
    "try_bind_query",
    "validate",
    "validate_model",
    "validator",
]
