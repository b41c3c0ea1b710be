from __future__ import annotations

import pydantic


class DesignError(ValueError):
    """Base class for every rejected design-state operation."""


class ValidationError(DesignError):
    """Input was rejected; the target state is left unchanged."""


class DecodeError(DesignError):
    """A token or document could not be parsed or has an unknown type."""


def from_pydantic(exc: pydantic.ValidationError, error: type[DesignError] = ValidationError) -> DesignError:
    """Flatten a pydantic error report into one of our exceptions."""
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors()
    )
    return error(details)


__all__ = ["DesignError", "ValidationError", "DecodeError", "from_pydantic"]
