from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ParseError

M = TypeVar("M", bound=BaseModel)


def parse_as(model: Type[M], payload: Any, service: str) -> M:
    """Validate a decoded payload against the response model a client reads."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        # keep the message short; full payloads can be huge
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ParseError(service, f"{model.__name__}: {loc or 'payload'}: {first.get('msg', e)}") from e
