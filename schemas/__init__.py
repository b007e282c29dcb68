from typing import Any, Dict, List, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from core.exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _field_name(loc) -> str:
    parts = [str(part) for part in loc]
    return ".".join(parts) if parts else "__root__"


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators
    for prefix in ("Value error, ", "Assertion failed, "):
        if msg.startswith(prefix):
            return msg[len(prefix):]
    return msg


def to_validation_error(exc: PydanticValidationError) -> ValidationError:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error["loc"]), []).append(_clean_message(error["msg"]))
    return ValidationError(errors)


def parse_payload(schema: Type[SchemaT], payload: Union[SchemaT, Dict[str, Any]]) -> SchemaT:
    """Accepts an already-built schema or a raw dict; pydantic failures become ValidationError."""
    if isinstance(payload, schema):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise to_validation_error(exc) from exc
