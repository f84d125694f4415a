# utils/validation.py
from datetime import date, datetime, time
from typing import ClassVar

from flask import request
from pydantic import BaseModel, ConfigDict, model_validator

from utils.errors import BusinessRuleError

MAX_MONEY = 9_999_999_999.99    # Numeric(12, 2)
MAX_RATE = 999.99               # Numeric(5, 2)
MAX_TERM_MONTHS = 600


class RequestModel(BaseModel):
    """JSON request body. Infinity and NaN literals are rejected."""
    model_config = ConfigDict(allow_inf_nan=False)


class PartialUpdate(RequestModel):
    """
    PUT body. Any field may be left out, but the ones listed in
    ``not_null`` back NOT NULL columns and may not be sent as null.
    """
    not_null: ClassVar[tuple] = ()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data):
        if isinstance(data, dict):
            nulls = sorted(f for f in cls.not_null if f in data and data[f] is None)
            if nulls:
                raise ValueError(f"Field(s) cannot be null: {', '.join(nulls)}")
        return data


def parse_body(schema: type[BaseModel]):
    """Validate the JSON body; pydantic.ValidationError is rendered as a 400 by the app."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    return schema.model_validate(data)


def changes_from(model: BaseModel) -> dict:
    """Fields the client actually sent, for partial updates."""
    return model.model_dump(exclude_unset=True)


def _filter_arg(name):
    value = request.args.get(name)
    if value in (None, "", "all"):
        return None
    return value


def query_int(name):
    value = _filter_arg(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise BusinessRuleError(f"Invalid {name}: {value}")


def query_str(name):
    return _filter_arg(name)


def query_date(name, end_of_day=False, as_datetime=False):
    value = _filter_arg(name)
    if value is None:
        return None
    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        raise BusinessRuleError(f"Invalid {name}: {value}")
    if end_of_day:
        return datetime.combine(parsed, time.max)
    if as_datetime:
        return datetime.combine(parsed, time.min)
    return parsed
