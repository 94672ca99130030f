from datetime import date, datetime
from typing import List, Type, TypeVar, Union
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

def dict_to_model(model_cls: Type[T], data: dict) -> T:
    valid_keys = set(model_cls.model_fields.keys())
    filtered = {k: v for k, v in data.items() if k in valid_keys}
    return model_cls(**filtered)

def list_to_models(model_cls: Type[T], items: list) -> List[T]:
    return [dict_to_model(model_cls, item) for item in items]

def local_date(timestamp: int, timezone=None) -> date:
    """Calendar date of a unix timestamp in `timezone` (process local zone when None)."""
    return datetime.fromtimestamp(timestamp, tz=timezone).date()

def today(timezone=None) -> date:
    return datetime.now(tz=timezone).date()

def as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value

def load_handles(file: str = "users.txt") -> List[str]:
    """Handles from a `real name, handle` file; a bare handle per line works too."""
    try:
        with open(file, "r") as f:
            return [line.split(',')[-1].strip() for line in f if line.strip()]
    except FileNotFoundError:
        return []
