"""Pydantic schemas for step configuration validation."""

from typing import Dict, Any, Literal, Optional, Type, TypeVar
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from shared.constants import (
    MIN_API_CALL_TIMEOUT_SECONDS,
    MAX_API_CALL_TIMEOUT_SECONDS,
)

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class StepConfig(BaseModel):
    # Editor data also carries label/status/etc.
    model_config = ConfigDict(extra="ignore")


class ApiCallConfig(StepConfig):
    """Config schema for API nodes"""
    url: str = Field(min_length=1)
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"] = "GET"
    headers: Optional[Dict[str, str]] = None
    body: Optional[Any] = None
    timeout: Optional[float] = Field(
        default=None, ge=MIN_API_CALL_TIMEOUT_SECONDS, le=MAX_API_CALL_TIMEOUT_SECONDS
    )

    @field_validator('method', mode='before')
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        if v is None or v == "":
            return "GET"
        return v.upper() if isinstance(v, str) else v


class SendEmailConfig(StepConfig):
    """Config schema for EMAIL nodes"""
    to: str = Field(min_length=1)
    subject: Any = ""
    # Editors may store a structured body; it is sent as JSON
    body: Optional[Any] = None


def parse_step_config(schema: Type[ConfigT], config: Dict[str, Any]) -> ConfigT:
    """Validates config against schema, raising ValueError with a readable message"""
    try:
        return schema.model_validate(config)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValueError(f"Invalid {schema.__name__}: {problems}") from None
