"""
Base schemas for the engine's value objects.

Every result the engine hands back is one of these models, so a transport
layer can encode it with ``model_dump(mode="json")`` and nothing else.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema

from ..utils.money import quantize_money


class StrictModel(BaseModel):
    """Forbid extras, validate defaults and assignments."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )


class FrozenModel(BaseModel):
    """Immutable value object; instances are hashable and safe to share."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Money(Decimal):
    """Decimal amount kept to cents that always serializes as float."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, (int, float, str, Decimal)):
                return quantize_money(value)
            raise ValueError(f"Cannot convert {type(value)} to Money")

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.is_instance_schema(Decimal),
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                float,
                info_arg=False,
                return_schema=core_schema.float_schema(),
            ),
        )
