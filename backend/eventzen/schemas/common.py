"""
Base schema: camelCase on the wire, snake_case in Python.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

CENTS = Decimal("0.01")

# Prices and totals go out as fixed two-place strings ("300.00") so clients
# read back exactly what was stored.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: str(value.quantize(CENTS)), return_type=str, when_used="json"),
]


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(APIModel):
    message: str
