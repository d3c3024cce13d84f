from decimal import Decimal
from typing import Annotated, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Numeric(12, 2) columns come back as Decimal; the wire carries plain numbers.
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CommonQueryParams(CamelModel):
    search: Optional[str] = None
    page: int = 1
    limit: int = 20


class Lookup(BaseModel):
    id: Union[str, UUID]  # accepts both UUID and str
    name: str

    class Config:
        from_attributes = True
