"""
Shared schema types.
"""
from decimal import Decimal
from typing import Annotated

from pydantic import ConfigDict, PlainSerializer

# Decimal internally, plain JSON number on the wire
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Request bodies accept both the camelCase names API clients send and snake_case
CAMEL_OR_SNAKE = ConfigDict(populate_by_name=True)
