from __future__ import annotations

from typing import Annotated

from pydantic import Field

# Primary keys are 32-bit INTEGER columns; larger values cannot be bound by asyncpg.
MAX_ROW_ID = 2**31 - 1

RowId = Annotated[int, Field(ge=1, le=MAX_ROW_ID)]


def is_row_id(value: int) -> bool:
    return 1 <= value <= MAX_ROW_ID
