"""Creditor records and the name search used by the creditor picker."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Creditor(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    total_amount: float = Field(default=0.0)
    transaction_count: int = Field(default=0)
    first_transaction_date: str | None = None
    last_transaction_date: str | None = None


def filter_creditors(creditors: list[Creditor], query: str) -> list[Creditor]:
    needle = query.strip().lower()
    if not needle:
        return list(creditors)
    return [creditor for creditor in creditors if needle in creditor.name.lower()]
