"""Typed metadata filter expressions.

A filter is a list of predicates that must all hold (logical AND).  Field
names are the stored metadata keys (``documentId``, ``documentType``,
``createdAt``...).  Each vector-store adapter translates the list into its
own query syntax.
"""

from __future__ import annotations

from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Scalar = Union[str, int, float, bool]
Bound = Union[datetime, int, float]


class Equals(BaseModel):
    """``field == value``."""

    model_config = ConfigDict(frozen=True)

    field: str
    value: Scalar


class In(BaseModel):
    """``field`` is one of ``values``.

    For list-valued metadata (speakers, participants) the predicate holds
    when any element of the stored list is in ``values``.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    values: list[Scalar] = Field(min_length=1)


class Range(BaseModel):
    """``gte <= field <= lte``; either bound may be omitted."""

    model_config = ConfigDict(frozen=True)

    field: str
    gte: Bound | None = None
    lte: Bound | None = None

    @model_validator(mode="after")
    def _require_bound(self) -> Range:
        if self.gte is None and self.lte is None:
            raise ValueError("Range needs at least one of gte/lte")
        return self


FilterExpr = Union[Equals, In, Range]
