from collections.abc import Awaitable, Callable
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

QuoteIntent = Literal["exactIn", "exactOut"]


class Call(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    data: str
    value: int = Field(default=0, ge=0)

    def as_router_tuple(self) -> tuple[str, int, str]:
        return self.target, self.value, self.data


class QuoteRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    in_token: str
    out_token: str
    intent: QuoteIntent
    amount_in: int | None = Field(default=None, ge=0)
    amount_out: int | None = Field(default=None, ge=0)
    slippage_bps: int | None = Field(default=None, ge=0, le=10_000)

    @model_validator(mode="after")
    def _check_amounts(self) -> Self:
        if self.intent == "exactIn" and self.amount_in is None:
            raise ValueError("exactIn quote requests require amount_in")
        if self.intent == "exactOut" and self.amount_out is None:
            raise ValueError("exactOut quote requests require amount_out")
        return self


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    # expected output in out-token base units
    out: int = Field(ge=0)
    # guaranteed output after slippage
    min_out: int = Field(ge=0)
    # expected input, and the most the swap may spend for exact-out
    amount_in: int | None = Field(default=None, ge=0)
    max_in: int | None = Field(default=None, ge=0)
    approval_target: str
    calls: tuple[Call, ...] = ()
    wants_native_in: bool = False
    deadline: int | None = None
    source: str | None = None
    source_name: str | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.min_out > self.out:
            raise ValueError("min_out cannot exceed out")
        return self


QuoteFn = Callable[[QuoteRequest], Awaitable[Quote]]
