"""Debounced plan previews for inputs that change while the user types.

Each request bumps a generation counter. A request only runs the planner if
it is still the newest once the debounce delay elapses, and its result is
only published if no newer request started while the planner was running.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from loguru import logger

from leverage_paths.core.config import get_preview_debounce_s
from leverage_paths.core.errors import PlanningError

T = TypeVar("T")


@dataclass(frozen=True)
class PreviewResult(Generic[T]):
    generation: int
    inputs: Mapping[str, Any] = field(default_factory=dict)
    plan: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.plan is not None


class PlanPreview(Generic[T]):
    def __init__(
        self,
        planner: Callable[..., Awaitable[T | None]],
        *,
        debounce_s: float | None = None,
    ):
        self.planner = planner
        self.debounce_s = get_preview_debounce_s() if debounce_s is None else debounce_s
        self.generation = 0
        self.latest: PreviewResult[T] | None = None

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    async def request(self, **inputs: Any) -> PreviewResult[T] | None:
        """Plan for ``inputs``; returns None when a newer request superseded this one."""
        self.generation += 1
        generation = self.generation

        if self.debounce_s > 0:
            await asyncio.sleep(self.debounce_s)
        if not self.is_current(generation):
            return None

        try:
            plan = await self.planner(**inputs)
            result = PreviewResult(generation=generation, inputs=inputs, plan=plan)
        except PlanningError as exc:
            result = PreviewResult(generation=generation, inputs=inputs, error=exc)

        if not self.is_current(generation):
            logger.debug(
                f"Discarding preview generation {generation}; latest is {self.generation}"
            )
            return None
        self.latest = result
        return result

    def reset(self) -> None:
        self.generation += 1
        self.latest = None
