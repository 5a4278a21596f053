# Settle-all fan-out helper shared by the verification and notification loaders
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(aws: Sequence[Awaitable[T]]) -> List[Result[T]]:
    """
    Awaits every awaitable concurrently and reports each outcome.

    Unlike a plain gather, one failure never discards the other results:
    the returned list has one Result per input, in input order. Task
    cancellation is re-raised rather than reported as a failure.
    """
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    results: List[Result[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            results.append(Result(error=outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results.append(Result(value=outcome))
    return results
