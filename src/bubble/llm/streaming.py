"""Helpers for consuming provider streams."""

from collections.abc import AsyncIterator

from bubble.llm.types import Delta


async def _replay(first: Delta, rest: AsyncIterator[Delta]) -> AsyncIterator[Delta]:
    yield first
    async for delta in rest:
        yield delta


async def _empty() -> AsyncIterator[Delta]:
    return
    yield


async def prime_stream(stream: AsyncIterator[Delta]) -> AsyncIterator[Delta]:
    """Pull the first delta now and return an iterator over the whole stream.

    Providers open their connection lazily, so errors raised while
    connecting only surface on the first read. Priming moves that read
    into the caller's error handling scope.
    """
    try:
        first = await anext(stream)
    except StopAsyncIteration:
        return _empty()
    return _replay(first, stream)
