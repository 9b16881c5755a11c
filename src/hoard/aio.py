import asyncio
from typing import Any, TypeVar

from .async_op import AsyncOp, CollectingSubscriber
from .hoard import Hoard
from .type_spec import ANY

T = TypeVar("T")


async def run_op(op: AsyncOp[T]) -> list[T]:
    """
    Subscribe to ``op`` and signal demand from the default executor so the
    blocking file work stays off the event loop. Returns the delivered items
    or raises the delivered error. Cancelling the awaiting task cancels the op.
    """
    subscriber: CollectingSubscriber[T] = CollectingSubscriber()
    op.subscribe(subscriber)
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, subscriber.request, 1)
    except asyncio.CancelledError:
        subscriber.cancel()
        raise
    return subscriber.result()


class AsyncHoard:
    """
    asyncio facade over a Hoard.

    Example:
        async with AsyncHoard(Hoard("./data", JSONCodec())) as store:
            await store.set("settings", {"theme": "dark"})
            settings = await store.get("settings")
    """

    def __init__(self, hoard: Hoard) -> None:
        self.hoard = hoard

    async def __aenter__(self) -> "AsyncHoard":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        # Depositors hold no open handles between calls.
        pass

    async def get(self, key: str, type_spec: Any = ANY) -> Any:
        """Stored value for ``key``, or None if there is none."""
        op = self.hoard.create_async_depositor(key, type_spec).retrieve()
        items = await run_op(op)
        return items[0] if items else None

    async def set(self, key: str, value: Any) -> None:
        await run_op(self.hoard.create_async_depositor(key).store(value))

    async def delete(self, key: str) -> None:
        await run_op(self.hoard.create_async_depositor(key).delete())

    async def exists(self, key: str) -> bool:
        (found,) = await run_op(self.hoard.create_async_depositor(key).exists())
        return found

    async def keys(self) -> list[str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.hoard.keys)

    async def retrieve_all(self) -> dict[str, Any]:
        return dict(await run_op(self.hoard.retrieve_all_async()))

    async def delete_all(self) -> None:
        await run_op(self.hoard.delete_all_async())
