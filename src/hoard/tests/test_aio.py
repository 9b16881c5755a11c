import asyncio
import threading
import uuid
from datetime import datetime

import pytest

from hoard import (
    AsyncHoard,
    AsyncOp,
    Hoard,
    JSONCodec,
    OpState,
    StorageError,
    run_op,
)


def unique_key(suffix: str) -> str:
    return f"test_{suffix}_{uuid.uuid4()}"


@pytest.fixture
def hoard(tmp_path):
    return Hoard(tmp_path / "hoard", JSONCodec())


@pytest.mark.asyncio
async def test_json_set_get(hoard):
    key = unique_key("user_settings")
    async with AsyncHoard(hoard) as store:
        value = {
            "theme": "dark",
            "tags": {"ml", "ai"},
            "last_login": datetime(2024, 1, 2),
        }
        await store.set(key, value)
        assert await store.get(key) == value
        assert await store.exists(key) is True


@pytest.mark.asyncio
async def test_missing_value(hoard):
    async with AsyncHoard(hoard) as store:
        assert await store.get(unique_key("nonexistent")) is None
        assert await store.exists(unique_key("nonexistent")) is False


@pytest.mark.asyncio
async def test_delete(hoard):
    key = unique_key("delete")
    async with AsyncHoard(hoard) as store:
        await store.set(key, {"theme": "dark"})
        await store.delete(key)
        assert await store.get(key) is None


@pytest.mark.asyncio
async def test_set_none_deletes(hoard):
    key = unique_key("none")
    async with AsyncHoard(hoard) as store:
        await store.set(key, [1, 2])
        await store.set(key, None)
        assert await store.exists(key) is False


@pytest.mark.asyncio
async def test_bulk_operations(hoard):
    async with AsyncHoard(hoard) as store:
        await asyncio.gather(store.set("a", 1), store.set("b", 2), store.set("c", 3))
        assert sorted(await store.keys()) == ["a", "b", "c"]
        assert await store.retrieve_all() == {"a": 1, "b": 2, "c": 3}
        await store.delete_all()
        assert await store.keys() == []
        assert await store.retrieve_all() == {}


@pytest.mark.asyncio
async def test_non_json_serializable(hoard):
    async with AsyncHoard(hoard) as store:
        with pytest.raises(ValueError):
            await store.set(unique_key("bad_data"), lambda x: x)


@pytest.mark.asyncio
async def test_storage_error_is_raised(hoard):
    (hoard.root_directory / "a_directory").mkdir()
    async with AsyncHoard(hoard) as store:
        with pytest.raises(StorageError):
            await store.get("a_directory")


@pytest.mark.asyncio
async def test_run_op_runs_off_the_event_loop():
    loop_thread = threading.get_ident()
    seen = []
    op = AsyncOp.from_call(lambda: seen.append(threading.get_ident()) or "done")
    assert await run_op(op) == ["done"]
    assert seen and seen[0] != loop_thread


@pytest.mark.asyncio
async def test_task_cancel_cancels_op():
    started = threading.Event()
    release = threading.Event()

    def slow():
        started.set()
        release.wait(timeout=5)
        return "late"

    op = AsyncOp.from_call(slow)
    task = asyncio.create_task(run_op(op))
    await asyncio.get_running_loop().run_in_executor(None, started.wait, 5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    release.set()
    # Give the executor thread a moment to finish the wrapped call.
    await asyncio.sleep(0.05)
    assert op.state is OpState.CANCELLED
