import anyio
import pytest

from src.platform.state.keyed_lock import KeyedLock


pytestmark = pytest.mark.unit


async def test_same_key_is_serialized():
    lock = KeyedLock(name='test')
    order: list[str] = []

    async def worker(label: str) -> None:
        async with lock.hold('reservation-1'):
            order.append(f'{label}:in')
            await anyio.sleep(0.01)
            order.append(f'{label}:out')

    async with anyio.create_task_group() as tg:
        tg.start_soon(worker, 'a')
        tg.start_soon(worker, 'b')

    # No interleaving: every "in" is directly followed by its own "out"
    assert [entry.split(':')[0] for entry in order[::2]] == [
        entry.split(':')[0] for entry in order[1::2]
    ]


async def test_different_keys_do_not_block_each_other():
    lock = KeyedLock(name='test')

    async with lock.hold('a'):
        with anyio.fail_after(1):
            async with lock.hold('b'):
                assert lock.is_held('a')
                assert lock.is_held('b')


async def test_lock_is_dropped_after_release():
    lock = KeyedLock(name='test')

    async with lock.hold('a'):
        pass

    assert not lock.is_held('a')
    assert lock._locks == {}


async def test_released_on_error():
    lock = KeyedLock(name='test')

    with pytest.raises(RuntimeError):
        async with lock.hold('a'):
            raise RuntimeError('boom')

    assert not lock.is_held('a')
