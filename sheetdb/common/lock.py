from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

T = TypeVar("T")


class SerialLock:
    """
    Назначение/ответственность:
        Очередь эксклюзивного выполнения: в каждый момент выполняется не больше
        одной функции, переданной в exec(), в порядке подачи (FIFO).
    Ограничения:
        - Действует в пределах одного процесса и одного event loop.
        - Отмена/таймаут ожидающих задач не поддерживается.
    """

    def __init__(self) -> None:
        self._lock: asyncio.Lock | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _get_lock(self) -> asyncio.Lock:
        # asyncio.Lock привязан к loop; создаём лениво внутри работающего loop.
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock

    async def exec(self, fn: Callable[[], Union[Awaitable[T], T]]) -> T:
        async with self._get_lock():
            result: Any = fn()
            if inspect.isawaitable(result):
                result = await result
            return result
