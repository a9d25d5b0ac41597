from __future__ import annotations

import asyncio
import re

import pytest


_RANGE_RE = re.compile(r"^(?P<sheet>.+)!(?P<left>[A-Z]+)(?P<top>\d+):(?P<right>[A-Z]+)(?P<bottom>\d*)$")


def _column_index(label: str) -> int:
    n = 0
    for ch in label:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n


class FakeRemote:
    """
    Лист в памяти: sheets[title] = сетка строк данных (без заголовка).
    Чтение отдаёт ячейки как Sheets API: короткие строки и без хвостовых пустых.
    """

    def __init__(self, sheets: dict[str, list[list]] | None = None, delay: float = 0.0):
        self.sheets = {k: [list(r) for r in v] for k, v in (sheets or {}).items()}
        self.reads: list[str] = []
        self.writes: list[tuple[str, list[list]]] = []
        self.events: list[str] = []
        self.delay = delay
        self.active = 0
        self.max_active = 0

    def _parse(self, range_: str):
        m = _RANGE_RE.match(range_)
        assert m, f"unexpected range {range_}"
        sheet = m.group("sheet").strip("'")
        return sheet, int(m.group("top")), _column_index(m.group("left")), _column_index(m.group("right"))

    async def _enter(self, label: str) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.events.append(f"start:{label}")
        if self.delay:
            await asyncio.sleep(self.delay)

    def _leave(self, label: str) -> None:
        self.events.append(f"end:{label}")
        self.active -= 1

    async def read_range(self, spreadsheet_id: str, range_: str):
        self.reads.append(range_)
        sheet, top, _, _ = self._parse(range_)
        await self._enter(f"read:{sheet}")
        try:
            rows = self.sheets.get(sheet, [])
            result = []
            for row in rows:
                trimmed = list(row)
                while trimmed and trimmed[-1] == "":
                    trimmed.pop()
                result.append(trimmed)
            while result and not result[-1]:
                result.pop()
            return result
        finally:
            self._leave(f"read:{sheet}")

    async def update_range(self, spreadsheet_id: str, range_: str, data):
        payload = [list(r) for r in data]
        self.writes.append((range_, payload))
        sheet, top, left, right = self._parse(range_)
        assert top == 2 and left == 1
        assert all(len(r) == right - left + 1 for r in payload)
        await self._enter(f"write:{sheet}")
        try:
            current = self.sheets.setdefault(sheet, [])
            for i, row in enumerate(payload):
                if i < len(current):
                    current[i] = list(row)
                else:
                    current.append(list(row))
        finally:
            self._leave(f"write:{sheet}")


@pytest.fixture
def fake_remote_factory():
    return FakeRemote


@pytest.fixture
def stable_tz(monkeypatch):
    """Фиксированный локальный пояс процесса (только POSIX)."""
    import time

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available")

    def apply(tz: str) -> None:
        monkeypatch.setenv("TZ", tz)
        time.tzset()

    yield apply
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def scratch_types():
    """Имена типов, зарегистрированных тестом в общем реестре; удаляются после теста."""
    from sheetdb.domain.codecs import default_registry

    names: list[str] = []
    yield names
    for name in names:
        default_registry.unregister(name)
