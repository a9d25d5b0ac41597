from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

EPOCH_START_IN_SERIAL = 25569
MS_IN_DAY = 24 * 60 * 60 * 1000

_UNIX_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class SerialDate:
    """
    Назначение/ответственность:
        Дата в формате "serial number" таблицы: дробное число дней от эпохи
        (25569 == 1970-01-01 UTC), дробная часть кодирует время суток.
    Инварианты/гарантии:
        - Экземпляр неизменяем.
        - Serial хранит локальное время без часового пояса: to_local_date()
          отдаёт naive datetime с теми же полями, что и UTC-момент.
        - from_local_date(s.to_local_date()) == s с точностью до миллисекунды.
    """

    serial: float

    @classmethod
    def from_serial(cls, n: float) -> "SerialDate":
        return cls(n)

    @classmethod
    def from_utc_ms(cls, ms: float) -> "SerialDate":
        return cls(ms / MS_IN_DAY + EPOCH_START_IN_SERIAL)

    @classmethod
    def from_utc_datetime(cls, value: datetime) -> "SerialDate":
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return cls.from_utc_ms(_wall_clock_ms(value))

    @classmethod
    def from_parts(cls, parts: Sequence[int]) -> "SerialDate":
        """
        Назначение:
            Собирает SerialDate из полей (year, month, day, hour, minute, second, ms),
            трактуя их как UTC. Недостающие хвостовые поля: month/day = 1, прочие = 0.
        Контракт:
            - Поля вне диапазона переносятся в старшие (month 13 -> январь
              следующего года, day 0 -> последний день прошлого месяца, hour 24 ->
              следующие сутки).
        """
        if not parts:
            raise ValueError("parts must contain at least the year")
        filled = list(parts) + [1, 1, 0, 0, 0, 0][len(parts) - 1:]
        year, month, day, hour, minute, second, ms = filled[:7]
        year += (month - 1) // 12
        month = (month - 1) % 12 + 1
        value = datetime(year, month, 1) + timedelta(
            days=day - 1, hours=hour, minutes=minute, seconds=second, milliseconds=ms
        )
        return cls.from_utc_ms(_wall_clock_ms(value))

    @classmethod
    def from_local_date(cls, value: datetime | date) -> "SerialDate":
        """
        Назначение:
            Обратное к to_local_date(): локальные wall-clock поля значения
            записываются в serial как есть.
        Контракт:
            - naive datetime уже считается локальным временем;
            - aware datetime сначала переводится в локальный пояс процесса;
            - date означает локальную полночь.
        """
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        elif value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return cls.from_utc_ms(_wall_clock_ms(value))

    def utc_ms(self) -> int:
        return round((self.serial - EPOCH_START_IN_SERIAL) * MS_IN_DAY)

    def utc_datetime(self) -> datetime:
        return self._naive_utc().replace(tzinfo=timezone.utc)

    def parts(self) -> tuple[int, int, int, int, int, int, int]:
        d = self._naive_utc()
        return (
            d.year,
            d.month,
            d.day,
            d.hour,
            d.minute,
            d.second,
            d.microsecond // 1000,
        )

    def to_local_date(self) -> datetime:
        year, month, day, hour, minute, second, ms = self.parts()
        return datetime(year, month, day, hour, minute, second, ms * 1000)

    def _naive_utc(self) -> datetime:
        return _UNIX_EPOCH + timedelta(milliseconds=self.utc_ms())


def _wall_clock_ms(value: datetime) -> int:
    # Целые миллисекунды от эпохи без учёта tzinfo; микросекунды округляются вниз.
    return (value.replace(tzinfo=None) - _UNIX_EPOCH) // _ONE_MS


def to_date(serial: float) -> datetime:
    """Serial из ячейки -> локальный naive datetime."""
    return SerialDate.from_serial(serial).to_local_date()


def to_serial(value: datetime | date) -> float:
    """Локальная дата/время -> serial для записи в ячейку."""
    return SerialDate.from_local_date(value).serial


__all__ = ["SerialDate", "EPOCH_START_IN_SERIAL", "MS_IN_DAY", "to_date", "to_serial"]
