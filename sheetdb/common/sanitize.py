from __future__ import annotations


def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секреты (пути к ключам, токены) для вывода в stdout/logs.

    Выходные данные:
        str | None
            Если value задано: возвращает '***', иначе None.
    """
    if value is None:
        return None
    return "***"


def truncateText(value: str | None, limit: int = 500) -> str | None:
    """
    Назначение:
        Ограничивает длину текста ответа API, чтобы не раздувать логи и ошибки.

    Входные данные:
        value: str | None
        limit: int
            Максимальная длина результата (включая суффикс '...').
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    if limit <= 3:
        return value[:limit]
    return value[: limit - 3] + "..."
