from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from sheetdb.domain.codecs import CodecRegistry, default_registry, install_builtin_codecs, register_type


def codec(name: str):
    return default_registry.get(name)


def test_builtin_types_are_registered():
    assert {"string", "number", "date", "money"} <= set(default_registry.names())


def test_empty_cell_decodes_to_none_and_back_for_every_builtin():
    for name in ("string", "number", "date", "money"):
        c = codec(name)
        assert c.from_sheet("") is None
        assert c.to_sheet(None) == ""


def test_string_codec():
    c = codec("string")
    assert c.from_sheet("NCYF") == "NCYF"
    assert c.to_sheet("NCYF") == "NCYF"
    assert c.to_sheet(12) == "12"


def test_number_codec():
    c = codec("number")
    assert c.from_sheet(12) == 12
    assert c.from_sheet(1.5) == 1.5
    assert c.from_sheet("42") == 42
    assert c.from_sheet(" 2.5 ") == 2.5
    assert c.to_sheet(7) == 7


def test_number_codec_rejects_non_numeric_text():
    with pytest.raises(ValueError):
        codec("number").from_sheet("abc")


def test_money_codec_rounds_to_two_places():
    c = codec("money")
    value = c.from_sheet("12.345")
    assert isinstance(value, Decimal)
    assert value == Decimal("12.35")
    assert c.to_sheet(value) == 12.35


def test_money_codec_accepts_numeric_cells():
    c = codec("money")
    assert c.from_sheet(100) == Decimal("100.00")
    assert c.from_sheet(0.1) == Decimal("0.10")
    assert c.to_sheet(Decimal("100.00")) == 100


def test_money_codec_rejects_garbage():
    with pytest.raises(ValueError):
        codec("money").from_sheet("12,34 EUR")


def test_date_codec_uses_local_wall_clock():
    c = codec("date")
    assert c.from_sheet(45000.5) == datetime(2023, 3, 15, 12, 0)
    assert c.to_sheet(datetime(2023, 3, 15, 12, 0)) == 45000.5


def test_date_codec_rejects_text_cells():
    with pytest.raises(TypeError):
        codec("date").from_sheet("2023-03-15")


def test_registry_lookup_of_unknown_type():
    registry = CodecRegistry()
    assert "string" not in registry
    with pytest.raises(KeyError):
        registry.get("string")
    install_builtin_codecs(registry)
    assert "string" in registry


def test_register_type_extends_default_registry(scratch_types):
    scratch_types.append("flag")
    registered = register_type(
        "flag",
        to_sheet=lambda v: "" if v is None else ("Y" if v else "N"),
        from_sheet=lambda raw: None if raw == "" else raw == "Y",
    )
    assert default_registry.get("flag") is registered
    assert registered.from_sheet("Y") is True
    assert registered.to_sheet(False) == "N"


def test_unregister_removes_type():
    registry = install_builtin_codecs(CodecRegistry())
    registry.register("flag", lambda v: v, lambda raw: raw)
    registry.unregister("flag")
    assert "flag" not in registry
    registry.unregister("flag")
