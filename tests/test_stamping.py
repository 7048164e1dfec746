from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import fitz
import pytest

from vehicle_forms.core.errors import DegradationKind, TemplateError
from vehicle_forms.data.models import NormalizedApplicationRecord
from vehicle_forms.data.vehicle_number import decompose_vehicle_number
from vehicle_forms.layout.fields import ApplicationType, FieldId
from vehicle_forms.layout.loader import LayoutLoadResult, default_layout, load_layout
from vehicle_forms.layout.models import FieldLayoutEntry, LayoutConfiguration, StaticFieldEntry
from vehicle_forms.pdf.fonts import FontLoadResult, load_font
from vehicle_forms.pdf.stamping import TemplateStamper, build_value_map, resolve_static_text

FIXED_DAY = date(2025, 4, 15)
EMPTY_PAGE_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
    b"2 0 obj\n<< /Type /Pages /Kids [] /Count 0 >>\nendobj\n"
    b"trailer\n<< /Root 1 0 R >>\n%%EOF\n"
)


class _RecordingPainter:
    def __init__(self, fontname: str) -> None:
        self.fontname = fontname
        self.calls: list[tuple[str, float, float, float, int]] = []

    def paint(self, text: str, x: float, y: float, font_size: float, rotation: int) -> None:
        self.calls.append((text, x, y, font_size, rotation))


class _PainterFactory:
    def __init__(self) -> None:
        self.painters: list[_RecordingPainter] = []

    def __call__(self, page: fitz.Page, fontname: str) -> _RecordingPainter:
        painter = _RecordingPainter(fontname)
        self.painters.append(painter)
        return painter

    @property
    def calls(self) -> list[tuple[str, float, float, float, int]]:
        return self.painters[-1].calls


def _template_bytes(pages: int = 1, rotation: int = 0) -> bytes:
    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page(width=595, height=842)
        page.draw_rect(fitz.Rect(20, 20, 575, 822), color=(0, 0, 0), width=0.5)
        page.set_rotation(rotation)
    data = doc.tobytes()
    doc.close()
    return data


def _no_font() -> FontLoadResult:
    return FontLoadResult(font_buffer=None, source="helv")


def _layout(
    fields: dict[FieldId, FieldLayoutEntry] | None = None,
    static_fields: dict[str, dict[str, StaticFieldEntry]] | None = None,
    rotation: int = 90,
) -> LayoutLoadResult:
    return LayoutLoadResult(
        layout=LayoutConfiguration(
            fields=fields if fields is not None else default_layout().fields,
            rotation=rotation,
            static_fields=static_fields or {},
        ),
        source="test",
    )


def _record(**overrides: Any) -> NormalizedApplicationRecord:
    values = {
        "old_owner_name": "山田太郎",
        "old_owner_address": "東京都渋谷区1-2-3",
        "old_owner_address_code": "13",
        "old_owner_chome": "1",
        "old_owner_banchi": "2",
        "new_owner_name": "鈴木一郎",
        "new_owner_address": "大阪府大阪市北区4-5-6",
        "new_owner_address_code": "27",
        "new_owner_chome": "4",
        "new_owner_banchi": "5",
        "vehicle_number": "品川500あ1234",
        "chassis_number": "ABC123456789",
        "model": "セダン",
    }
    values.update(overrides)
    return NormalizedApplicationRecord(**values)


def _stamper(layout: LayoutLoadResult, factory: _PainterFactory | None = None, font: FontLoadResult | None = None) -> TemplateStamper:
    kwargs: dict[str, Any] = {"era_base_year": 2018, "today": lambda: FIXED_DAY}
    if factory is not None:
        kwargs["painter_factory"] = factory
    return TemplateStamper(layout, font or _no_font(), **kwargs)


def test_resolve_static_text_auto_tokens_on_fixed_date() -> None:
    assert resolve_static_text("AUTO_YEAR", FIXED_DAY, 2018) == "7"
    assert resolve_static_text("AUTO_MONTH", FIXED_DAY, 2018) == "4"
    assert resolve_static_text("AUTO_DAY", FIXED_DAY, 2018) == "15"
    assert resolve_static_text("✓", FIXED_DAY, 2018) == "✓"


def test_build_value_map_includes_plate_segments_and_duplicates() -> None:
    record = _record()

    values = build_value_map(record, decompose_vehicle_number(record.vehicle_number))

    assert set(values) == set(FieldId)
    assert values[FieldId.VEHICLE_NUMBER_REGION] == "品川"
    assert values[FieldId.VEHICLE_NUMBER_CLASS] == "500"
    assert values[FieldId.VEHICLE_NUMBER_KANA] == "あ"
    assert values[FieldId.VEHICLE_NUMBER_DIGITS] == "1234"
    assert values[FieldId.OLD_OWNER_NAME_SUB] == "山田太郎"
    assert values[FieldId.NEW_OWNER_NAME_SUB] == "鈴木一郎"


def test_render_paints_each_configured_field_vertically() -> None:
    factory = _PainterFactory()
    stamper = _stamper(_layout(), factory)

    result = stamper.render(_template_bytes(), _record())

    old_name_calls = [call for call in factory.calls if call[1] == 205 and call[3] == 12]
    assert [call[0] for call in old_name_calls] == list("山田太郎")
    assert [call[2] for call in old_name_calls] == [95, 125, 155, 185]
    assert all(call[4] == 90 for call in factory.calls)
    assert factory.painters[-1].fontname == "helv"
    assert FieldId.CHASSIS_NUMBER.value in result.report.painted_fields
    assert result.report.paint_calls == len(factory.calls)
    assert result.pdf_bytes.startswith(b"%PDF")


def test_render_skips_empty_fields_without_paint_calls() -> None:
    factory = _PainterFactory()
    layout = _layout(
        fields={
            FieldId.OLD_OWNER_NAME: FieldLayoutEntry(x=10, y=10, font_size=12, spacing=20),
            FieldId.CHASSIS_NUMBER: FieldLayoutEntry(x=50, y=50),
        }
    )

    report = _stamper(layout, factory).render(_template_bytes(), _record(chassis_number="")).report

    assert report.painted_fields == ["old_owner_name"]
    assert report.skipped_fields == ["chassis_number"]
    assert all(call[1] != 50 for call in factory.calls)
    assert len(factory.calls) == 4


def test_render_uses_default_font_size_and_spacing_when_unset() -> None:
    factory = _PainterFactory()
    layout = _layout(fields={FieldId.CHASSIS_NUMBER: FieldLayoutEntry(x=50, y=50)})

    _stamper(layout, factory).render(_template_bytes(), _record(chassis_number="AB"))

    assert factory.calls == [("A", 50, 50, 10, 90), ("B", 50, 65, 10, 90)]


def test_render_paints_duplicate_name_fields() -> None:
    factory = _PainterFactory()
    layout = _layout(
        fields={
            FieldId.NEW_OWNER_NAME: FieldLayoutEntry(x=300, y=95, spacing=30),
            FieldId.NEW_OWNER_NAME_SUB: FieldLayoutEntry(x=560, y=300, spacing=14),
        }
    )

    _stamper(layout, factory).render(_template_bytes(), _record())

    sub_calls = [call[0] for call in factory.calls if call[1] == 560]
    assert "".join(sub_calls) == "鈴木一郎"


def test_render_static_fields_for_active_partition_only() -> None:
    factory = _PainterFactory()
    static_fields = {
        "transfer": {
            "year": StaticFieldEntry(x=1, y=1, text="AUTO_YEAR", spacing=12),
            "month": StaticFieldEntry(x=2, y=2, text="AUTO_MONTH"),
            "day": StaticFieldEntry(x=3, y=3, text="AUTO_DAY", spacing=12),
            "selection": StaticFieldEntry(x=4, y=4, text="13", font_size=14),
        },
        "cancellation": {
            "mark": StaticFieldEntry(x=9, y=9, text="✓"),
        },
    }
    layout = _layout(fields={}, static_fields=static_fields)

    report = _stamper(layout, factory).render(
        _template_bytes(), _record(), ApplicationType.TRANSFER
    ).report

    assert factory.calls == [
        ("7", 1, 1, 12, 90),
        ("4", 2, 2, 12, 90),
        ("1", 3, 3, 12, 90),
        ("5", 3, 15, 12, 90),
        ("13", 4, 4, 14, 90),
    ]
    assert report.static_fields == ["year", "month", "day", "selection"]

    _stamper(layout, factory).render(
        _template_bytes(), _record(), ApplicationType.PERMANENT_CANCELLATION
    )
    assert factory.calls == [("✓", 9, 9, 12, 90)]


def test_render_records_vehicle_number_parse_degradation() -> None:
    factory = _PainterFactory()
    layout = _layout(
        fields={
            FieldId.VEHICLE_NUMBER_REGION: FieldLayoutEntry(x=150, y=30, font_size=24, spacing=33),
            FieldId.VEHICLE_NUMBER_CLASS: FieldLayoutEntry(x=150, y=165),
        }
    )

    report = _stamper(layout, factory).render(
        _template_bytes(), _record(vehicle_number="品川 500 あ 12")
    ).report

    assert report.painted_fields == ["vehicle_number_region"]
    assert report.skipped_fields == ["vehicle_number_class"]
    assert [item.kind for item in report.degradations] == [
        DegradationKind.FIELD_PARSE_DEGRADATION
    ]


def test_render_reports_layout_and_font_degradations(tmp_path: Path) -> None:
    layout = load_layout(tmp_path / "missing.json")
    font = load_font(tmp_path / "missing.otf")

    report = TemplateStamper(layout, font, today=lambda: FIXED_DAY).render(
        _template_bytes(), {"old_owner_name": "YAMADA", "model": None}
    ).report

    assert [item.kind for item in report.degradations] == [
        DegradationKind.CONFIG_DEGRADATION,
        DegradationKind.CONFIG_DEGRADATION,
    ]
    assert report.painted_fields == ["old_owner_name"]


def test_stamp_empty_page_template_raises_and_writes_nothing(tmp_path: Path) -> None:
    factory = _PainterFactory()
    output = tmp_path / "out" / "result.pdf"

    with pytest.raises(TemplateError):
        _stamper(_layout(), factory).stamp(EMPTY_PAGE_PDF, _record(), output)

    assert not output.exists()
    assert all(not painter.calls for painter in factory.painters)


def test_stamp_unparseable_template_raises(tmp_path: Path) -> None:
    with pytest.raises(TemplateError):
        _stamper(_layout()).stamp(b"not a pdf", _record(), tmp_path / "result.pdf")


def test_stamp_is_byte_identical_for_same_input(tmp_path: Path) -> None:
    stamper = _stamper(_layout())
    template = _template_bytes(rotation=90)
    record = _record(
        old_owner_name="YAMADA TARO",
        old_owner_address="1-2-3 SHIBUYA",
        new_owner_name="SUZUKI ICHIRO",
        new_owner_address="4-5-6 KITA",
        vehicle_number="",
        chassis_number="ABC123456789",
    )

    stamper.stamp(template, record, tmp_path / "first.pdf")
    stamper.stamp(template, record, tmp_path / "second.pdf")

    first = (tmp_path / "first.pdf").read_bytes()
    assert first == (tmp_path / "second.pdf").read_bytes()
    assert first != template


def test_stamp_embeds_preferred_font(tmp_path: Path) -> None:
    font_path = tmp_path / "cjk.ttf"
    font_path.write_bytes(fitz.Font("cjk").buffer)
    font = load_font(font_path)
    assert font.degradation is None

    output = tmp_path / "transfer.pdf"
    report = _stamper(_layout(), font=font).stamp(_template_bytes(), _record(), output)

    assert report.degradations == []
    with fitz.open(output) as doc:
        assert doc.page_count == 1
        assert any(entry[4] == "notojp" for entry in doc[0].get_fonts())


def test_stamp_with_positions_uses_custom_layout(tmp_path: Path) -> None:
    factory = _PainterFactory()
    output = tmp_path / "custom.pdf"

    report = _stamper(_layout(), factory).stamp_with_positions(
        _template_bytes(),
        {"model": "セダン", "certification_date": "", "unused": "x"},
        output,
        {
            "model": {"x": 400, "y": 100, "fontSize": 11},
            "certification_date": {"x": 400, "y": 200},
        },
    )

    assert output.exists()
    assert report.painted_fields == ["model"]
    assert report.skipped_fields == ["certification_date"]
    assert factory.calls == [
        ("セ", 400, 100, 11, 90),
        ("ダ", 400, 116, 11, 90),
        ("ン", 400, 132, 11, 90),
    ]


def test_render_with_positions_rejects_non_right_angle_rotation() -> None:
    with pytest.raises(ValueError):
        _stamper(_layout()).render_with_positions(
            _template_bytes(), {"model": "x"}, {"model": {"x": 1, "y": 1}}, rotation=30
        )
