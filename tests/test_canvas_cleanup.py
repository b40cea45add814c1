from __future__ import annotations

from modernizer.layout.canvas import (
    CanvasControl,
    TargetPage,
    build_section,
    build_sections,
    remove_empty_sections_and_columns,
    remove_empty_text_controls,
)


def _control(target_type: str = "Text", text: str | None = "<p>x</p>") -> CanvasControl:
    return CanvasControl(
        instance_id=f"id-{target_type}-{text}",
        target_type=target_type,
        source_type="Modernizer.WikiTextPart",
        text=text,
    )


def test_build_sections_uses_highest_column_per_row() -> None:
    sections = build_sections([(0, 0), (0, 2), (1, 1), (3, 0)])

    assert [(s.row, s.template) for s in sections] == [
        (0, "ThreeColumn"),
        (1, "TwoColumn"),
        (3, "OneColumn"),
    ]
    assert [c.factor for c in sections[0].columns] == [4, 4, 4]


def test_build_section_caps_column_count() -> None:
    section = build_section(0, 5)

    assert section.template == "ThreeColumn"
    assert section.column(7).index == 2


def test_three_columns_with_two_empty_collapse_to_one() -> None:
    section = build_section(0, 3)
    section.columns[1].controls.append(_control())
    page = TargetPage(name="a.aspx", sections=[section])

    remove_empty_sections_and_columns(page)

    assert len(page.sections) == 1
    collapsed = page.sections[0]
    assert collapsed.template == "OneColumn"
    assert [(c.index, c.factor) for c in collapsed.columns] == [(0, 12)]
    assert collapsed.columns[0].controls[0].text == "<p>x</p>"


def test_three_columns_with_one_empty_become_two_halves() -> None:
    section = build_section(0, 3)
    section.columns[0].controls.append(_control())
    section.columns[2].controls.append(_control(text="<p>y</p>"))
    page = TargetPage(name="a.aspx", sections=[section])

    remove_empty_sections_and_columns(page)

    collapsed = page.sections[0]
    assert collapsed.template == "TwoColumn"
    assert [(c.index, c.factor) for c in collapsed.columns] == [(0, 6), (1, 6)]
    assert collapsed.columns[1].controls[0].text == "<p>y</p>"


def test_empty_sections_are_dropped() -> None:
    filled = build_section(1, 1)
    filled.columns[0].controls.append(_control())
    page = TargetPage(name="a.aspx", sections=[build_section(0, 2), filled])

    remove_empty_sections_and_columns(page)

    assert [section.row for section in page.sections] == [1]


def test_remove_empty_text_controls_keeps_media_and_components() -> None:
    section = build_section(0, 1)
    section.columns[0].controls.extend(
        [
            _control(text="<p> </p>"),
            _control(text='<p><img src="/a.png"/></p>'),
            _control(text=None),
            _control(target_type="Image", text=None),
        ]
    )
    page = TargetPage(name="a.aspx", sections=[section])

    removed = remove_empty_text_controls(page)

    assert removed == 2
    assert [c.target_type for c in page.controls()] == ["Text", "Image"]
