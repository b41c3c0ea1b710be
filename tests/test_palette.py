import json

import pytest

from block_designer.colors import Color
from block_designer.errors import DecodeError, ValidationError
from block_designer.palette import (
    PaletteStore,
    Selection,
    palette_document,
    palette_to_json,
    palette_to_text,
    parse_palette,
)


def make_store(*hexes):
    store = PaletteStore()
    for h in hexes:
        store.add_color(h)
    return store


def test_selection_evicts_first_selected():
    sel = Selection()
    sel.toggle("#111111")
    sel.toggle("#222222")
    sel.toggle("#333333")
    assert sel.as_tuple() == ("#222222", "#333333")


def test_selection_toggle_deselects():
    sel = Selection(["#111111", "#222222"])
    sel.toggle("#111111")
    assert sel.as_tuple() == ("#222222",)
    assert len(sel) == 1


def test_add_color_appends_and_rejects_bad_hex():
    store = make_store("#FF0000")
    assert store.add_color("#00FF00", "Green") == Color("#00FF00", "Green")
    assert store.add_color("green") is None
    assert store.add_color("#12345") is None
    assert store.hexes() == ["#FF0000", "#00FF00"]


def test_remove_color_drops_it_from_selection():
    store = make_store("#FF0000", "#00FF00", "#0000FF")
    store.toggle_select("#00FF00")
    store.toggle_select("#0000FF")
    assert store.remove_color(1)
    assert store.hexes() == ["#FF0000", "#0000FF"]
    assert store.selection.as_tuple() == ("#0000FF",)
    assert store.color_map() == {
        "0": {"hex": "#FF0000", "name": "Color 1"},
        "1": {"hex": "#0000FF", "name": "Color 2"},
    }


def test_out_of_range_operations_are_noops():
    store = make_store("#FF0000", "#00FF00")
    before = list(store.colors)
    assert not store.remove_color(5)
    assert not store.remove_color(-1)
    assert not store.rename(2, "x")
    assert not store.recolor(9, "#000000")
    assert not store.move_left(0)
    assert not store.move_right(1)
    assert store.colors == before


def test_move_left_then_right_is_identity():
    store = make_store("#111111", "#222222", "#333333", "#444444")
    before = list(store.colors)
    assert store.move_left(2)
    assert store.hexes() == ["#111111", "#333333", "#222222", "#444444"]
    assert store.move_right(1)
    assert store.colors == before


def test_move_selected_resolves_current_position():
    store = make_store("#111111", "#222222", "#333333")
    store.toggle_select("#333333")
    assert store.move_selected_left()
    assert store.move_selected_left()
    assert store.hexes() == ["#333333", "#111111", "#222222"]
    assert not store.move_selected_left()
    assert store.move_selected_right()
    assert store.selected_index() == 1


def test_move_selected_requires_exactly_one_selection():
    store = make_store("#111111", "#222222", "#333333")
    store.toggle_select("#111111")
    store.toggle_select("#222222")
    assert store.selected_index() == -1
    assert not store.move_selected_right()
    assert store.hexes() == ["#111111", "#222222", "#333333"]


@pytest.mark.parametrize("clicks", [("#FF0000", "#0000FF"), ("#0000FF", "#FF0000")])
def test_blend_insert_goes_after_lower_index(clicks):
    store = make_store("#FF0000", "#00FF00", "#0000FF")
    for h in clicks:
        store.toggle_select(h)
    inserted = store.blend_insert(1)
    assert len(inserted) == 1
    assert len(store) == 4
    assert store.hexes()[0] == "#FF0000"
    assert store.colors[1] == inserted[0]
    assert store.hexes()[2:] == ["#00FF00", "#0000FF"]
    assert len(store.selection) == 0


def test_blend_insert_is_independent_of_click_order():
    a = make_store("#FF0000", "#00FF00", "#0000FF")
    b = make_store("#FF0000", "#00FF00", "#0000FF")
    a.toggle_select("#FF0000")
    a.toggle_select("#0000FF")
    b.toggle_select("#0000FF")
    b.toggle_select("#FF0000")
    a.blend_insert(3)
    b.blend_insert(3)
    assert a.colors == b.colors


def test_blend_insert_needs_two_selected():
    store = make_store("#FF0000", "#0000FF")
    store.toggle_select("#FF0000")
    assert store.blend_insert(2) == []
    assert len(store) == 2
    assert store.selection.as_tuple() == ("#FF0000",)


def test_blend_insert_bad_count_leaves_state():
    store = make_store("#FF0000", "#0000FF")
    store.toggle_select("#FF0000")
    store.toggle_select("#0000FF")
    with pytest.raises(ValidationError):
        store.blend_insert(0)
    assert len(store) == 2
    assert len(store.selection) == 2


def test_recolor_updates_selection_reference():
    store = make_store("#FF0000", "#0000FF")
    store.toggle_select("#FF0000")
    assert store.recolor(0, "#ff8800")
    assert store.hexes() == ["#FF8800", "#0000FF"]
    assert store.selection.as_tuple() == ("#FF8800",)
    assert not store.recolor(0, "orange")
    assert store.hexes()[0] == "#FF8800"


def test_recolor_onto_other_selected_color_keeps_selection_distinct():
    store = make_store("#FF0000", "#0000FF")
    store.toggle_select("#FF0000")
    store.toggle_select("#0000FF")
    assert store.recolor(0, "#0000FF")
    assert store.selection.as_tuple() == ("#0000FF",)
    store.toggle_select("#0000FF")
    assert len(store.selection) == 0


def test_rename_keeps_hex():
    store = make_store("#FF0000")
    store.rename(0, "Brick")
    assert store.colors[0] == Color("#FF0000", "Brick")


def test_toggle_select_ignores_colors_not_in_palette():
    store = make_store("#FF0000")
    store.toggle_select("#00FF00")
    assert len(store.selection) == 0
    with pytest.raises(ValidationError):
        store.toggle_select("nope")


def test_mutations_replace_the_color_list():
    store = make_store("#FF0000", "#00FF00")
    snapshot = store.colors
    store.move_right(0)
    assert snapshot == [Color("#FF0000"), Color("#00FF00")]


def test_export_formats():
    colors = [Color("#FF0000", "Red"), Color("#00FF00")]
    assert json.loads(palette_to_json(colors)) == [
        {"hex": "#FF0000", "name": "Red"},
        {"hex": "#00FF00", "name": ""},
    ]
    assert palette_to_text(colors) == "#FF0000, Red\n#00FF00, #00FF00"
    doc = palette_document(colors, "Sunset")
    assert doc["format"] == "palette"
    assert doc["name"] == "Sunset"
    assert doc["version"] == "1.0.0"
    assert doc["colors"][0] == {"hex": "#FF0000", "name": "Red"}


def test_parse_palette_reads_every_export_format():
    colors = [Color("#FF0000", "Red"), Color("#00FF00")]
    assert parse_palette(palette_to_json(colors)) == colors
    assert parse_palette(palette_to_text(colors)) == colors
    assert parse_palette(palette_document(colors)) == colors
    assert parse_palette(json.dumps(palette_document(colors))) == colors


def test_parse_palette_skips_invalid_entries():
    data = [{"hex": "#FF0000"}, {"hex": "red"}, {"name": "x"}, "junk"]
    assert parse_palette(data) == [Color("#FF0000")]


@pytest.mark.parametrize("payload", ["[not json", {"format": "other", "colors": []}, [], "red, Red"])
def test_parse_palette_rejects_unusable_data(payload):
    with pytest.raises(DecodeError):
        parse_palette(payload)


def test_import_palette_replaces_colors_and_selection():
    store = make_store("#111111")
    store.toggle_select("#111111")
    assert store.import_palette('[{"hex": "#abcdef", "name": "Sky"}]') == 1
    assert store.colors == [Color("#ABCDEF", "Sky")]
    assert len(store.selection) == 0
