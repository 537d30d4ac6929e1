"""Tests for the slide layout editor (host boundary)."""

from unittest.mock import Mock

import pytest

from app.core.config import Settings
from app.core.exceptions import LayoutContractError, LayoutDeserializationError
from app.domain.schemas.layout import ConnectionKind
from app.services.slides.layouts import (
    BlockSpan,
    ColumnLayout,
    GridLayout,
    GridPosition,
    RejectionReason,
    SlideLayoutEditor,
)
from tests.fixtures.layout import make_block


class TestSlideLayoutEditor:
    """Test suite for editor operations and notifications."""

    @pytest.fixture
    def layout_listener(self):
        return Mock()

    @pytest.fixture
    def connections_listener(self):
        return Mock()

    @pytest.fixture
    def editor(self, blocks, coverage_settings, layout_listener, connections_listener):
        editor = SlideLayoutEditor(
            "slide-1",
            blocks,
            settings=coverage_settings,
            on_layout_change=layout_listener,
            on_connections_change=connections_listener,
        )
        editor.resize(2, 2)
        layout_listener.reset_mock()
        connections_listener.reset_mock()
        return editor

    def test_new_editor_starts_with_empty_grid(self, blocks):
        editor = SlideLayoutEditor("slide-1", blocks)

        assert editor.layout == GridLayout.empty()
        assert editor.connections() == []

    def test_drag_and_drop_assigns_block(self, editor, layout_listener):
        editor.on_drag_start("block-0")
        result = editor.on_drop(1, 1)

        assert result
        assert editor.layout.position_of("block-0") == GridPosition(1, 1)
        assert editor.dragged_block_id is None
        layout_listener.assert_called_once_with("slide-1", editor.layout)

    def test_drop_without_drag_is_refused(self, editor, layout_listener):
        result = editor.on_drop(0, 0)

        assert not result
        assert result.reason == RejectionReason.NO_DRAG
        layout_listener.assert_not_called()

    def test_refused_drop_ends_drag_and_keeps_layout(self, editor, layout_listener):
        editor.assign("block-0", 0, 0)
        before = editor.layout
        layout_listener.reset_mock()

        editor.on_drag_start("block-1")
        result = editor.on_drop(0, 0)

        assert result.reason == RejectionReason.CELL_OCCUPIED
        assert editor.layout is before
        assert editor.dragged_block_id is None
        layout_listener.assert_not_called()

    def test_drag_cancel(self, editor):
        editor.on_drag_start("block-2")
        editor.on_drag_cancel()

        assert editor.dragged_block_id is None
        assert not editor.on_drop(0, 0)

    def test_drop_on_covered_cell_is_refused(self, editor):
        editor.assign("block-0", 0, 0)
        assert editor.set_span("block-0", 1, 2)

        editor.on_drag_start("block-1")
        result = editor.on_drop(0, 1)

        assert result.reason == RejectionReason.CELL_COVERED

    def test_origin_only_policy_from_settings(self, blocks, origin_only_settings):
        editor = SlideLayoutEditor("slide-1", blocks, settings=origin_only_settings)
        editor.resize(2, 2)
        editor.assign("block-0", 0, 0)
        editor.set_span("block-0", 1, 2)

        assert editor.assign("block-1", 0, 1)

    def test_resize_beyond_authoring_bounds_is_refused(self, editor, layout_listener):
        result = editor.resize(6, 2)

        assert not result
        assert result.reason == RejectionReason.GRID_LIMIT
        assert (editor.layout.rows, editor.layout.columns) == (2, 2)
        layout_listener.assert_not_called()

    def test_resize_bounds_follow_settings(self, blocks):
        editor = SlideLayoutEditor("slide-1", blocks, settings=Settings(GRID_MAX_COLUMNS=8))

        assert editor.resize(3, 8)

    def test_shrink_truncates_through_editor(self, editor):
        editor.assign("block-0", 1, 1)

        assert editor.resize(1, 1)
        assert editor.layout.position_of("block-0") == GridPosition(0, 0)

    def test_unknown_block_fails_fast(self, editor):
        with pytest.raises(LayoutContractError):
            editor.assign("not-on-slide", 0, 0)
        with pytest.raises(LayoutContractError):
            editor.on_drag_start("not-on-slide")

    def test_remove_block_prunes_layout(self, editor):
        editor.assign("block-0", 0, 0)
        editor.set_span("block-0", 2, 1)

        editor.remove_block("block-0")

        assert "block-0" not in editor.block_ids
        assert "block-0" not in editor.layout.positions
        assert "block-0" not in editor.layout.spans

    def test_removing_dragged_block_ends_drag(self, editor):
        editor.on_drag_start("block-3")
        editor.remove_block("block-3")

        assert editor.dragged_block_id is None

    def test_initial_layout_is_pruned(self, blocks):
        stale = GridLayout(2, 2, positions={"deleted": GridPosition(0, 0)})

        editor = SlideLayoutEditor("slide-1", blocks, stale)

        assert dict(editor.layout.positions) == {}

    def test_add_block(self, editor, layout_listener):
        editor.add_block(make_block("extra", type="image"))

        assert editor.block_ids[-1] == "extra"
        layout_listener.assert_called_once()
        with pytest.raises(LayoutContractError):
            editor.add_block(make_block("extra"))

    def test_unassign(self, editor):
        editor.assign("block-0", 0, 0)
        editor.unassign("block-0")

        assert editor.layout.position_of("block-0") is None
        assert "block-0" in editor.block_ids

    def test_group_blocks_links_them(self, editor, connections_listener):
        editor.assign("block-0", 1, 0)
        editor.assign("block-1", 0, 0)
        connections_listener.reset_mock()

        group_id = editor.group_blocks(["block-0", "block-1"])

        assert group_id.startswith("group-")
        connections = editor.connections()
        assert [(c.from_block, c.to_block) for c in connections] == [("block-1", "block-0")]
        connections_listener.assert_called_once_with("slide-1", connections)

    def test_group_blocks_with_explicit_id(self, editor):
        assert editor.group_blocks(["block-2", "block-3"], group_id="pair") == "pair"
        assert [b.group_id for b in editor.blocks] == [None, None, "pair", "pair"]

    def test_ungroup_block(self, editor):
        editor.group_blocks(["block-0", "block-1"], group_id="pair")
        editor.ungroup_block("block-0")

        assert editor.connections() == []

    def test_to_dict(self, editor):
        editor.assign("block-0", 0, 0)
        editor.set_span("block-0", 1, 2)

        payload = editor.to_dict()

        assert payload["id"] == "slide-1"
        assert payload["blocks"][0] == {"id": "block-0", "type": "text"}
        assert payload["layout"]["blockSpans"] == {"block-0": {"rowSpan": 1, "columnSpan": 2}}
        assert payload["connections"] == [
            {"from": "block-0", "to": "block-0", "kind": "span", "color": "#9333ea"}
        ]

    def test_from_dict_restores_layout_and_content(self):
        payload = {
            "id": "slide-9",
            "blocks": [
                {"id": "q", "type": "question", "question": "2 + 2?", "groupId": "g"},
                {"id": "img", "type": "image", "url": "https://example.org/a.png", "groupId": "g"},
            ],
            "layout": {
                "gridRows": 2,
                "gridColumns": 2,
                "blockPositions": {"q": {"row": 0, "column": 0}, "img": {"row": 1, "column": 0}},
                "blockSpans": {"img": {"rowSpan": 1, "columnSpan": 2}},
            },
            "connections": [{"from": "stale", "to": "stale", "kind": "span"}],
        }

        editor = SlideLayoutEditor.from_dict(payload)

        assert editor.layout.span_of("img") == BlockSpan(1, 2)
        assert editor.blocks[0].model_dump(by_alias=True)["question"] == "2 + 2?"
        kinds = [(c.kind, c.from_block, c.to_block) for c in editor.connections()]
        assert kinds == [
            (ConnectionKind.SPAN, "img", "img"),
            (ConnectionKind.GROUP, "q", "img"),
        ]

    def test_from_dict_rejects_malformed_payload(self):
        with pytest.raises(LayoutDeserializationError):
            SlideLayoutEditor.from_dict({"blocks": []})

    def test_column_fields_survive_round_trip(self):
        payload = {
            "id": "slide-3",
            "blocks": [{"id": "a", "type": "text"}, {"id": "b", "type": "image"}],
            "layout": {
                "gridRows": 1,
                "gridColumns": 1,
                "columnCount": 2,
                "columnWidths": [30, 70],
                "blockAssignments": {"b": 1},
            },
        }

        layout = SlideLayoutEditor.from_dict(payload).to_dict()["layout"]

        assert layout["columnCount"] == 2
        assert layout["columnWidths"] == [30, 70]
        assert layout["blockAssignments"] == {"b": 1}
        assert layout["gridRows"] == 1

    def test_remove_block_prunes_column_assignment(self, editor):
        editor.set_column_count(2)
        editor.assign_column("block-1", 1)

        editor.remove_block("block-1")

        assert dict(editor.columns.block_assignments) == {}
        assert "block-1" not in editor.to_dict()["layout"]["blockAssignments"]

    def test_column_width_change_notifies(self, editor, layout_listener):
        editor.set_column_count(2)
        layout_listener.reset_mock()

        assert editor.set_column_width(0, 40)
        assert editor.columns.column_widths == (40, 60)
        layout_listener.assert_called_once_with("slide-1", editor.layout)

        layout_listener.reset_mock()
        assert not editor.set_column_width(0, 95)
        layout_listener.assert_not_called()

    def test_new_editor_has_single_column(self, blocks):
        editor = SlideLayoutEditor("slide-1", blocks)

        assert editor.columns == ColumnLayout()
        assert editor.to_dict()["layout"]["columnWidths"] == [100]
