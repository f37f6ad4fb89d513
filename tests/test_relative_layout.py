"""
Tests for edge-attached (relative) container placement.

Covers:
- Edge math for pixel and percent gaps
- Dependency ordering, cycles and missing references
- Read-only resolution vs. applying through the editor
"""
import pytest

from models.transform import Box, RelativePosition
from services.relative_layout import (
    SCREEN, apply_relative_layout, place_against, relative_layout_order, resolve_relative_layout,
)

FRAME = Box(187.5, 333.5, 375, 667)


# ══════════════════════════════════════════════════════════════════════════
# Edge math
# ══════════════════════════════════════════════════════════════════════════

class TestPlaceAgainst:

    def test_left_to_screen_left_with_gap(self):
        placed = place_against(Box(50, 50, 20, 20), FRAME, RelativePosition(SCREEN, 'left', 'left', 10), FRAME)
        assert (placed.x, placed.y) == (20.0, 50)

    def test_right_to_screen_right_with_gap(self):
        placed = place_against(Box(50, 50, 20, 20), FRAME, RelativePosition(SCREEN, 'right', 'right', 10), FRAME)
        assert placed.x == 355.0

    def test_left_against_reference_right(self):
        reference = Box(100, 100, 40, 40)
        placed = place_against(Box(0, 0, 20, 20), reference, RelativePosition('r', 'right', 'left', 5), FRAME)
        assert placed.left == 125.0

    def test_percent_gap_uses_frame_height(self):
        reference = Box(100, 100, 40, 40)
        relative = RelativePosition('r', 'bottom', 'top', 10, 'percent')
        placed = place_against(Box(7, 0, 20, 20), reference, relative, FRAME)
        assert placed.top == pytest.approx(120 + 66.7)
        assert placed.x == 7

    def test_bottom_to_screen_bottom(self):
        placed = place_against(Box(0, 0, 20, 30), FRAME, RelativePosition(SCREEN, 'bottom', 'bottom'), FRAME)
        assert placed.bottom == 667.0

    def test_different_axes_give_none(self):
        relative = RelativePosition(SCREEN, 'top', 'left')
        assert place_against(Box(0, 0, 10, 10), FRAME, relative, FRAME) is None

    def test_invalid_edge_raises(self):
        with pytest.raises(ValueError):
            RelativePosition(SCREEN, 'middle', 'left')
        with pytest.raises(ValueError):
            RelativePosition(SCREEN, 'left', 'left', 1, 'em')

    def test_dict_round_trip(self):
        relative = RelativePosition('abc', 'top', 'bottom', 4.5, 'percent')
        assert relative.to_dict()['gapUnit'] == 'percent'
        assert RelativePosition.from_dict(relative.to_dict()) == relative


# ══════════════════════════════════════════════════════════════════════════
# Ordering
# ══════════════════════════════════════════════════════════════════════════

class TestOrdering:

    def test_references_come_first(self, fresh_layout):
        a = fresh_layout.add_container()
        b = fresh_layout.add_container()
        fresh_layout.set_relative_position(b, RelativePosition(a, 'right', 'left'))
        fresh_layout.set_relative_position(a, RelativePosition(SCREEN, 'left', 'left'))
        assert relative_layout_order(fresh_layout) == [a, b]

    def test_cycle_members_omitted(self, fresh_layout):
        a = fresh_layout.add_container()
        c = fresh_layout.add_container()
        d = fresh_layout.add_container()
        fresh_layout.set_relative_position(a, RelativePosition(SCREEN, 'top', 'top'))
        fresh_layout.set_relative_position(c, RelativePosition(d, 'right', 'left'))
        fresh_layout.set_relative_position(d, RelativePosition(c, 'right', 'left'))
        assert relative_layout_order(fresh_layout) == [a]

    def test_self_reference_rejected(self, fresh_layout):
        a = fresh_layout.add_container()
        with pytest.raises(ValueError):
            fresh_layout.set_relative_position(a, RelativePosition(a, 'left', 'right'))


# ══════════════════════════════════════════════════════════════════════════
# Resolution
# ══════════════════════════════════════════════════════════════════════════

class TestResolve:

    def test_resolution_is_read_only(self, fresh_layout):
        a = fresh_layout.add_container()
        fresh_layout.set_relative_position(a, RelativePosition(SCREEN, 'left', 'left'))
        snapshot = fresh_layout.get_snapshot()

        boxes = resolve_relative_layout(fresh_layout, 'portrait')

        assert boxes[a].x == 50.0
        assert fresh_layout.get_snapshot() == snapshot

    def test_missing_reference_keeps_stored_box(self, fresh_layout):
        a = fresh_layout.add_container()
        fresh_layout.set_relative_position(a, RelativePosition('gone', 'left', 'left'))
        boxes = resolve_relative_layout(fresh_layout, 'portrait')
        assert boxes[a] == fresh_layout.get_container_position(a, 'portrait').to_box()

    def test_landscape_uses_rotated_frame(self, fresh_layout):
        a = fresh_layout.add_container()
        fresh_layout.set_relative_position(a, RelativePosition(SCREEN, 'right', 'right'))
        assert resolve_relative_layout(fresh_layout, 'landscape')[a].x == 667.0 - 50.0

    def test_attachment_survives_snapshot(self, fresh_layout):
        a = fresh_layout.add_container()
        relative = RelativePosition(SCREEN, 'top', 'top', 12)
        fresh_layout.set_relative_position(a, relative)
        fresh_layout.set_snapshot(fresh_layout.get_snapshot())
        assert fresh_layout.get_container(a).relative_position == relative


class TestApply:

    def test_apply_moves_chain_and_children_in_one_step(self, editor):
        layout = editor.layout
        a = editor.add_container()
        child = editor.add_container(parent_id=a)
        b = editor.add_container()
        layout.set_relative_position(a, RelativePosition(SCREEN, 'left', 'left'))
        layout.set_relative_position(b, RelativePosition(a, 'right', 'left', 5))
        editor.reset_history()

        moved = apply_relative_layout(editor, 'portrait')

        assert moved == [a, b]
        assert layout.get_container_position(a, 'portrait').x == 50.0
        assert layout.get_container_position(child, 'portrait').x == 50.0
        assert layout.get_container_position(b, 'portrait').x == 155.0
        assert len(editor.history_manager.history) == 2
        assert editor.history_manager.get_current_description() == "Apply relative layout"

    def test_apply_skips_locked(self, editor):
        a = editor.add_container()
        editor.layout.set_relative_position(a, RelativePosition(SCREEN, 'left', 'left'))
        editor.toggle_container_lock(a)
        assert apply_relative_layout(editor, 'portrait') == []
        assert editor.layout.get_container_position(a, 'portrait').x == 187.5

    def test_apply_already_placed_is_noop(self, editor):
        a = editor.add_container()
        editor.layout.set_relative_position(a, RelativePosition(SCREEN, 'left', 'left'))
        apply_relative_layout(editor, 'portrait')
        size = len(editor.history_manager.history)
        assert apply_relative_layout(editor, 'portrait') == []
        assert len(editor.history_manager.history) == size
