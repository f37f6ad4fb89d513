"""
Tests for cascading updates.

Covers:
- Container moves translate every descendant by the same delta
- Resizes leave descendants in place
- Locks do not stop a cascade
- Asset changes refresh direct and transitive sibling dependents
- Cycles terminate
"""
import pytest

from services.propagation import CascadePropagator, PropagationResult


def _box(layout, container_id, orientation='portrait'):
    pos = layout.get_container_position(container_id, orientation)
    return (pos.x, pos.y, pos.width, pos.height)


# ══════════════════════════════════════════════════════════════════════════
# Container cascades
# ══════════════════════════════════════════════════════════════════════════

class TestContainerCascade:

    def test_move_parent_moves_child(self, nested):
        editor, a_id, b_id = nested
        landscape_before = _box(editor.layout, b_id, 'landscape')

        assert editor.move_container(a_id, 20, -10, 'portrait')

        assert _box(editor.layout, a_id) == (120.0, 90.0, 200.0, 100.0)
        assert _box(editor.layout, b_id) == (120.0, 90.0, 100.0, 50.0)
        assert _box(editor.layout, b_id, 'landscape') == landscape_before

    def test_update_container_cascades_position_delta(self, nested):
        editor, a_id, b_id = nested
        editor.update_container(a_id, {'x': 130, 'y': 100}, 'portrait')
        assert _box(editor.layout, b_id) == (130.0, 100.0, 100.0, 50.0)

    def test_grandchild_follows(self, nested):
        editor, a_id, b_id = nested
        c_id = editor.layout.add_container(parent_id=b_id)
        before = _box(editor.layout, c_id)
        editor.move_container(a_id, 5, 7, 'portrait')
        after = _box(editor.layout, c_id)
        assert after == (before[0] + 5, before[1] + 7, before[2], before[3])

    def test_locked_child_still_follows(self, nested):
        editor, a_id, b_id = nested
        editor.toggle_container_lock(b_id)
        editor.move_container(a_id, 20, 0, 'portrait')
        assert _box(editor.layout, b_id)[0] == 120.0

    def test_locked_parent_rejects_move(self, nested):
        editor, a_id, b_id = nested
        editor.toggle_container_lock(a_id)
        assert editor.move_container(a_id, 20, 0, 'portrait') is False
        assert _box(editor.layout, a_id)[0] == 100.0
        assert _box(editor.layout, b_id)[0] == 100.0

    def test_resize_does_not_move_children(self, nested):
        editor, a_id, b_id = nested
        editor.resize_container(a_id, 400, 300, 'portrait')
        assert _box(editor.layout, a_id) == (100.0, 100.0, 400.0, 300.0)
        assert _box(editor.layout, b_id) == (100.0, 100.0, 100.0, 50.0)

    def test_resize_clamps_to_minimum(self, nested):
        editor, a_id, _ = nested
        editor.resize_container(a_id, 1, -3, 'portrait')
        assert _box(editor.layout, a_id)[2:] == (5.0, 5.0)

    def test_cascade_refreshes_container_relative_assets(self, nested):
        editor, a_id, b_id = nested
        asset_id = editor.layout.add_asset(b_id, key='square')
        events = []
        editor.add_listener(events.append)

        editor.move_container(a_id, 10, 0, 'portrait')

        refreshed = [(e.container_id, e.asset_id) for e in events if e.kind == 'asset_refreshed']
        assert (b_id, asset_id) in refreshed

    def test_assets_follow_parent_move(self, nested):
        editor, a_id, b_id = nested
        asset_id = editor.layout.add_asset(b_id, key='square')
        before = editor.resolve_asset(b_id, asset_id, 'portrait').origin
        editor.move_container(a_id, 10, 20, 'portrait')
        after = editor.resolve_asset(b_id, asset_id, 'portrait').origin
        assert (after.x - before.x, after.y - before.y) == (10.0, 20.0)

    def test_result_lists_translated_descendants(self, nested):
        editor, a_id, b_id = nested
        layout = editor.layout
        layout.translate_container(a_id, 1, 1, 'portrait')
        result = CascadePropagator(layout).propagate_container_change(a_id, 'portrait', 1, 1)
        assert result.translated_containers == [b_id]


# ══════════════════════════════════════════════════════════════════════════
# Asset cascades
# ══════════════════════════════════════════════════════════════════════════

class TestAssetCascade:

    def _chain(self, layout, container_id, length):
        ids = [layout.add_asset(container_id, key='square')]
        for _ in range(length - 1):
            asset_id = layout.add_asset(container_id, key='square')
            layout.update_asset(container_id, asset_id, {'position': {'reference': ids[-1]}}, 'portrait')
            ids.append(asset_id)
        return ids

    def test_transitive_dependents_refreshed_breadth_first(self, sized_container):
        layout, cid = sized_container
        a, b, c = self._chain(layout, cid, 3)
        result = CascadePropagator(layout).propagate_asset_change(cid, a, 'portrait')
        assert result.refreshed_assets == [b, c]

    def test_other_orientation_dependents_ignored(self, sized_container):
        layout, cid = sized_container
        a, b = self._chain(layout, cid, 2)
        result = CascadePropagator(layout).propagate_asset_change(cid, a, 'landscape')
        assert result.refreshed_assets == []

    def test_cycle_terminates(self, sized_container):
        layout, cid = sized_container
        a, b = self._chain(layout, cid, 2)
        layout.update_asset(cid, a, {'position': {'reference': b}}, 'portrait')
        result = CascadePropagator(layout).propagate_asset_change(cid, a, 'portrait')
        assert result.refreshed_assets == [b]

    def test_editor_move_keeps_dependent_relative(self, editor, sized_container):
        layout, cid = sized_container
        a = layout.add_asset(cid, key='square')
        b = layout.add_asset(cid, key='square')
        layout.update_asset(cid, b, {'position': {'reference': a, 'x': 1}}, 'portrait')
        before_b = editor.resolve_asset(cid, b, 'portrait').origin

        assert editor.move_asset(cid, a, 10, 0, 'portrait')

        after_b = editor.resolve_asset(cid, b, 'portrait').origin
        assert after_b.x == pytest.approx(before_b.x + 10)
        assert after_b.y == pytest.approx(before_b.y)
        assert layout.get_asset_transform(cid, b, 'portrait').position.x == 1.0

    def test_editor_resize_fits_image_aspect(self, editor, sized_container):
        layout, cid = sized_container
        aid = layout.add_asset(cid, key='square')

        assert editor.resize_asset(cid, aid, 80, 40, 'portrait')

        size = layout.get_asset_transform(cid, aid, 'portrait').size
        assert (size.width, size.height) == (pytest.approx(0.2), pytest.approx(0.4))
        resolved = editor.resolve_asset(cid, aid, 'portrait')
        assert (resolved.width, resolved.height) == (pytest.approx(40), pytest.approx(40))

    def test_editor_resize_clamps_stretched_asset(self, editor, sized_container):
        layout, cid = sized_container
        aid = layout.add_asset(cid, key='square')
        layout.update_asset(cid, aid, {'scaleMode': 'stretch'}, 'portrait')

        assert editor.resize_asset(cid, aid, 1, -2, 'portrait')

        size = layout.get_asset_transform(cid, aid, 'portrait').size
        assert size.width == pytest.approx(5 / 200)
        assert size.height == pytest.approx(5 / 100)


class TestPropagationResult:

    def test_merge_deduplicates(self):
        first = PropagationResult(['c1'], ['a1'])
        first.merge(PropagationResult(['c1', 'c2'], ['a1', 'a2']))
        assert first.translated_containers == ['c1', 'c2']
        assert first.refreshed_assets == ['a1', 'a2']
