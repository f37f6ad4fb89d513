"""
Tests for layout export and zip import.

Covers:
- Normalized export geometry per orientation
- Nested children, depth ordering and duplicate-name disambiguation
- Export -> import round trip (geometry, assets, images)
- Malformed archives rejected without touching the layout
- Error reporter receives import failures
"""
import io
import json
import zipfile

import pytest

from conftest import make_jpeg, make_png
from models.layout import Layout
from services.asset_library import AssetLibrary
from services.file_operations import (
    LayoutImportError, export_layout_zip, get_export_data, get_layout_json, import_layout_zip,
)
from services.layout_editor import LayoutEditor
from utils.logger import set_error_reporter

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


def _export(editor):
    buffer = io.BytesIO()
    editor.export_zip(buffer)
    buffer.seek(0)
    return buffer


def _archive(members):
    """Zip bytes from a name -> bytes/str mapping"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    buffer.seek(0)
    return buffer


def _container_entry(**overrides):
    entry = {
        'depth': 0,
        'isLocked': False,
        'portrait': {'x': 0.5, 'y': 0.5, 'width': 0.2, 'height': 0.1},
        'landscape': {'x': 0.5, 'y': 0.5, 'width': 0.1, 'height': 0.2},
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def target_editor():
    """Empty editor with an empty library to import into"""
    return LayoutEditor(Layout(), AssetLibrary())


@pytest.fixture
def reporter():
    calls = []
    set_error_reporter(lambda title, message: calls.append((title, message)))
    yield calls
    set_error_reporter(None)


# ══════════════════════════════════════════════════════════════════════════
# Export
# ══════════════════════════════════════════════════════════════════════════

class TestExportData:

    def test_geometry_is_normalized_per_orientation(self, sized_container):
        layout, cid = sized_container
        data = get_export_data(layout)
        entry = data['Container 1']
        assert entry['portrait'] == pytest.approx({
            'x': 100 / 375, 'y': 100 / 667, 'width': 200 / 375, 'height': 100 / 667,
        })
        # default landscape box is centred on the rotated 667x375 frame
        assert entry['landscape'] == pytest.approx({
            'x': 0.5, 'y': 0.5, 'width': 100 / 667, 'height': 100 / 375,
        })
        assert entry['depth'] == 0.0
        assert entry['isLocked'] is False

    def test_other_device_basis(self, sized_container):
        layout, cid = sized_container
        layout.set_selected_device('iPad Mini')
        entry = get_export_data(layout)['Container 1']
        assert entry['portrait']['x'] == pytest.approx(100 / 744)

    def test_children_nested_and_assets_listed(self, sized_container):
        layout, cid = sized_container
        child = layout.add_container(parent_id=cid, name='Inner')
        asset_id = layout.add_asset(child, name='Logo', key='square')
        layout.update_asset(child, asset_id, {'rotation': 12}, 'portrait')

        entry = get_export_data(layout)['Container 1']
        inner = entry['children']['Inner']
        assert 'assets' not in entry
        assert 'children' not in inner
        exported = inner['assets'][asset_id]
        assert exported['name'] == 'square'
        assert exported['displayName'] == 'Logo'
        assert exported['portrait']['rotation'] == 12.0
        assert exported['portrait']['position'] == {'reference': 'container', 'x': 0.0, 'y': 0.0}
        assert exported['landscape']['scaleMode'] == 'fit'

    def test_scope_ordered_by_depth_descending(self, fresh_layout):
        for name in ('Low', 'Mid', 'High'):
            fresh_layout.add_container(name=name)
        assert list(get_export_data(fresh_layout)) == ['High', 'Mid', 'Low']

    def test_duplicate_names_disambiguated(self, fresh_layout):
        fresh_layout.add_container(name='Panel')
        fresh_layout.add_container(name='Panel')
        fresh_layout.add_container(name='Panel')
        assert list(get_export_data(fresh_layout)) == ['Panel', 'Panel (2)', 'Panel (3)']

    def test_layout_json_document(self, sized_container):
        layout, _ = sized_container
        document = get_layout_json(layout)
        assert document['device'] == 'iPhone SE'
        assert 'Container 1' in document['containers']
        json.dumps(document)


class TestExportZip:

    def test_archive_members(self, editor, sized_container):
        layout, cid = sized_container
        bound = layout.add_asset(cid, key='square')
        layout.add_asset(cid, key='')

        archive = zipfile.ZipFile(_export(editor))
        names = archive.namelist()
        assert 'layout.json' in names
        assert 'assets/' in names
        assert f'assets/{bound}.png' in names
        assert len([n for n in names if n.startswith('assets/') and not n.endswith('/')]) == 1

    def test_non_png_images_reencoded(self, editor, sized_container):
        layout, cid = sized_container
        editor.library.upload_image('photo', make_jpeg(30, 20))
        asset_id = layout.add_asset(cid, key='photo')

        members = export_layout_zip(layout, editor.library, io.BytesIO())
        assert members == [f'assets/{asset_id}.png']

        archive = zipfile.ZipFile(_export(editor))
        assert archive.read(f'assets/{asset_id}.png').startswith(PNG_SIGNATURE)


# ══════════════════════════════════════════════════════════════════════════
# Import
# ══════════════════════════════════════════════════════════════════════════

class TestImportRoundTrip:

    def test_geometry_round_trip(self, editor, sized_container, target_editor):
        layout, cid = sized_container
        child = layout.add_container(parent_id=cid, name='Inner')
        layout.update_container(child, {'x': 33.3, 'y': 66.6, 'width': 12.5, 'height': 7.25}, 'landscape')

        target_editor.import_zip(_export(editor))

        imported = target_editor.layout
        assert imported.get_container_count() == 2
        (root_id,) = imported.get_root_container_ids()
        (child_id,) = imported.get_child_container_ids(root_id)
        assert root_id != cid
        assert imported.get_container(child_id).name == 'Inner'
        for source_id, target_id in ((cid, root_id), (child, child_id)):
            for orientation in ('portrait', 'landscape'):
                expected = layout.get_container_position(source_id, orientation).to_dict()
                actual = imported.get_container_position(target_id, orientation).to_dict()
                assert actual == pytest.approx(expected, abs=1e-6)

    def test_assets_and_images_round_trip(self, editor, sized_container, target_editor):
        layout, cid = sized_container
        a = layout.add_asset(cid, name='Icon', key='wide')
        b = layout.add_asset(cid, key='square')
        layout.update_asset(cid, b, {'position': {'reference': a, 'x': 1}, 'scaleMode': 'fill'}, 'portrait')
        layout.toggle_asset_lock(cid, b)
        expected = editor.resolve_asset(cid, b, 'portrait')

        target_editor.import_zip(_export(editor))

        imported = target_editor.layout
        (root_id,) = imported.get_root_container_ids()
        assert sorted(imported.get_asset_ids(root_id)) == sorted([a, b])
        asset = imported.get_asset(root_id, b)
        assert asset.key == 'square'
        assert asset.is_locked
        assert asset.portrait.position.reference == a
        assert asset.portrait.scale_mode == 'fill'
        assert imported.get_asset(root_id, a).name == 'Icon'

        assert target_editor.library.has_image('wide')
        resolved = target_editor.resolve_asset(root_id, b, 'portrait')
        assert resolved.origin.x == pytest.approx(expected.origin.x)
        assert (resolved.width, resolved.height) == pytest.approx((expected.width, expected.height))

    def test_hidden_container_round_trip(self, editor, sized_container, target_editor):
        layout, cid = sized_container
        layout.add_container(parent_id=cid)
        layout.set_container_visible(cid, False)

        root_entry = next(iter(get_export_data(layout).values()))
        assert root_entry['isVisible'] is False
        assert 'isVisible' not in next(iter(root_entry['children'].values()))

        target_editor.import_zip(_export(editor))

        imported = target_editor.layout
        (root_id,) = imported.get_root_container_ids()
        (child_id,) = imported.get_child_container_ids(root_id)
        assert imported.get_container(root_id).is_visible is False
        assert imported.get_container(child_id).is_visible is True

    def test_import_resets_history(self, editor, sized_container, target_editor):
        target_editor.add_container()
        target_editor.import_zip(_export(editor))
        assert not target_editor.can_undo()
        assert target_editor.history_manager.get_current_description() == "Import Layout"

    def test_import_uses_selected_device(self, editor, sized_container, target_editor):
        target_editor.set_selected_device('iPad Mini')
        target_editor.import_zip(_export(editor))
        (root_id,) = target_editor.layout.get_root_container_ids()
        assert target_editor.layout.get_container_position(root_id, 'portrait').x == pytest.approx(100 / 375 * 744)

    def test_image_for_unbound_asset_uses_asset_id(self, fresh_layout, library):
        asset_id = 'hero'
        document = {'containers': {'Root': _container_entry(assets={
            asset_id: {'name': '', 'portrait': {}, 'landscape': {}},
        })}}
        source = _archive({
            'layout.json': json.dumps(document),
            f'assets/{asset_id}.png': make_png(8, 8),
        })
        import_layout_zip(fresh_layout, library, source)
        (root_id,) = fresh_layout.get_root_container_ids()
        assert fresh_layout.get_asset(root_id, asset_id).key == asset_id
        assert library.has_image(asset_id)


class TestImportFailures:

    def _assert_rejected(self, layout, library, source):
        before = layout.get_snapshot()
        keys = library.keys()
        with pytest.raises(LayoutImportError):
            import_layout_zip(layout, library, source)
        assert layout.get_snapshot() == before
        assert library.keys() == keys

    @pytest.fixture
    def populated(self, sized_container, library):
        layout, cid = sized_container
        layout.add_asset(cid, key='square')
        return layout, library

    def test_not_a_zip(self, populated):
        self._assert_rejected(*populated, io.BytesIO(b'definitely not a zip'))

    def test_missing_layout_json(self, populated):
        self._assert_rejected(*populated, _archive({'assets/': ''}))

    def test_missing_assets_folder(self, populated):
        self._assert_rejected(*populated, _archive({'layout.json': json.dumps({'containers': {}})}))

    def test_invalid_json(self, populated):
        self._assert_rejected(*populated, _archive({'layout.json': '{not json', 'assets/': ''}))

    def test_missing_containers_key(self, populated):
        self._assert_rejected(*populated, _archive({'layout.json': json.dumps({'device': 'x'}), 'assets/': ''}))

    def test_malformed_container(self, populated):
        document = {'containers': {'Broken': {'depth': 0, 'portrait': {'x': 0}}}}
        self._assert_rejected(*populated, _archive({'layout.json': json.dumps(document), 'assets/': ''}))

    def test_malformed_asset(self, populated):
        document = {'containers': {'Root': _container_entry(assets={
            'a1': {'name': 'k', 'portrait': {'scaleMode': 'squash'}, 'landscape': {}},
        })}}
        self._assert_rejected(*populated, _archive({'layout.json': json.dumps(document), 'assets/': ''}))

    @pytest.mark.parametrize('portrait', [
        {'position': [0, 0]},
        {'size': 0.5},
        {'origin': 'center'},
        [0, 0],
    ])
    def test_non_object_transform_part(self, populated, reporter, portrait):
        document = {'containers': {'Root': _container_entry(assets={
            'a1': {'name': 'k', 'portrait': portrait, 'landscape': {}},
        })}}
        self._assert_rejected(*populated, _archive({'layout.json': json.dumps(document), 'assets/': ''}))
        assert reporter == [("Import failed", "layout.json has malformed asset data")]

    def test_undecodable_image(self, populated):
        document = {'containers': {'Root': _container_entry(assets={
            'a1': {'name': 'fresh-key', 'portrait': {}, 'landscape': {}},
        })}}
        source = _archive({
            'layout.json': json.dumps(document),
            'assets/a1.png': b'not an image',
        })
        self._assert_rejected(*populated, source)

    def test_reporter_receives_failure(self, populated, reporter):
        with pytest.raises(LayoutImportError):
            import_layout_zip(*populated, io.BytesIO(b'junk'))
        assert reporter == [("Import failed", "File is not a readable zip archive")]

    def test_failed_editor_import_keeps_history(self, nested):
        editor, a_id, _ = nested
        editor.move_container(a_id, 5, 0, 'portrait')
        with pytest.raises(LayoutImportError):
            editor.import_zip(io.BytesIO(b'junk'))
        assert editor.can_undo()
        assert editor.layout.has_container(a_id)

    def test_empty_containers_is_valid(self, populated):
        layout, library = populated
        import_layout_zip(layout, library, _archive({'layout.json': json.dumps({'containers': {}}), 'assets/': ''}))
        assert layout.get_container_count() == 0
