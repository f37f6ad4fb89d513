"""
Tests for the asset library.

Covers:
- Upload validation (empty key, size limit, undecodable data)
- Metadata and size lookup
- Begin/complete loading with late completions ignored
- Library events refreshing bound assets in the editor
"""
import pytest

from services.asset_library import AssetLibrary


class TestUpload:

    def test_upload_records_metadata(self, png_bytes):
        library = AssetLibrary()
        data = png_bytes(40, 10)
        metadata = library.upload_image('banner', data, name='banner.png')
        assert (metadata.width, metadata.height) == (40, 10)
        assert metadata.size_bytes == len(data)
        assert metadata.name == 'banner.png'
        assert metadata.aspect_ratio == 4.0
        assert library.get_image_size('banner').width == 40.0
        assert library.get_image_data('banner') == data
        assert library.keys() == ['banner']

    def test_empty_key_rejected(self, png_bytes):
        with pytest.raises(ValueError):
            AssetLibrary().upload_image('', png_bytes(1, 1))

    def test_size_limit(self, png_bytes):
        data = png_bytes(10, 10)
        library = AssetLibrary(max_upload_bytes=len(data) - 1)
        with pytest.raises(ValueError):
            library.upload_image('big', data)
        assert not library.has_image('big')

    def test_not_an_image(self):
        with pytest.raises(ValueError):
            AssetLibrary().upload_image('junk', b'plain text')

    def test_replace_keeps_single_entry(self, png_bytes):
        library = AssetLibrary()
        library.upload_image('k', png_bytes(1, 1))
        library.upload_image('k', png_bytes(2, 3))
        assert library.keys() == ['k']
        assert library.get_metadata('k').height == 3

    def test_unknown_key(self):
        library = AssetLibrary()
        assert library.get_image_size('nope') is None
        assert library.get_metadata('nope') is None
        assert library.get_image_data('nope') is None


class TestAsyncLoading:

    def test_complete_after_begin(self, png_bytes):
        library = AssetLibrary()
        library.begin_load('k')
        assert library.is_pending('k')
        assert library.complete_load('k', png_bytes(5, 5))
        assert not library.is_pending('k')
        assert library.has_image('k')

    def test_late_completion_after_remove_ignored(self, png_bytes):
        library = AssetLibrary()
        library.begin_load('k')
        library.remove_image('k')
        assert library.complete_load('k', png_bytes(5, 5)) is False
        assert not library.has_image('k')

    def test_completion_after_cancel_ignored(self, png_bytes):
        library = AssetLibrary()
        library.begin_load('k')
        library.cancel_load('k')
        assert library.complete_load('k', png_bytes(5, 5)) is False


class TestLibraryEvents:

    def test_listener_events(self, png_bytes):
        library = AssetLibrary()
        events = []
        library.add_listener(lambda event, key: events.append((event, key)))
        library.upload_image('k', png_bytes(1, 1))
        library.remove_image('k')
        library.remove_image('k')
        assert events == [('image_loaded', 'k'), ('image_removed', 'k')]

    def test_load_refreshes_bound_assets(self, editor, sized_container, png_bytes):
        layout, cid = sized_container
        aid = layout.add_asset(cid, key='later')
        events = []
        layout.add_listener(events.append)
        assert editor.resolve_asset(cid, aid, 'portrait') is None

        editor.library.upload_image('later', png_bytes(20, 10))

        refreshed = {e.orientation for e in events if e.kind == 'asset_refreshed' and e.asset_id == aid}
        assert refreshed == {'portrait', 'landscape'}
        assert editor.resolve_asset(cid, aid, 'portrait') is not None

    def test_removal_makes_asset_unresolved(self, editor, sized_container):
        layout, cid = sized_container
        aid = layout.add_asset(cid, key='square')
        editor.library.remove_image('square')
        assert editor.resolve_asset(cid, aid, 'portrait') is None
