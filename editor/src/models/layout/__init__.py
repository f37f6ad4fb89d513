"""Layout model mixins package"""

from .query_mixin import LayoutQueryMixin
from .container_mixin import LayoutContainerMixin
from .asset_mixin import LayoutAssetMixin
from .core import Layout, LayoutEvent
from ._internal.container import Container, Containers
from ._internal.asset import Asset

__all__ = [
    'Layout',
    'LayoutEvent',
    'Container',
    'Containers',
    'Asset',
    'LayoutQueryMixin',
    'LayoutContainerMixin',
    'LayoutAssetMixin',
]
