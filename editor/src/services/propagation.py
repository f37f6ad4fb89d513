"""
Phaser Layout Editor - Cascading Update Propagator

Keeps dependents consistent after a geometry change:
- Container move: every descendant container is translated by the same delta
- Container resize: descendants stay where they are (size is not inherited)
- Asset change: every sibling that references it (directly or transitively)
  is re-applied unchanged so observers recompute it

Dependents are discovered on demand from the current state and processed
breadth-first to a fixpoint inside the triggering call.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger('CascadePropagator')


@dataclass
class PropagationResult:
    """Elements touched by one cascade"""
    translated_containers: List[str] = field(default_factory=list)
    refreshed_assets: List[str] = field(default_factory=list)

    def merge(self, other: 'PropagationResult'):
        for container_id in other.translated_containers:
            if container_id not in self.translated_containers:
                self.translated_containers.append(container_id)
        for asset_id in other.refreshed_assets:
            if asset_id not in self.refreshed_assets:
                self.refreshed_assets.append(asset_id)


class CascadePropagator:
    """Issues the follow-up model calls a geometry change implies"""

    def __init__(self, layout):
        self.layout = layout

    def propagate_container_change(self, container_id: str, orientation: str,
                                   dx: float = 0.0, dy: float = 0.0) -> PropagationResult:
        """Cascade a container move (dx, dy) or resize (dx = dy = 0)

        The container itself must already hold its new geometry. Locks do not
        stop the cascade; a locked child still follows its parent.
        """
        result = PropagationResult()

        affected = [container_id]
        if dx or dy:
            for descendant_id in self.layout.get_descendant_container_ids(container_id):
                self.layout.translate_container(descendant_id, dx, dy, orientation)
                result.translated_containers.append(descendant_id)
                affected.append(descendant_id)

        for affected_id in affected:
            container = self.layout.get_container(affected_id)
            for asset_id, asset in list(container.assets.items()):
                if asset.transform(orientation).position.is_container_relative:
                    self.layout.refresh_asset(affected_id, asset_id, orientation)
                    if asset_id not in result.refreshed_assets:
                        result.refreshed_assets.append(asset_id)
                    result.merge(self.propagate_asset_change(affected_id, asset_id, orientation))

        logger.debug(
            f"Container {container_id} cascade ({dx}, {dy}) {orientation}: "
            f"{len(result.translated_containers)} containers, {len(result.refreshed_assets)} assets"
        )
        return result

    def propagate_asset_change(self, container_id: str, asset_id: str,
                               orientation: str) -> PropagationResult:
        """Refresh every asset whose reference chain passes through asset_id"""
        result = PropagationResult()
        visited = {asset_id}
        queue = deque([asset_id])

        while queue:
            current = queue.popleft()
            for dependent_id in self.layout.get_dependent_asset_ids(container_id, current, orientation):
                if dependent_id in visited:
                    continue
                visited.add(dependent_id)
                self.layout.refresh_asset(container_id, dependent_id, orientation)
                result.refreshed_assets.append(dependent_id)
                queue.append(dependent_id)

        if result.refreshed_assets:
            logger.debug(f"Asset {asset_id} cascade {orientation}: refreshed {result.refreshed_assets}")
        return result
