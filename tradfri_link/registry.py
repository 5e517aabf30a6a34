"""Device registry: last known record per device, partitioned by category."""

from __future__ import annotations

import logging

from .models import DeviceCategory, DeviceRecord

_LOGGER = logging.getLogger(__name__)


class DeviceRegistry:
    """Facilities keyed by instance id, plus light and blind partitions."""

    def __init__(self) -> None:
        self._facilities: dict[int, DeviceRecord] = {}
        self._lights: dict[int, DeviceRecord] = {}
        self._blinds: dict[int, DeviceRecord] = {}

    # ------------------------------------------------------------------
    #  Mutation
    # ------------------------------------------------------------------

    def upsert(self, record: DeviceRecord) -> None:
        """Insert or replace ``record``; the last update for an id wins."""
        instance_id = record.instance_id
        self._facilities[instance_id] = record

        # a device never sits in both partitions
        self._lights.pop(instance_id, None)
        self._blinds.pop(instance_id, None)

        if record.category is DeviceCategory.LIGHT:
            self._lights[instance_id] = record
        elif record.category is DeviceCategory.BLIND:
            self._blinds[instance_id] = record

    def remove(self, instance_id: int) -> bool:
        """Drop ``instance_id`` from every map; return whether it was known."""
        known = self._facilities.pop(instance_id, None) is not None
        known = self._lights.pop(instance_id, None) is not None or known
        known = self._blinds.pop(instance_id, None) is not None or known
        if known:
            _LOGGER.debug("Removed device %s from registry", instance_id)
        return known

    def clear(self) -> None:
        self._facilities.clear()
        self._lights.clear()
        self._blinds.clear()

    # ------------------------------------------------------------------
    #  Getters
    # ------------------------------------------------------------------

    @property
    def facilities(self) -> dict[int, DeviceRecord]:
        return self._facilities

    @property
    def lights(self) -> dict[int, DeviceRecord]:
        return self._lights

    @property
    def blinds(self) -> dict[int, DeviceRecord]:
        return self._blinds

    def partition(self, category: DeviceCategory) -> dict[int, DeviceRecord]:
        """Return the map holding ``category`` devices."""
        if category is DeviceCategory.LIGHT:
            return self._lights
        if category is DeviceCategory.BLIND:
            return self._blinds
        return {
            key: record
            for key, record in self._facilities.items()
            if record.category is DeviceCategory.OTHER
        }

    def get(self, instance_id: int) -> DeviceRecord | None:
        return self._facilities.get(instance_id)

    def get_light(self, instance_id: int) -> DeviceRecord | None:
        return self._lights.get(instance_id)

    def get_blind(self, instance_id: int) -> DeviceRecord | None:
        return self._blinds.get(instance_id)

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._facilities

    def __len__(self) -> int:
        return len(self._facilities)
