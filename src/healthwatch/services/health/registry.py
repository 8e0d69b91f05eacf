"""Component registry - the single owner of component health records."""

import asyncio

from healthwatch.services.health.schemas import ComponentHealth, RegistrationEntry


class ComponentRegistry:
    """Maps component IDs to their current record and registration.

    All mutations are serialized through one lock. Reads return copies
    taken without suspending, so callers never see a partial update.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._records: dict[str, ComponentHealth] = {}
        self._entries: dict[str, RegistrationEntry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._records

    async def register(self, entry: RegistrationEntry, record: ComponentHealth) -> bool:
        """Add a component with its initial record.

        Args:
            entry: Registration entry
            record: Initial health record

        Returns:
            False if the component was already registered
        """
        async with self._lock:
            if entry.component_id in self._records:
                return False
            self._entries[entry.component_id] = entry
            self._records[entry.component_id] = record
            return True

    async def unregister(self, component_id: str) -> RegistrationEntry | None:
        """Remove a component.

        Args:
            component_id: Component to remove

        Returns:
            The removed registration entry, if any
        """
        async with self._lock:
            self._records.pop(component_id, None)
            return self._entries.pop(component_id, None)

    async def put(
        self,
        record: ComponentHealth,
        expected_entry: RegistrationEntry | None = None,
        expected_record: ComponentHealth | None = None,
    ) -> tuple[bool, ComponentHealth | None]:
        """Replace the record of a component.

        Unknown components are created, unless ``expected_entry`` is given:
        then the record is only stored while that exact registration is
        still current. With ``expected_record`` the write only happens if
        that record is still the current one, so a decision made on an
        earlier read never overwrites a newer update.

        Args:
            record: New record
            expected_entry: Registration the update was produced for
            expected_record: Record the update was derived from

        Returns:
            Tuple of (stored, previous record)
        """
        async with self._lock:
            if (
                expected_entry is not None
                and self._entries.get(record.component_id) is not expected_entry
            ):
                return False, None
            if (
                expected_record is not None
                and self._records.get(record.component_id) is not expected_record
            ):
                return False, None

            previous = self._records.get(record.component_id)
            self._records[record.component_id] = record
            return True, previous

    async def clear(self) -> list[RegistrationEntry]:
        """Remove every component.

        Returns:
            The registration entries that were removed
        """
        async with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
            self._records.clear()
            return entries

    def get(self, component_id: str) -> ComponentHealth | None:
        """Get the current record of a component."""
        return self._records.get(component_id)

    def get_entry(self, component_id: str) -> RegistrationEntry | None:
        """Get the registration entry of a component."""
        return self._entries.get(component_id)

    def entries(self) -> list[RegistrationEntry]:
        """Get all registration entries."""
        return list(self._entries.values())

    def snapshot(self) -> dict[str, ComponentHealth]:
        """Get a consistent copy of all current records."""
        return dict(self._records)
