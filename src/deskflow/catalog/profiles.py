"""Named catalog snapshots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional
from uuid import UUID

from .catalog import Catalog
from .errors import EmptyNameError, NotFoundError
from .models import FileEntry, Profile

LOGGER = logging.getLogger(__name__)


class ProfileManager:
    """Create, apply, edit, and delete profiles under the catalog lock."""

    def __init__(self, catalog: Catalog, profiles: Iterable[Profile] = ()) -> None:
        self._catalog = catalog
        self._profiles: list[Profile] = list(profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def profiles(self) -> list[Profile]:
        """Return the profiles in creation order."""
        return list(self._profiles)

    def get(self, profile_id: UUID) -> Profile:
        """Return the profile with ``profile_id``.

        Raises:
            NotFoundError: If no profile has the id.
        """
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        raise NotFoundError(f"No profile with id {profile_id}")

    def create(
        self,
        name: str,
        description: str = "",
        snapshot: Optional[list[FileEntry]] = None,
    ) -> Profile:
        """Store an independent copy of the catalog under ``name``.

        Args:
            name: Profile name; must contain a non-whitespace character.
            description: Free-text description.
            snapshot: Entries to capture; defaults to the live catalog.

        Returns:
            Profile: The created profile.

        Raises:
            EmptyNameError: If ``name`` is blank.
        """
        if not name or not name.strip():
            raise EmptyNameError("Profile name must not be blank.")
        with self._catalog.lock:
            files = (
                [entry.model_copy(deep=True) for entry in snapshot]
                if snapshot is not None
                else self._catalog.snapshot()
            )
            profile = Profile(name=name.strip(), description=description, files=files)
            self._profiles.append(profile)
        LOGGER.info("Created profile %s with %d files", profile.name, profile.files_count)
        return profile

    def apply(self, profile_id: UUID) -> list[FileEntry]:
        """Replace the live catalog with the profile's surviving entries.

        Entries whose backing file no longer exists are dropped silently;
        classification fields are recomputed for the rest.

        Returns:
            list[FileEntry]: Entries now in the catalog.

        Raises:
            NotFoundError: If no profile has the id.
        """
        with self._catalog.lock:
            profile = self.get(profile_id)
            applied = [
                entry.model_copy(deep=True).reclassify()
                for entry in profile.files
                if Path(entry.path).is_file()
            ]
            self._catalog.replace_all(applied)
        LOGGER.info("Applied profile %s (%d of %d files)", profile.name, len(applied), profile.files_count)
        return list(applied)

    def update(
        self,
        profile_id: UUID,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Profile:
        """Edit the name and/or description of a profile.

        Raises:
            NotFoundError: If no profile has the id.
            EmptyNameError: If a blank name is supplied.
        """
        with self._catalog.lock:
            profile = self.get(profile_id)
            if name is not None:
                if not name.strip():
                    raise EmptyNameError("Profile name must not be blank.")
                profile.name = name.strip()
            if description is not None:
                profile.description = description
            return profile

    def delete(self, profile_id: UUID) -> Profile:
        """Remove a profile permanently.

        Raises:
            NotFoundError: If no profile has the id.
        """
        with self._catalog.lock:
            profile = self.get(profile_id)
            self._profiles.remove(profile)
        LOGGER.info("Deleted profile %s", profile.name)
        return profile

    def replace_all(self, profiles: Iterable[Profile]) -> None:
        """Replace every profile (used by load and import)."""
        with self._catalog.lock:
            self._profiles = list(profiles)


__all__ = ["ProfileManager"]
