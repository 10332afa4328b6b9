"""Per-user favorite item ids."""

from rivals.config import favorites_storage_key
from rivals.services.storage import KeyValueStore, NotHydratedError, PersistedState


class FavoritesNotHydratedError(NotHydratedError):
    pass


class FavoritesService(PersistedState):
    """Set of favorited inventory ids, stored separately for each user."""

    not_hydrated_error = FavoritesNotHydratedError

    def __init__(self, store: KeyValueStore, user_id: str | None = None) -> None:
        super().__init__(store, favorites_storage_key(user_id))
        self.user_id = user_id
        self.favorites: set[str] = set()

    async def hydrate(self) -> None:
        stored = await self._load([])
        self.favorites = {str(item_id) for item_id in stored}
        self.is_hydrated = True

    async def switch_user(self, user_id: str | None) -> None:
        """Load the favorites of another user (or the guest bucket)."""
        self.user_id = user_id
        self.storage_key = favorites_storage_key(user_id)
        self.is_hydrated = False
        await self.hydrate()

    def is_favorite(self, item_id: str) -> bool:
        return item_id in self.favorites

    async def add(self, item_id: str) -> None:
        self._require_hydrated()
        self.favorites.add(item_id)
        await self._persist()

    async def remove(self, item_id: str) -> None:
        self._require_hydrated()
        self.favorites.discard(item_id)
        await self._persist()

    async def toggle(self, item_id: str) -> bool:
        """Flip an id in or out of favorites. Returns the new state."""
        self._require_hydrated()
        if item_id in self.favorites:
            self.favorites.discard(item_id)
        else:
            self.favorites.add(item_id)
        await self._persist()
        return item_id in self.favorites

    async def clear(self) -> None:
        self._require_hydrated()
        self.favorites = set()
        await self._persist()

    async def _persist(self) -> None:
        await self._save(sorted(self.favorites))
