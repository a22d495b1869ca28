"""Static registry of moderator identities."""

from typing import Any, Iterable


class ModeratorRegistry:
    """Fixed set of identities allowed to mutate moderation state."""

    def __init__(self, moderator_ids: Iterable[int]):
        self._ids = frozenset(moderator_ids)

    @property
    def ids(self) -> frozenset[int]:
        return self._ids

    def is_moderator(self, moderator_id: Any) -> bool:
        """Check whether an identity is a moderator.

        Only real integers match; booleans and numeric strings do not.
        """
        if isinstance(moderator_id, bool) or not isinstance(moderator_id, int):
            return False
        return moderator_id in self._ids

    def __contains__(self, moderator_id: Any) -> bool:
        return self.is_moderator(moderator_id)

    def __len__(self) -> int:
        return len(self._ids)
