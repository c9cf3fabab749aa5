"""Personnel directory snapshot for resolving user ids to names."""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType

from django.contrib.auth import get_user_model
from django.core.cache import cache

logger = logging.getLogger(__name__)

CACHE_KEY = "personnel_directory"


@dataclass(frozen=True)
class PersonnelDirectory:
    """Read-only map of user id to display name.

    Built once and passed to whatever needs names, instead of each
    caller querying users. A missing entry resolves to the raw id.
    """

    names: MappingProxyType = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "names", MappingProxyType(dict(self.names)))

    def __reduce__(self):
        # Mapping proxies cannot be pickled; the cache stores a plain copy
        return (self.__class__, (dict(self.names),))

    @classmethod
    def snapshot(cls):
        User = get_user_model()
        return cls(
            names={
                str(user.pk): user.get_display_name()
                for user in User.objects.all()
            }
        )

    @classmethod
    def get_cached(cls):
        """Return the shared snapshot, building it on first use."""
        directory = cache.get(CACHE_KEY)
        if directory is None:
            directory = cls.snapshot()
            cache.set(CACHE_KEY, directory, timeout=None)
        return directory

    @classmethod
    def invalidate(cls):
        cache.delete(CACHE_KEY)

    def display_name(self, user_id):
        if user_id in (None, ""):
            return ""
        return self.names.get(str(user_id), str(user_id))

    def resolve_actor(self, actor):
        """Return ``(display_name, identity)`` for the acting user."""
        identity = getattr(actor, "identity", None) or str(actor)
        name = self.names.get(str(getattr(actor, "pk", "")))
        if not name:
            logger.warning(
                "No directory entry for %s; recording identity instead",
                identity,
            )
            name = identity
        return name, identity
