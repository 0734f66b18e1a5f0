"""
Flagtree registries: name → item maps for flags and subcommands.

Contract
- register(item): every non-empty name the item declares (item.names) becomes a
  key. The whole registration is rejected, leaving the registry untouched, when:
  • the item is not an instance of the registry's item type (InvalidArgumentError),
  • the item declares no names (InvalidArgumentError),
  • any of its names is already taken (NameConflictError).
- get(name): exact match on any declared name (long or short).
- list(): insertion-ordered snapshot; a fresh list on every call.
- unregister(name): drop the item owning `name` together with all of its names.

Notes
- Registries are not locked on their own; the owning command node serializes
  access through its reader/writer lock.
"""
import logging

from .faults import FaultCode, InvalidArgumentError, NameConflictError

logger = logging.getLogger(__name__)


class Registry[_T]:
    """
    Insertion-ordered registry keyed by every name of its items.

    Parameters
    - kind: str
      Label used in messages ("flag", "command").
    - typeof: type
      Accepted item type; anything else is rejected with InvalidArgumentError.
    """

    def __init__(self, kind, /, typeof=object):
        if not isinstance(kind, str) or not kind:
            raise TypeError("registry kind must be a non-empty string")
        self._kind = kind
        self._typeof = typeof
        self._items: list[_T] = []
        self._index: dict[str, _T] = {}

    @property
    def kind(self):
        return self._kind

    def register(self, item: _T, /) -> _T:
        if not isinstance(item, self._typeof):
            raise InvalidArgumentError(
                "%s cannot be %r" % (self._kind, item),
                title="invalid %s" % self._kind,
                code=FaultCode.INVALID_ARGUMENT,
                hint="pass a %s instance" % self._typeof.__name__,
            )
        if not (names := tuple(item.names)):
            raise InvalidArgumentError(
                "%s must declare at least one name" % self._kind,
                title="invalid %s" % self._kind,
                code=FaultCode.INVALID_ARGUMENT,
                hint="give the %s a long or a short name" % self._kind,
            )
        for name in names:
            if name in self._index:
                raise NameConflictError(
                    "%s name %r already exists" % (self._kind, name),
                    title="duplicated %s" % self._kind,
                    code=FaultCode.NAME_CONFLICT,
                    name=name,
                    hint="every long and short %s name must be unique" % self._kind,
                )
        self._items.append(item)
        self._index.update(dict.fromkeys(names, item))
        logger.debug("registered %s %s", self._kind, "/".join(names))
        return item

    def unregister(self, name, /):
        """
        Remove the item reachable by `name` and all of its other names.

        Returns whether something was removed.
        """
        if (item := self._index.get(name)) is None:
            return False
        self._items.remove(item)
        for key in [key for key, value in self._index.items() if value is item]:
            del self._index[key]
        logger.debug("unregistered %s %s", self._kind, name)
        return True

    def get(self, name, default=None, /):
        return self._index.get(name, default)

    def has(self, name, /):
        return name in self._index

    __contains__ = has

    def list(self):
        return list(self._items)

    def names(self):
        """
        Every registered name, in registration order.
        """
        return list(self._index)

    def clear(self):
        self._items.clear()
        self._index.clear()

    @property
    def count(self):
        return len(self._items)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def __repr__(self):
        return f"registry(kind={self._kind!r}, items={self.names()!r})"


__all__ = (
    "Registry",
)
