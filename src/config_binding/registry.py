import logging
import threading
import typing

from .interfaces import SerializerRegistry, TypeSerializer
from .types import TypeDescriptor, TypeKind

logger = logging.getLogger(__name__)

TypePredicate = typing.Callable[[TypeDescriptor], bool]


class TypeSerializerCollection(SerializerRegistry):
    """
    A :py:class:`TypeSerializerCollection` is a :py:class:`SerializerRegistry` whose
    entries are tried in the order they were registered.  When none of them apply,
    the lookup is delegated to the parent collection, if any.

    Successful and failed lookups of the collection's own entries are cached per
    descriptor until the next registration.

    Structured types are matched by their origin class, so a serializer registered for
    ``list`` handles ``list[int]`` as well; resolving the element serializer is left
    to that serializer, which does so through the registry of the node it is given.

    :param Optional[SerializerRegistry] parent: the registry to fall back on.
    """

    parent: typing.Optional[SerializerRegistry]
    _entries: typing.List[typing.Tuple[TypePredicate, TypeSerializer]]
    _cache: typing.Dict[TypeDescriptor, typing.Optional[TypeSerializer]]
    _lock: threading.RLock

    def register_predicate(
        self, predicate: TypePredicate, serializer: TypeSerializer
    ) -> "TypeSerializerCollection":
        """
        Registers a serializer for every type the predicate accepts.

        :param Callable[[TypeDescriptor], bool] predicate: the type test.
        :param TypeSerializer serializer: the serializer.
        :return: this collection, for chaining.
        """
        with self._lock:
            self._entries.append((predicate, serializer))
            self._cache.clear()
        logger.debug("registered serializer %r", serializer)
        return self

    def register(self, class_: type, serializer: TypeSerializer) -> "TypeSerializerCollection":
        """
        Registers a serializer for ``class_`` and its subclasses.
        """
        return self.register_predicate(lambda type_: type_.is_subclass_of(class_), serializer)

    def register_exact(
        self, class_: type, serializer: TypeSerializer
    ) -> "TypeSerializerCollection":
        return self.register_predicate(lambda type_: type_.origin is class_, serializer)

    def register_kind(
        self, kind: TypeKind, serializer: TypeSerializer
    ) -> "TypeSerializerCollection":
        return self.register_predicate(lambda type_: type_.kind is kind, serializer)

    def lookup(self, type_: TypeDescriptor) -> typing.Optional[TypeSerializer]:
        with self._lock:
            try:
                serializer = self._cache[type_]
            except KeyError:
                serializer = self._cache[type_] = self._lookup_own(type_)
        # parent results are never cached here
        if serializer is None and self.parent is not None:
            serializer = self.parent.lookup(type_)
        return serializer

    def _lookup_own(self, type_: TypeDescriptor) -> typing.Optional[TypeSerializer]:
        for predicate, serializer in self._entries:
            if predicate(type_):
                return serializer
        return None

    def new_child(self) -> "TypeSerializerCollection":
        """
        Returns an empty collection that falls back on this one.
        """
        return TypeSerializerCollection(parent=self)

    def __init__(self, parent: typing.Optional[SerializerRegistry] = None):
        self.parent = parent
        self._entries = []
        self._cache = {}
        self._lock = threading.RLock()
