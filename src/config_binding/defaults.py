import enum
import threading
import typing

from .interfaces import ConfigurationNode, ConfigurationOptions, SerializerRegistry, TypeSerializer
from .mapper import ObjectMapperFactory, default_factory
from .registry import TypeSerializerCollection
from .types import TypeDescriptor, TypeKind

_TRUE_STRINGS = frozenset(["true", "yes", "on", "1"])
_FALSE_STRINGS = frozenset(["false", "no", "off", "0"])


class ScalarSerializer(TypeSerializer[typing.Any]):
    """
    Converts between node values and ``bool``, ``int``, ``float``, ``str`` and ``bytes``.
    """

    def _to_bool(self, value: typing.Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            if value in (0, 1):
                return bool(value)
        elif isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise ValueError(f"{value!r} is not a boolean")

    def _to_int(self, value: typing.Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{value!r} is not an integer")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"{value!r} is not an integer")
            return int(value)
        return int(value)

    def deserialize(self, type_: TypeDescriptor, node: ConfigurationNode) -> typing.Any:
        value = node.get_value()
        if value is None:
            return None
        class_ = type_.origin
        if class_ is bool:
            return self._to_bool(value)
        elif class_ is int:
            return self._to_int(value)
        elif class_ is float:
            if isinstance(value, bool):
                raise ValueError(f"{value!r} is not a number")
            return float(value)
        elif class_ is str:
            if isinstance(value, (str, int, float)):
                return str(value)
            raise ValueError(f"{value!r} is not a string")
        elif class_ is bytes:
            if isinstance(value, bytes):
                return value
            if isinstance(value, str):
                return value.encode("utf-8")
            raise ValueError(f"{value!r} is not a byte string")
        raise TypeError(f"unsupported scalar type: {type_}")

    def serialize(self, type_: TypeDescriptor, value: typing.Any, node: ConfigurationNode) -> None:
        node.set_value(value)


class EnumSerializer(TypeSerializer[enum.Enum]):
    """
    Reads enum members by name, falling back to a case-insensitive name match and then
    to the member value.  Members are written by name.
    """

    def deserialize(self, type_: TypeDescriptor, node: ConfigurationNode) -> typing.Optional[enum.Enum]:
        value = node.get_value()
        if value is None:
            return None
        enum_class = typing.cast(typing.Type[enum.Enum], type_.origin)
        if isinstance(value, enum_class):
            return value
        if isinstance(value, str):
            try:
                return enum_class[value]
            except KeyError:
                pass
            for name, member in enum_class.__members__.items():
                if name.lower() == value.lower():
                    return member
        try:
            return enum_class(value)
        except ValueError:
            raise ValueError(f"{value!r} is not a valid {enum_class.__name__}") from None

    def serialize(self, type_: TypeDescriptor, value: enum.Enum, node: ConfigurationNode) -> None:
        node.set_value(value.name)


class MappedObjectSerializer(TypeSerializer[typing.Any]):
    """
    Handles fields whose type is itself a class with mapped settings.

    :param Optional[ObjectMapperFactory] factory: the factory to obtain mappers from;
                                                  defaults to the process-wide one.
    """

    factory: ObjectMapperFactory

    def accepts(self, type_: TypeDescriptor) -> bool:
        """
        Returns :py:const:`True` if the described type is a class that declares at
        least one mapped setting.  Other classes, such as ``Decimal`` or ``date``, are
        left to serializers registered explicitly for them.
        """
        if type_.kind is not TypeKind.OBJECT:
            return False
        return bool(self.factory.get_mapper(type_.origin).fields)

    def deserialize(self, type_: TypeDescriptor, node: ConfigurationNode) -> typing.Any:
        return self.factory.get_mapper(type_.origin).bind_to_new().populate(node)

    def serialize(self, type_: TypeDescriptor, value: typing.Any, node: ConfigurationNode) -> None:
        self.factory.get_mapper(type(value)).bind(value).serialize(node)

    def __init__(self, factory: typing.Optional[ObjectMapperFactory] = None):
        self.factory = factory if factory is not None else default_factory()


def populate_serializers(
    serializers: TypeSerializerCollection,
    factory: typing.Optional[ObjectMapperFactory] = None,
) -> TypeSerializerCollection:
    scalar_serializer = ScalarSerializer()
    serializers.register_kind(TypeKind.ENUM, EnumSerializer())
    for class_ in (bool, int, float, str, bytes):
        serializers.register_exact(class_, scalar_serializer)
    object_serializer = MappedObjectSerializer(factory)
    serializers.register_predicate(object_serializer.accepts, object_serializer)
    return serializers


_default_serializers: typing.Optional[TypeSerializerCollection] = None
_default_serializers_lock = threading.Lock()


def default_serializers() -> TypeSerializerCollection:
    """
    Returns the shared collection of default serializers.  Extend it by registering
    onto :py:meth:`TypeSerializerCollection.new_child` rather than onto the shared
    collection itself.
    """
    global _default_serializers
    with _default_serializers_lock:
        if _default_serializers is None:
            _default_serializers = populate_serializers(TypeSerializerCollection())
        return _default_serializers


class DefaultConfigurationOptions(ConfigurationOptions):
    """
    Options that select a serializer registry, the shared default one unless given.
    """

    _serializers: typing.Optional[SerializerRegistry]

    @property
    def serializers(self) -> SerializerRegistry:
        if self._serializers is None:
            return default_serializers()
        return self._serializers

    def __init__(self, serializers: typing.Optional[SerializerRegistry] = None):
        self._serializers = serializers
