import dataclasses
import inspect
import logging
import threading
import types
import typing

from .declarative import AnnotationFieldExtractor, DeclaredSetting, FieldExtractor
from .exceptions import (
    ConstructionError,
    ConversionError,
    FieldAccessError,
    InvalidDeclarationError,
    MappingError,
    SerializerNotFoundError,
)
from .interfaces import CommentedConfigurationNode, ConfigurationNode, TypeSerializer
from .types import TypeDescriptor
from .utils import qualified_name

logger = logging.getLogger(__name__)

T = typing.TypeVar("T")


def resolve_path(owner: type, declared: DeclaredSetting) -> str:
    path = declared.setting.path
    if not path:
        return declared.name
    if not path.strip():
        raise InvalidDeclarationError(
            f"field {declared.name} of {qualified_name(owner)} has a blank path"
        )
    return path


@dataclasses.dataclass(frozen=True)
class FieldData:
    """
    A :py:class:`FieldData` describes a single mapped field and knows how to move its
    value between an instance and a configuration node.
    """

    owner: type
    """
    The class that declares the field.
    """

    name: str
    """
    The attribute name of the field.
    """

    path: str
    """
    The key of the node the field is bound to.
    """

    type: TypeDescriptor
    comment: typing.Optional[str] = None

    def _is_unassigned(self, instance: typing.Any) -> bool:
        if self.name in getattr(instance, "__dict__", ()):
            return False
        for class_ in type(instance).__mro__:
            attrs = vars(class_)
            if self.name in attrs:
                # an empty slot
                return isinstance(attrs[self.name], types.MemberDescriptorType)
        return True

    def fetch_value(self, instance: typing.Any) -> typing.Any:
        try:
            return getattr(instance, self.name)
        except AttributeError as e:
            if self._is_unassigned(instance):
                return None
            raise FieldAccessError(self.owner, self.path, self.type, "read") from e
        except Exception as e:
            raise FieldAccessError(self.owner, self.path, self.type, "read") from e

    def store_value(self, instance: typing.Any, value: typing.Any) -> None:
        try:
            setattr(instance, self.name, value)
        except (AttributeError, TypeError) as e:
            raise FieldAccessError(self.owner, self.path, self.type, "write") from e

    def _lookup_serializer(self, node: ConfigurationNode) -> TypeSerializer:
        serializer = node.options.serializers.lookup(self.type)
        if serializer is None:
            raise SerializerNotFoundError(self.owner, self.path, self.type)
        return serializer

    def deserialize_from(self, instance: typing.Any, node: ConfigurationNode) -> None:
        """
        Populates the field from the node.  When the node yields no value, the
        field's current value, if any, is written back to the node instead.

        :param Any instance: the object that holds the field.
        :param ConfigurationNode node: the node bound to the field.
        """
        if node.is_virtual():
            new_value = None
        else:
            serializer = self._lookup_serializer(node)
            try:
                new_value = serializer.deserialize(self.type, node)
            except MappingError:
                raise
            except Exception as e:
                raise ConversionError(self.owner, self.path, self.type, str(e)) from e

        if new_value is None:
            if self.fetch_value(instance) is not None:
                logger.debug("writing back the default value of %s", self.path)
                self.serialize_to(instance, node)
        else:
            self.store_value(instance, new_value)

    def serialize_to(self, instance: typing.Any, node: ConfigurationNode) -> None:
        """
        Stores the field's value into the node, attaching the field's comment unless
        the node already carries one.

        :param Any instance: the object that holds the field.
        :param ConfigurationNode node: the node bound to the field.
        """
        value = self.fetch_value(instance)
        if value is None:
            node.set_value(None)
        else:
            serializer = self._lookup_serializer(node)
            try:
                serializer.serialize(self.type, value, node)
            except MappingError:
                raise
            except Exception as e:
                raise ConversionError(self.owner, self.path, self.type, str(e)) from e

        if (
            isinstance(node, CommentedConfigurationNode)
            and self.comment
            and node.get_comment() is None
        ):
            node.set_comment(self.comment)


class BoundInstance(typing.Generic[T]):
    """
    A view on an :py:class:`ObjectMapper` that is bound to a single object.

    Errors abort the operation at the first failing field; fields processed before
    it keep their new values.
    """

    mapper: "ObjectMapper[T]"
    _instance: T

    @property
    def instance(self) -> T:
        return self._instance

    def get_instance(self) -> T:
        return self._instance

    def populate(self, source: ConfigurationNode) -> T:
        """
        Populates the mapped fields of the bound object from the node.

        :param ConfigurationNode source: the node to read from.
        :return: the bound object.
        :raises MappingError: if a field cannot be populated.
        """
        for path, field in self.mapper.fields.items():
            field.deserialize_from(self._instance, source.get_child(path))
        return self._instance

    def serialize(self, target: ConfigurationNode) -> None:
        """
        Serializes the mapped fields of the bound object into the node.  Children of
        the node that are not bound to any field are left untouched.

        :param ConfigurationNode target: the node to write to.
        :raises MappingError: if a field cannot be serialized.
        """
        for path, field in self.mapper.fields.items():
            field.serialize_to(self._instance, target.get_child(path))

    def __init__(self, mapper: "ObjectMapper[T]", instance: T):
        self.mapper = mapper
        self._instance = instance


def has_zero_arg_constructor(class_: type) -> bool:
    if inspect.isabstract(class_):
        return False
    try:
        signature = inspect.signature(class_)
    except (TypeError, ValueError):
        return False
    return all(
        param.default is not inspect.Parameter.empty
        or param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for param in signature.parameters.values()
    )


class ObjectMapper(typing.Generic[T]):
    """
    An :py:class:`ObjectMapper` holds the mapped fields of a class, collected from the
    class and all its ancestors.  When an ancestor declares a field at a path already
    declared further down the hierarchy, the ancestor's field is ignored.

    Instances are immutable once built and may be shared between threads.

    :param type mapped_type: the class to map.
    :param FieldExtractor extractor: the extractor that discovers the fields.
    """

    mapped_type: typing.Type[T]
    _fields: typing.Mapping[str, FieldData]
    _can_construct: bool

    @property
    def fields(self) -> typing.Mapping[str, FieldData]:
        """
        The mapping of paths to :py:class:`FieldData`.
        """
        return self._fields

    def can_create_instances(self) -> bool:
        """
        Returns :py:const:`True` if the mapped class can be instantiated without
        arguments.
        """
        return self._can_construct

    def construct_object(self) -> T:
        if not self._can_construct:
            raise ConstructionError(
                self.mapped_type,
                f"no zero-argument constructor is available for {qualified_name(self.mapped_type)} but is required to construct new instances",
            )
        try:
            return self.mapped_type()
        except Exception as e:
            raise ConstructionError(
                self.mapped_type,
                f"unable to create an instance of {qualified_name(self.mapped_type)} ({e})",
            ) from e

    def bind(self, instance: T) -> BoundInstance[T]:
        return BoundInstance(self, instance)

    def bind_to_new(self) -> BoundInstance[T]:
        """
        Returns a view bound to a newly created instance of the mapped class.

        :raises ConstructionError: if the instance cannot be created.
        """
        return BoundInstance(self, self.construct_object())

    @staticmethod
    def _collect_fields(
        mapped_type: type, extractor: FieldExtractor
    ) -> typing.Dict[str, FieldData]:
        fields: typing.Dict[str, FieldData] = {}
        for class_ in mapped_type.__mro__:
            if class_ is object:
                continue
            for declared in extractor.extract_settings(class_):
                path = resolve_path(class_, declared)
                if path in fields:
                    continue
                fields[path] = FieldData(
                    owner=class_,
                    name=declared.name,
                    path=path,
                    type=declared.type,
                    comment=declared.setting.comment,
                )
        return fields

    def __init__(self, mapped_type: typing.Type[T], extractor: FieldExtractor):
        self.mapped_type = mapped_type
        self._fields = types.MappingProxyType(self._collect_fields(mapped_type, extractor))
        self._can_construct = has_zero_arg_constructor(mapped_type)


class ObjectMapperFactory:
    """
    An :py:class:`ObjectMapperFactory` builds an :py:class:`ObjectMapper` the first time
    a class is requested and hands out the same one afterwards.  A build that fails is
    not remembered, so a later request tries again.

    :param Optional[FieldExtractor] extractor: the extractor that discovers fields;
                                               defaults to :py:class:`AnnotationFieldExtractor`.
    """

    extractor: FieldExtractor
    _mappers: typing.Dict[type, ObjectMapper]
    _lock: threading.RLock

    def get_mapper(self, class_: typing.Type[T]) -> ObjectMapper[T]:
        """
        Returns the mapper for ``class_``.

        :param type class_: the class to map.
        :return: a mapper shared with other callers.
        :raises InvalidDeclarationError: if the class declares invalid settings.
        """
        if not isinstance(class_, type):
            raise InvalidDeclarationError(f"{class_!r} is not a class")
        mapper = self._mappers.get(class_)
        if mapper is not None:
            return mapper
        with self._lock:
            mapper = self._mappers.get(class_)
            if mapper is None:
                mapper = ObjectMapper(class_, self.extractor)
                self._mappers[class_] = mapper
                logger.debug(
                    "built mapper for %s with %d field(s)",
                    qualified_name(class_),
                    len(mapper.fields),
                )
        return mapper

    def __init__(self, extractor: typing.Optional[FieldExtractor] = None):
        self.extractor = extractor if extractor is not None else AnnotationFieldExtractor()
        self._mappers = {}
        self._lock = threading.RLock()


_default_factory = ObjectMapperFactory()


def default_factory() -> ObjectMapperFactory:
    return _default_factory


def for_class(class_: typing.Type[T]) -> ObjectMapper[T]:
    """
    Returns the mapper for ``class_`` from the default factory.
    """
    return _default_factory.get_mapper(class_)


def for_object(obj: T) -> BoundInstance[T]:
    """
    Returns a view bound to ``obj``, using the mapper for its class from the default
    factory.
    """
    if obj is None:
        raise InvalidDeclarationError("cannot bind a mapper to None")
    return for_class(type(obj)).bind(obj)
