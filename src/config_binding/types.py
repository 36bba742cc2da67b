"""
Type descriptors.

A :py:class:`TypeDescriptor` is the reusable, hashable description of a field's declared
type.  Unlike a raw annotation it keeps the structure serializer lookup needs
(the element type of a sequence, the key and value types of a mapping) in a form
that can be compared and cached.
"""
import collections.abc
import dataclasses
import enum
import types
import typing

from .exceptions import InvalidDeclarationError
from .utils import qualified_name


class TypeKind(enum.Enum):
    ANY = "any"
    SCALAR = "scalar"
    ENUM = "enum"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OBJECT = "object"


SCALAR_TYPES: typing.Tuple[type, ...] = (bool, int, float, str, bytes)

_UNION_TYPES: typing.Tuple[typing.Any, ...] = (typing.Union, types.UnionType)


@dataclasses.dataclass(frozen=True)
class TypeDescriptor:
    kind: TypeKind
    """
    The tag that decides which family of serializers may apply.
    """

    origin: type
    """
    The runtime class, with any type arguments stripped.
    """

    args: typing.Tuple["TypeDescriptor", ...] = ()
    """
    Descriptors of the type arguments; one element type for sequences, the key and
    value types for mappings.
    """

    nullable: bool = False
    """
    Set to :py:const:`True` if the declaration was ``Optional[...]``.
    """

    @property
    def element_type(self) -> "TypeDescriptor":
        assert self.kind is TypeKind.SEQUENCE
        return self.args[0]

    @property
    def key_type(self) -> "TypeDescriptor":
        assert self.kind is TypeKind.MAPPING
        return self.args[0]

    @property
    def value_type(self) -> "TypeDescriptor":
        assert self.kind is TypeKind.MAPPING
        return self.args[1]

    def is_subclass_of(self, class_: type) -> bool:
        return issubclass(self.origin, class_)

    def __str__(self) -> str:
        if self.kind is TypeKind.ANY:
            name = "Any"
        else:
            name = qualified_name(self.origin)
        if self.args:
            name = f"{name}[{', '.join(str(arg) for arg in self.args)}]"
        if self.nullable:
            name = f"Optional[{name}]"
        return name

    @classmethod
    def of(cls, annotation: typing.Any) -> "TypeDescriptor":
        """
        Builds a descriptor from a type annotation.

        :param Any annotation: a class or a ``typing`` construct.
        :return: the descriptor.
        :raises InvalidDeclarationError: if the annotation cannot be mapped.
        """
        if typing.get_origin(annotation) is typing.Annotated:
            return cls.of(typing.get_args(annotation)[0])

        if annotation is typing.Any:
            return cls(kind=TypeKind.ANY, origin=object)

        if isinstance(annotation, (str, typing.ForwardRef)):
            raise InvalidDeclarationError(f"unresolved forward reference: {annotation!r}")

        if isinstance(annotation, typing.TypeVar):
            raise InvalidDeclarationError(f"type variable {annotation} cannot be mapped")

        origin = typing.get_origin(annotation)
        if origin in _UNION_TYPES:
            members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
            if len(members) != 1:
                raise InvalidDeclarationError(f"union type {annotation} cannot be mapped")
            return dataclasses.replace(cls.of(members[0]), nullable=True)

        if origin is not None:
            return cls._of_generic(annotation, origin, typing.get_args(annotation))

        if annotation is None or annotation is type(None):
            raise InvalidDeclarationError("None cannot be mapped")

        if not isinstance(annotation, type):
            raise InvalidDeclarationError(f"{annotation!r} is not a type")

        return cls._of_class(annotation)

    @classmethod
    def _of_generic(
        cls, annotation: typing.Any, origin: typing.Any, args: typing.Tuple[typing.Any, ...]
    ) -> "TypeDescriptor":
        if not isinstance(origin, type):
            # Literal, ClassVar, Final and friends
            raise InvalidDeclarationError(f"{annotation} cannot be mapped")

        if issubclass(origin, collections.abc.Mapping):
            if len(args) == 2:
                key_type, value_type = args
                type_args = (cls.of(key_type), cls.of(value_type))
            elif not args:
                type_args = (_ANY, _ANY)
            else:
                raise InvalidDeclarationError(f"mapping type {annotation} cannot be mapped")
            return cls(kind=TypeKind.MAPPING, origin=origin, args=type_args)

        if issubclass(origin, tuple):
            if len(args) == 2 and args[1] is Ellipsis:
                element_type = cls.of(args[0])
            elif not args:
                element_type = _ANY
            else:
                raise InvalidDeclarationError(
                    f"heterogeneous tuple type {annotation} cannot be mapped"
                )
            return cls(kind=TypeKind.SEQUENCE, origin=origin, args=(element_type,))

        if _is_collection(origin):
            element_type = cls.of(args[0]) if args else _ANY
            return cls(kind=TypeKind.SEQUENCE, origin=origin, args=(element_type,))

        return cls(
            kind=TypeKind.OBJECT,
            origin=origin,
            args=tuple(cls.of(arg) for arg in args),
        )

    @classmethod
    def _of_class(cls, class_: type) -> "TypeDescriptor":
        if issubclass(class_, enum.Enum):
            return cls(kind=TypeKind.ENUM, origin=class_)
        if issubclass(class_, collections.abc.Mapping):
            return cls(kind=TypeKind.MAPPING, origin=class_, args=(_ANY, _ANY))
        if _is_collection(class_) or issubclass(class_, tuple):
            return cls(kind=TypeKind.SEQUENCE, origin=class_, args=(_ANY,))
        if class_ in SCALAR_TYPES:
            return cls(kind=TypeKind.SCALAR, origin=class_)
        return cls(kind=TypeKind.OBJECT, origin=class_)


def _is_collection(class_: type) -> bool:
    if issubclass(class_, (str, bytes, bytearray)):
        return False
    return issubclass(class_, (collections.abc.Sequence, collections.abc.Set))


_ANY = TypeDescriptor(kind=TypeKind.ANY, origin=object)
