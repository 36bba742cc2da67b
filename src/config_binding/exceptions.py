import abc
import typing

from .utils import qualified_name


class ConfigBindingException(Exception, metaclass=abc.ABCMeta):
    pass


class MappingError(ConfigBindingException):
    """
    Raised whenever an object cannot be bound to, populated from, or serialized into
    a configuration node.  The underlying failure, if any, is available as ``__cause__``.
    """

    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __str__(self):
        return self.message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class InvalidDeclarationError(MappingError):
    pass


class FieldMappingError(MappingError, metaclass=abc.ABCMeta):
    owner: type
    path: str
    type: "types.TypeDescriptor"

    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __init__(self, owner: type, path: str, type: "types.TypeDescriptor"):
        self.owner = owner
        self.path = path
        self.type = type
        super().__init__(self.message)


class SerializerNotFoundError(FieldMappingError):
    @property
    def message(self) -> str:
        return f"no serializer found for field {self.path} of type {self.type}"


class ConversionError(FieldMappingError):
    detail: typing.Optional[str]

    @property
    def message(self) -> str:
        return f"conversion of field {self.path} of type {self.type} failed{' (' + self.detail + ')' if self.detail else ''}"

    def __init__(
        self,
        owner: type,
        path: str,
        type: "types.TypeDescriptor",
        detail: typing.Optional[str] = None,
    ):
        self.detail = detail
        super().__init__(owner, path, type)


class FieldAccessError(FieldMappingError):
    operation: str

    @property
    def message(self) -> str:
        return f"unable to {self.operation} field {self.path} of {qualified_name(self.owner)}"

    def __init__(self, owner: type, path: str, type: "types.TypeDescriptor", operation: str):
        self.operation = operation
        super().__init__(owner, path, type)


class ConstructionError(MappingError):
    class_: type

    def __init__(self, class_: type, message: str):
        self.class_ = class_
        super().__init__(message)


if typing.TYPE_CHECKING:
    from . import types  # noqa: E402
