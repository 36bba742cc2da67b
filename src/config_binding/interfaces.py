"""
This package contains a series of interface definitions that need to be
implemented by the configuration tree provider, along with the serializer
contracts the mapper consumes.

"""
import abc
import typing

from .types import TypeDescriptor

T = typing.TypeVar("T")


class TypeSerializer(typing.Generic[T], metaclass=abc.ABCMeta):
    """
    A :py:class:`TypeSerializer` converts between values of a runtime type and the
    contents of a :py:class:`ConfigurationNode`.
    """

    @abc.abstractmethod
    def deserialize(self, type_: TypeDescriptor, node: "ConfigurationNode") -> typing.Optional[T]:
        """
        Converts the contents of the node into a value of the described type.

        :param TypeDescriptor type_: the declared type of the destination.
        :param ConfigurationNode node: the node to read from.
        :return: the converted value, or :py:const:`None` if the node yields no value.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def serialize(self, type_: TypeDescriptor, value: T, node: "ConfigurationNode") -> None:
        """
        Stores the value into the node.

        :param TypeDescriptor type_: the declared type of the source.
        :param T value: the value to store; never :py:const:`None`.
        :param ConfigurationNode node: the node to write to.
        """
        ...  # pragma: nocover


class SerializerRegistry(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def lookup(self, type_: TypeDescriptor) -> typing.Optional[TypeSerializer]:
        """
        Resolves a serializer capable of handling the described type.

        :param TypeDescriptor type_: the type to look up.
        :return: the serializer, or :py:const:`None` if nothing applies.
        """
        ...  # pragma: nocover


class ConfigurationOptions(metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def serializers(self) -> SerializerRegistry:
        """
        Returns the serializer registry used for nodes carrying these options.
        """
        ...  # pragma: nocover


class ConfigurationNode(metaclass=abc.ABCMeta):
    """
    A :py:class:`ConfigurationNode` is a single addressable unit of a configuration tree.
    It holds a value, holds children, or is virtual: a placeholder that exists only
    because it was addressed and that materializes once written to.
    """

    @property
    @abc.abstractmethod
    def options(self) -> ConfigurationOptions:
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_child(self, key: typing.Any) -> "ConfigurationNode":
        """
        Returns the child node at ``key``.  A virtual node is returned when no such
        child exists; this never raises.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def is_virtual(self) -> bool:
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_value(self) -> typing.Any:
        """
        Returns the node's value, or :py:const:`None` if it has none.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def set_value(self, value: typing.Any) -> "ConfigurationNode":
        """
        Sets the node's value.  Setting :py:const:`None` clears the node.
        """
        ...  # pragma: nocover


class CommentedConfigurationNode(ConfigurationNode):
    """
    A :py:class:`ConfigurationNode` that can carry a human-readable comment.
    """

    @abc.abstractmethod
    def get_comment(self) -> typing.Optional[str]:
        ...  # pragma: nocover

    @abc.abstractmethod
    def set_comment(self, comment: typing.Optional[str]) -> "CommentedConfigurationNode":
        ...  # pragma: nocover
