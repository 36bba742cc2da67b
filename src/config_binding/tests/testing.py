import collections.abc
import typing

from ..defaults import DefaultConfigurationOptions
from ..interfaces import (
    CommentedConfigurationNode,
    ConfigurationNode,
    ConfigurationOptions,
    TypeSerializer,
)
from ..types import TypeDescriptor


class PlainConfigurationNode(ConfigurationNode):
    _options: ConfigurationOptions
    _parent: typing.Optional["PlainConfigurationNode"]
    _key: typing.Any
    _value: typing.Any
    _children: typing.Dict[typing.Any, "PlainConfigurationNode"]
    _attached: bool

    @classmethod
    def root(
        cls,
        value: typing.Any = None,
        options: typing.Optional[ConfigurationOptions] = None,
    ):
        node = cls(
            options=options if options is not None else DefaultConfigurationOptions(),
            attached=True,
        )
        if value is not None:
            node.set_value(value)
        return node

    @property
    def options(self) -> ConfigurationOptions:
        return self._options

    @property
    def children(self) -> typing.Mapping[typing.Any, "PlainConfigurationNode"]:
        return self._children

    def get_child(self, key: typing.Any) -> "PlainConfigurationNode":
        try:
            return self._children[key]
        except KeyError:
            return type(self)(options=self._options, parent=self, key=key)

    def is_virtual(self) -> bool:
        return not self._attached

    def get_value(self) -> typing.Any:
        if self._children:
            return {k: child.get_value() for k, child in self._children.items()}
        return self._value

    def set_value(self, value: typing.Any) -> "PlainConfigurationNode":
        if value is None:
            self._value = None
            self._children = {}
            self._detach()
            return self
        if isinstance(value, collections.abc.Mapping):
            self._value = None
            self._children = {}
            for k, v in value.items():
                self.get_child(k).set_value(v)
        else:
            self._children = {}
            self._value = value
        self._attach()
        return self

    def _attach(self) -> None:
        if self._attached:
            return
        if self._parent is not None:
            self._parent._attach()
            self._parent._children[self._key] = self
        self._attached = True

    def _detach(self) -> None:
        if self._parent is None or not self._attached:
            return
        if self._parent._children.get(self._key) is self:
            del self._parent._children[self._key]
        self._attached = False

    def __init__(
        self,
        options: ConfigurationOptions,
        parent: typing.Optional["PlainConfigurationNode"] = None,
        key: typing.Any = None,
        attached: bool = False,
    ):
        self._options = options
        self._parent = parent
        self._key = key
        self._value = None
        self._children = {}
        self._attached = attached


class PlainCommentedConfigurationNode(PlainConfigurationNode, CommentedConfigurationNode):
    _comment: typing.Optional[str] = None

    def get_comment(self) -> typing.Optional[str]:
        return self._comment

    def set_comment(self, comment: typing.Optional[str]) -> "PlainCommentedConfigurationNode":
        self._comment = comment
        return self


class PlainSequenceSerializer(TypeSerializer[typing.Sequence[typing.Any]]):
    """
    Stores sequences as plain lists, converting each element with the serializer the
    node's registry resolves for the element type.
    """

    def _element_serializer(self, type_: TypeDescriptor, node: ConfigurationNode) -> TypeSerializer:
        serializer = node.options.serializers.lookup(type_.element_type)
        if serializer is None:
            raise TypeError(f"no serializer for {type_.element_type}")
        return serializer

    def deserialize(self, type_: TypeDescriptor, node: ConfigurationNode) -> typing.Any:
        value = node.get_value()
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError(f"{value!r} is not a list")
        serializer = self._element_serializer(type_, node)
        result = [
            serializer.deserialize(
                type_.element_type, PlainConfigurationNode.root(item, node.options)
            )
            for item in value
        ]
        if type_.origin in (list, collections.abc.Sequence):
            return result
        return type_.origin(result)

    def serialize(self, type_: TypeDescriptor, value: typing.Any, node: ConfigurationNode) -> None:
        serializer = self._element_serializer(type_, node)
        items = []
        for item in value:
            scratch = PlainConfigurationNode.root(options=node.options)
            serializer.serialize(type_.element_type, item, scratch)
            items.append(scratch.get_value())
        node.set_value(items)
