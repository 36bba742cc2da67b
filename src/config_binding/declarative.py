"""
config_binding.declarative module contains the means of marking fields as
mapped settings, and the extractors that discover them.

Synopsis
--------

.. code-block:: python

   import dataclasses
   import typing

   from config_binding import Setting, for_class

   @dataclasses.dataclass
   class ServerConfig:
       host: typing.Annotated[str, Setting(comment="address to listen on")] = "localhost"
       port: typing.Annotated[int, Setting("listen-port")] = 8080

   class LegacyConfig:
       timeout: float = 3.0

       class Meta:
           settings = {
               "timeout": Setting("timeout-seconds"),
           }

   config = for_class(ServerConfig).bind_to_new().populate(node)

"""
import abc
import collections.abc
import dataclasses
import enum
import inspect
import typing

from .exceptions import InvalidDeclarationError
from .types import TypeDescriptor
from .utils import qualified_name


class UnspecifiedType(enum.Enum):
    UNSPECIFIED = "UNSPECIFIED"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return self.value


UNSPECIFIED = UnspecifiedType.UNSPECIFIED


@dataclasses.dataclass(frozen=True)
class Setting:
    """
    Marks a field as a mapped setting.
    """

    path: typing.Optional[str] = None
    """
    The key of the node the field is bound to.  Defaults to the field's own name.
    """

    comment: typing.Optional[str] = None
    """
    The comment attached to the node on serialization, if the node supports comments.
    """

    type: typing.Union[UnspecifiedType, typing.Any] = UNSPECIFIED
    """
    The declared type; only needed when the field carries no annotation.
    """


@dataclasses.dataclass(frozen=True)
class DeclaredSetting:
    name: str
    type: TypeDescriptor
    setting: Setting


@dataclasses.dataclass
class Meta:
    settings: typing.Mapping[str, Setting] = dataclasses.field(default_factory=dict)


def handle_meta(owner: type, meta: typing.Optional[typing.Type]) -> Meta:
    if meta is None:
        return Meta()
    attrs = {k: v for k, v in vars(meta).items() if not k.startswith("__")}
    settings = attrs.get("settings", {})
    if not isinstance(settings, collections.abc.Mapping):
        raise InvalidDeclarationError(
            f"Meta.settings of {qualified_name(owner)} must be a mapping of field names to settings"
        )
    for name, setting in settings.items():
        if not isinstance(setting, Setting):
            raise InvalidDeclarationError(
                f"Meta.settings[{name!r}] of {qualified_name(owner)} is not a Setting"
            )
    return Meta(settings=settings)


def find_setting(annotation: typing.Any) -> typing.Optional[Setting]:
    if typing.get_origin(annotation) is not typing.Annotated:
        return None
    for item in annotation.__metadata__:
        if isinstance(item, Setting):
            return item
    return None


class FieldExtractor(metaclass=abc.ABCMeta):
    """
    A :py:class:`FieldExtractor` discovers the mapped settings of a class.
    """

    @abc.abstractmethod
    def extract_settings(self, class_: type) -> typing.Iterable[DeclaredSetting]:
        """
        Returns the settings declared directly on ``class_``, ignoring anything
        inherited from its ancestors.

        :param type class_: the class to inspect.
        :return: an iterable of :py:class:`DeclaredSetting`.
        :raises InvalidDeclarationError: if a declaration is malformed.
        """
        ...  # pragma: nocover


class AnnotationFieldExtractor(FieldExtractor):
    """
    Discovers settings marked with ``typing.Annotated[..., Setting(...)]``, and those
    listed in the ``settings`` table of an inner ``Meta`` class.  A ``Meta`` entry
    takes precedence over a marker on the same field.
    """

    def _get_annotations(self, class_: type) -> typing.Mapping[str, typing.Any]:
        try:
            return inspect.get_annotations(class_, eval_str=True)
        except Exception as e:
            raise InvalidDeclarationError(
                f"failed to resolve annotations of {qualified_name(class_)} ({e})"
            ) from e

    def _build_type(
        self, class_: type, name: str, annotation: typing.Any
    ) -> TypeDescriptor:
        try:
            return TypeDescriptor.of(annotation)
        except InvalidDeclarationError as e:
            raise InvalidDeclarationError(
                f"field {name} of {qualified_name(class_)}: {e.message}"
            ) from e

    def extract_settings(self, class_: type) -> typing.Iterable[DeclaredSetting]:
        annotations = self._get_annotations(class_)
        meta = handle_meta(class_, vars(class_).get("Meta"))
        result: typing.List[DeclaredSetting] = []

        for name, annotation in annotations.items():
            setting = meta.settings.get(name) or find_setting(annotation)
            if setting is None:
                continue
            if setting.type is not UNSPECIFIED:
                annotation = setting.type
            result.append(DeclaredSetting(name, self._build_type(class_, name, annotation), setting))

        for name, setting in meta.settings.items():
            if name in annotations:
                continue
            if setting.type is UNSPECIFIED:
                raise InvalidDeclarationError(
                    f"field {name} of {qualified_name(class_)} has neither an annotation nor a type in its Setting"
                )
            result.append(DeclaredSetting(name, self._build_type(class_, name, setting.type), setting))

        return result
