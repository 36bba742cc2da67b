"""
config_binding binds objects with annotated fields to hierarchical configuration trees.
"""
from .declarative import AnnotationFieldExtractor, FieldExtractor, Setting  # noqa
from .defaults import DefaultConfigurationOptions, default_serializers  # noqa
from .exceptions import (  # noqa
    ConstructionError,
    ConversionError,
    FieldAccessError,
    InvalidDeclarationError,
    MappingError,
    SerializerNotFoundError,
)
from .interfaces import (  # noqa
    CommentedConfigurationNode,
    ConfigurationNode,
    ConfigurationOptions,
    SerializerRegistry,
    TypeSerializer,
)
from .mapper import (  # noqa
    BoundInstance,
    FieldData,
    ObjectMapper,
    ObjectMapperFactory,
    default_factory,
    for_class,
    for_object,
)
from .registry import TypeSerializerCollection  # noqa
from .types import TypeDescriptor, TypeKind  # noqa
