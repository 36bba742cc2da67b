"""
config_binding.implementations.sqlalchemy module lets the columns of SQLAlchemy
declarative models be bound to configuration nodes.

Synopsis
--------

.. code-block:: python

   import sqlalchemy as sa
   from sqlalchemy import orm
   from config_binding import ObjectMapperFactory
   from config_binding.implementations.sqlalchemy import SQLAFieldExtractor, setting_info

   Base = orm.declarative_base()

   class Server(Base):
       __tablename__ = "servers"
       id = sa.Column(sa.Integer(), primary_key=True)
       host = sa.Column(sa.String(), nullable=False, info=setting_info(comment="address"))
       port = sa.Column(sa.Integer(), info=setting_info("listen-port"))

   factory = ObjectMapperFactory(SQLAFieldExtractor())
   server = factory.get_mapper(Server).bind_to_new().populate(node)
   session.add(server)

"""
import dataclasses
import typing

import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore

from ...declarative import DeclaredSetting, FieldExtractor, Setting
from ...exceptions import InvalidDeclarationError
from ...types import TypeDescriptor
from ...utils import qualified_name

SETTING_INFO_KEY = "config_binding.setting"


def setting_info(
    path: typing.Optional[str] = None, comment: typing.Optional[str] = None, **extra: typing.Any
) -> typing.Dict[str, typing.Any]:
    """
    Builds an ``info`` dictionary for a column that marks it as a mapped setting.

    :param Optional[str] path: the key of the node the column is bound to.
    :param Optional[str] comment: the comment attached to the node.
    :param extra: any other entries to keep in the dictionary.
    """
    return {SETTING_INFO_KEY: Setting(path=path, comment=comment), **extra}


def column_of(prop: orm.ColumnProperty) -> typing.Optional[sa.Column]:
    for column in prop.columns:
        if isinstance(column, sa.Column):
            return column
    return None


class SQLAFieldExtractor(FieldExtractor):
    """
    Discovers the column attributes of a mapped class whose column carries a
    :py:class:`Setting` under :py:data:`SETTING_INFO_KEY` in its ``info``.
    Columns inherited from a mapped ancestor are reported at that ancestor's level only.
    """

    def extract_type(self, class_: type, name: str, column: sa.Column) -> TypeDescriptor:
        try:
            python_type = column.type.python_type
        except NotImplementedError as e:
            raise InvalidDeclarationError(
                f"column {name} of {qualified_name(class_)} has no corresponding Python type"
            ) from e
        try:
            type_ = TypeDescriptor.of(python_type)
        except InvalidDeclarationError as e:
            raise InvalidDeclarationError(
                f"column {name} of {qualified_name(class_)}: {e.message}"
            ) from e
        if column.nullable:
            type_ = dataclasses.replace(type_, nullable=True)
        return type_

    def extract_settings(self, class_: type) -> typing.Iterable[DeclaredSetting]:
        result: typing.List[DeclaredSetting] = []
        sa_mapper = sa.inspect(class_, raiseerr=False)
        inherited = sa_mapper.inherits if isinstance(sa_mapper, orm.Mapper) else None
        for name, attr in vars(class_).items():
            if not isinstance(attr, orm.attributes.InstrumentedAttribute):
                continue
            # instrumented again on every subclass; owned by the ancestor
            if inherited is not None and inherited.has_property(name):
                continue
            prop = attr.property
            if not isinstance(prop, orm.ColumnProperty):
                continue
            column = column_of(prop)
            if column is None:
                continue
            setting = column.info.get(SETTING_INFO_KEY)
            if setting is None:
                continue
            if not isinstance(setting, Setting):
                raise InvalidDeclarationError(
                    f"info[{SETTING_INFO_KEY!r}] of column {name} of {qualified_name(class_)} is not a Setting"
                )
            result.append(DeclaredSetting(name, self.extract_type(class_, name, column), setting))
        return result
