import typing


def qualified_name(class_: typing.Any) -> str:
    module = getattr(class_, "__module__", None)
    name = getattr(class_, "__qualname__", None) or repr(class_)
    if module in (None, "builtins"):
        return name
    return f"{module}.{name}"
