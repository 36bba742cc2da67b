from .core import SETTING_INFO_KEY, SQLAFieldExtractor, setting_info  # noqa
