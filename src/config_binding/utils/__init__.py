from .typing import qualified_name  # noqa
