# SQLModel definitions, imported here so metadata is populated for create_all.
from .base import UUIDMixin, CreatedAtMixin  # noqa: F401
from .subscription import Subscription  # noqa: F401
