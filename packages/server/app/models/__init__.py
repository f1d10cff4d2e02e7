# SQLModel definitions, imported here so metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .member import Member  # noqa: F401
from .invitation import Invitation  # noqa: F401
from .product import Product  # noqa: F401
from .surface import Surface  # noqa: F401
from .feature import Feature  # noqa: F401
