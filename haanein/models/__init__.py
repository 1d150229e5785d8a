from haanein.models.users import User
from haanein.models.places import Place
from haanein.models.links import Link

__all__ = ["User", "Place", "Link"]
