from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    normal = "normal"
    admin = "admin"


class LinkType(str, Enum):
    favorite = "favorite"
    visited = "visited"
    review = "review"
    owner = "owner"
