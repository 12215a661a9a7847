"""Caller roles."""

import enum


class Role(str, enum.Enum):
    """Role of the interactive caller, fixed for the process lifetime."""

    ADMINISTRATOR = "administrator"
    RESTRICTED = "restricted"


def derive_role(username: str, admin_username: str = "admin") -> Role:
    """The administrative username gets ``ADMINISTRATOR``; everyone else is restricted."""
    if username == admin_username:
        return Role.ADMINISTRATOR
    return Role.RESTRICTED
