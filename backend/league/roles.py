"""User roles and the single permission predicate built on them."""

from enum import IntEnum


class Role(IntEnum):
    PLAYER = 1
    MANAGER = 2
    ADMIN = 3
    COMMISSIONER = 4

    @property
    def slug(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value) -> 'Role':
        """Accept a Role, its lowercase slug, or its integer rank."""
        if isinstance(value, Role):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown role '{value}'")


def has_permission(role, required) -> bool:
    """True when ``role`` ranks at or above ``required``.

    Unknown or missing roles never have permission.
    """
    try:
        return Role.parse(role) >= Role.parse(required)
    except (ValueError, TypeError):
        return False


def is_oversight(role) -> bool:
    # Admins and commissioners can see and act on every team
    return has_permission(role, Role.ADMIN)
