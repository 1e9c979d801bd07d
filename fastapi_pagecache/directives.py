from enum import Enum


class DirectiveType(Enum):
    """Cache-Control directives emitted by the response cache."""

    MAX_AGE = "max-age"
    NO_STORE = "no-store"
    PUBLIC = "public"
    PRIVATE = "private"
    STALE_WHILE_REVALIDATE = "stale-while-revalidate"
