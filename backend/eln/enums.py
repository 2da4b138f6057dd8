from enum import Enum, IntEnum


class EntityType(str, Enum):
    EXPERIMENTS = "experiments"
    ITEMS = "items"
    TEMPLATES = "experiments_templates"
    ITEMS_TYPES = "items_types"


class State(IntEnum):
    NORMAL = 1
    ARCHIVED = 2
    DELETED = 3


# states shown in link listings and default entity listings
ACTIVE_STATES = (State.NORMAL, State.ARCHIVED)


class Action(str, Enum):
    CREATE = "create"
    DUPLICATE = "duplicate"
    UPDATE = "update"
    ARCHIVE = "archive"
    FINISH = "finish"
    DESTROY = "destroy"


class Permission(str, Enum):
    USER = "user"
    TEAM = "team"
    ORGANIZATION = "organization"


class LinkKind(str, Enum):
    """Path segment naming which kind of target a link points to."""

    EXPERIMENTS_LINKS = "experiments_links"
    ITEMS_LINKS = "items_links"

    @property
    def target(self) -> EntityType:
        if self is LinkKind.EXPERIMENTS_LINKS:
            return EntityType.EXPERIMENTS
        return EntityType.ITEMS
