"""Who may do what to a live class.

Pure functions of (actor role, action, live class snapshot). The caller
resolves the role up front, including the enrollment lookup, so nothing here
touches a store or the catalog.
"""

from enum import Enum

from liveclass.schemas import LiveClass, Visibility
from liveclass.utils.app_errors import AuthorizationError


class ActorRole(str, Enum):
    """Actor role relative to one live class."""

    INSTRUCTOR = "instructor"
    ENROLLED = "enrolled"
    UNENROLLED = "unenrolled"
    ANONYMOUS = "anonymous"

    def __str__(self) -> str:
        return self.value


class LiveClassAction(str, Enum):
    START = "start"
    END = "end"
    CANCEL = "cancel"
    UPDATE = "update"
    JOIN = "join"
    VIEW = "view"
    VIEW_ROSTER = "view_roster"

    def __str__(self) -> str:
        return self.value


INSTRUCTOR_ONLY_ACTIONS = frozenset(
    {
        LiveClassAction.START,
        LiveClassAction.END,
        LiveClassAction.CANCEL,
        LiveClassAction.UPDATE,
        LiveClassAction.VIEW_ROSTER,
    }
)


def resolve_role(user_id: str | None, live_class: LiveClass, is_enrolled: bool) -> ActorRole:
    if not user_id:
        return ActorRole.ANONYMOUS
    if user_id == live_class.instructor_id:
        return ActorRole.INSTRUCTOR
    return ActorRole.ENROLLED if is_enrolled else ActorRole.UNENROLLED


def is_permitted(role: ActorRole, action: LiveClassAction, live_class: LiveClass) -> bool:
    """Decide whether `role` may perform `action` on `live_class`.

    The instructor may do everything. Everyone else is denied the
    instructor-only actions regardless of status. Joining needs an
    authenticated actor and either a public class or an enrollment; viewing
    follows the same rule but is open to anonymous callers for public classes.
    """
    if role is ActorRole.INSTRUCTOR:
        return True
    if action in INSTRUCTOR_ONLY_ACTIONS:
        return False

    is_public = live_class.visibility is Visibility.PUBLIC
    if action is LiveClassAction.JOIN:
        if role is ActorRole.ANONYMOUS:
            return False
        return is_public or role is ActorRole.ENROLLED
    if action is LiveClassAction.VIEW:
        return is_public or role is ActorRole.ENROLLED
    return False


def ensure_permitted(role: ActorRole, action: LiveClassAction, live_class: LiveClass) -> None:
    """Raise AuthorizationError unless `is_permitted`."""
    if not is_permitted(role, action, live_class):
        raise AuthorizationError(
            f"{role} may not {action} live class {live_class.live_class_id}"
        )
