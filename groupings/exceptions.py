from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

INVITATION_ERRORS = {
    "not_found": _("Could not find a student with user name %(user_name)s."),
    "inviting_self": _("You cannot invite yourself to your own group."),
    "extension_exists": _("You cannot invite members to a group that has an extension."),
    "group_max_reached": _(
        "Could not invite %(user_name)s: the group has reached the maximum number of members."
    ),
    "not_same_section": _(
        "Could not invite %(user_name)s: group members must belong to the same section."
    ),
    "already_grouped": _("%(user_name)s already belongs to a group for this assignment."),
    "already_pending": _("%(user_name)s has already been invited to this group."),
}


class InvitationError(ValidationError):
    """A student cannot be invited to a grouping; ``code`` names the reason."""

    def __init__(self, code: str, user_name: str = ""):
        super().__init__(
            INVITATION_ERRORS[code], code=code, params={"user_name": user_name}
        )
