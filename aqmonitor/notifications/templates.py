"""Message templates rendered with Jinja2.

Every message the service sends is a fixed plain-text body with a handful of
substitutions (username, timestamp, rounded reading, threshold). Subjects are
fixed strings. Bodies live as ``*.txt.j2`` files in the ``message_templates``
directory of this package.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from aqmonitor.domain.models import MessageRequest

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class MessageTemplate(str, Enum):
    """Every message kind the service can send."""

    WELCOME = "welcome"
    LOGIN = "login"
    LOGOUT = "logout"
    PROFILE_UPDATED = "profile_updated"
    GOOD_AIR_ALERT = "good_air_alert"
    BAD_AIR_ALERT = "bad_air_alert"


SUBJECTS: Dict[MessageTemplate, str] = {
    MessageTemplate.WELCOME: "Welcome to Air Quality Monitor!",
    MessageTemplate.LOGIN: "New Login to Your Account",
    MessageTemplate.LOGOUT: "Logged Out Successfully",
    MessageTemplate.PROFILE_UPDATED: "Profile Updated Successfully",
    MessageTemplate.GOOD_AIR_ALERT: "🌟 Good Air Quality Alert",
    MessageTemplate.BAD_AIR_ALERT: "⚠ Poor Air Quality Alert",
}


class TemplateRenderer:
    """Renders message bodies from packaged Jinja2 templates.

    Templates are cached by the Jinja2 environment after first load.
    Missing variables raise instead of rendering blanks.
    """

    def __init__(self, template_dir: str = "message_templates", signature: Optional[str] = None):
        """Initialize the Jinja2 environment.

        Args:
            template_dir: Directory name within the aqmonitor.notifications package
            signature: Closing line appended to every body
        """
        self.signature = signature or "Air Quality Monitor Team"
        self.env = Environment(
            loader=PackageLoader("aqmonitor.notifications", template_dir),
            autoescape=False,  # plain-text bodies
            undefined=StrictUndefined,
            keep_trailing_newline=False,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template: MessageTemplate, context: Dict[str, Any]) -> Dict[str, str]:
        """Render the subject and body for a message.

        Args:
            template: Which message to render
            context: Template variables

        Returns:
            Dictionary with ``subject`` and ``body``

        Raises:
            NotificationTemplateError: If the template is missing or rendering fails
        """
        try:
            body_template = self.env.get_template(f"{template.value}.txt.j2")
            body = body_template.render({**context, "signature": self.signature})
        except TemplateError as e:
            error_msg = f"Template rendering failed for {template.value}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        return {"subject": SUBJECTS[template], "body": body.strip() + "\n"}

    def build_request(
        self, template: MessageTemplate, recipient_address: str, context: Dict[str, Any]
    ) -> MessageRequest:
        """Render a template straight into a MessageRequest."""
        rendered = self.render(template, context)
        return MessageRequest(
            recipient_address=recipient_address,
            subject=rendered["subject"],
            body=rendered["body"],
        )
