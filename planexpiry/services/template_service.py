"""
Notification template lookup and rendering.
"""

import logging

from planexpiry.store.base import EmailTemplate, TemplateStore

logger = logging.getLogger(__name__)


def resolve_template(store: TemplateStore, name: str, language: str) -> EmailTemplate | None:
    """
    Look up a template by logical name and language.

    A lookup error is treated like a missing template: the jobs then run
    without sending email instead of aborting.
    """
    try:
        template = store.find_template(name, language)
    except Exception as e:
        logger.error(f"[TEMPLATE] Failed to fetch template '{name}' ({language}): {e}")
        return None

    if template is None:
        logger.warning(f"[TEMPLATE] No template '{name}' found for language '{language}'")
    return template


def render_template(text: str, values: dict[str, str]) -> str:
    """Replace every {{key}} occurrence verbatim. No escaping is applied."""
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text
