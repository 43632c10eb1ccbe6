"""Unit tests for template lookup and rendering."""

from unittest.mock import MagicMock

from planexpiry.services.template_service import render_template, resolve_template
from planexpiry.store.base import EmailTemplate
from planexpiry.store.memory_provider import InMemoryTemplateStore


class TestResolveTemplate:

    def test_returns_matching_template(self):
        template = EmailTemplate(name="free-plan-expired", language="en", subject="s", body_html="b")
        store = InMemoryTemplateStore([template])

        assert resolve_template(store, "free-plan-expired", "en") is template

    def test_language_must_match(self):
        store = InMemoryTemplateStore([EmailTemplate(name="free-plan-expired", language="de")])

        assert resolve_template(store, "free-plan-expired", "en") is None

    def test_returns_first_match(self):
        first = EmailTemplate(name="free-plan-expired", language="en", subject="first")
        second = EmailTemplate(name="free-plan-expired", language="en", subject="second")
        store = InMemoryTemplateStore([first, second])

        assert resolve_template(store, "free-plan-expired", "en").subject == "first"

    def test_lookup_error_is_treated_as_not_found(self):
        store = MagicMock()
        store.find_template.side_effect = ConnectionError("connection reset")

        assert resolve_template(store, "free-plan-expiring", "en") is None


class TestRenderTemplate:

    def test_replaces_every_occurrence(self):
        text = "{{name}} / {{name}} / {{upgradeUrl}}"

        rendered = render_template(text, {"name": "Ana", "upgradeUrl": "https://x/plans"})

        assert rendered == "Ana / Ana / https://x/plans"

    def test_values_are_not_escaped(self):
        rendered = render_template("<b>{{name}}</b>", {"name": "<i>Ana & co</i>"})

        assert rendered == "<b><i>Ana & co</i></b>"

    def test_unknown_placeholders_are_left_in_place(self):
        rendered = render_template("{{name}} {{expiryDate}}", {"name": "Ana"})

        assert rendered == "Ana {{expiryDate}}"
