"""Tests for Jinja2 template rendering and the MessageTemplate aggregate."""

import pytest
from protean.exceptions import ValidationError

from routing.template import renderer
from routing.template.template import MessageTemplate


class TestRenderer:
    def test_renders_variables(self):
        assert renderer.render("Hello {{ name }}", {"name": "Acme"}) == "Hello Acme"

    def test_missing_variables_render_empty(self):
        assert renderer.render("Hello {{ name }}!", {}) == "Hello !"

    def test_missing_nested_attribute_renders_empty(self):
        assert renderer.render("[{{ client.name }}]", {}) == "[]"

    def test_empty_template_renders_empty_string(self):
        assert renderer.render(None, {"a": 1}) == ""
        assert renderer.render("", {"a": 1}) == ""

    def test_html_is_autoescaped(self):
        assert renderer.render("<p>{{ v }}</p>", {"v": "<b>"}, html=True) == "<p>&lt;b&gt;</p>"

    def test_text_is_not_escaped(self):
        assert renderer.render("{{ v }}", {"v": "<b>"}) == "<b>"

    def test_loops_and_conditionals(self):
        text = "{% for f in files %}{{ f }};{% endfor %}{% if late %} late{% endif %}"
        assert renderer.render(text, {"files": ["a.csv", "b.csv"], "late": True}) == "a.csv;b.csv; late"

    def test_syntax_error_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            renderer.render("{% if x %}unterminated", {})
        assert "template" in exc.value.messages

    def test_extract_variables(self):
        assert renderer.extract_variables("{{ a }} {{ b.c }} {% for x in items %}{{ x }}{% endfor %}") == {
            "a",
            "b",
            "items",
        }


class TestMessageTemplate:
    def _template(self, **overrides):
        defaults = {
            "name": "payroll-error",
            "subject": "Payroll error for {{ client }}",
            "html_content": "<p>{{ count }} rows rejected</p>",
            "text_content": "{{ count }} rows rejected",
            "test_data": {"client": "Acme", "count": 3},
        }
        defaults.update(overrides)
        return MessageTemplate.create(**defaults)

    def test_create_validates_syntax(self):
        with pytest.raises(ValidationError):
            self._template(subject="{{ broken")

    def test_render(self):
        rendered = self._template().render({"client": "Globex", "count": 7})
        assert rendered == {
            "subject": "Payroll error for Globex",
            "html_body": "<p>7 rows rejected</p>",
            "plain_text_body": "7 rows rejected",
        }

    def test_bodies_without_content_render_none(self):
        rendered = self._template(html_content=None, text_content=None).render({})
        assert rendered["html_body"] is None
        assert rendered["plain_text_body"] is None

    def test_variables_and_sample_data(self):
        t = self._template()
        assert t.variables == {"client", "count"}
        assert t.sample_data == {"client": "Acme", "count": 3}

    def test_update_content_revalidates(self):
        t = self._template()
        with pytest.raises(ValidationError):
            t.update_content(html_content="{% for %}")

    def test_deactivate(self):
        t = self._template()
        t.set_active(False)
        assert t.is_active is False
