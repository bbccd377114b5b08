"""Tests for structural and semantic schema checks."""

from datetime import date

from formforge.schema.builder import SchemaBuilder
from formforge.schema.types import ConditionalRule, Operator, SelectOption
from formforge.schema.validator import check_form, check_schema, check_schema_file


def make_doc(*fields: dict, **extra) -> dict:
    """Helper to create a one-section schema document."""
    doc = {
        "title": "Form",
        "sections": [{"title": "Main", "fields": list(fields)}],
    }
    doc.update(extra)
    return doc


def messages(issues) -> list[str]:
    return [i.message for i in issues]


class TestStructure:
    def test_valid_document(self):
        doc = make_doc({"name": "email", "label": "Email", "type": "email"})
        assert check_schema(doc) == []

    def test_empty_document(self):
        assert messages(check_schema(None)) == ["Schema document is empty"]

    def test_missing_sections(self):
        issues = check_schema({"title": "Form"})
        assert len(issues) == 1
        assert "'sections' is a required property" in issues[0].message

    def test_unknown_field_type_has_path(self):
        doc = make_doc({"name": "x", "label": "X", "type": "slider"})
        issues = check_schema(doc)
        assert issues[0].path == "sections[0]/fields[0]/type"

    def test_yaml_date_bounds_accepted(self):
        doc = make_doc({
            "name": "start",
            "label": "Start",
            "type": "date",
            "validation": {"minDate": date(2024, 1, 1)},
        })
        assert check_schema(doc) == []

    def test_recursive_document(self):
        doc = make_doc({"name": "a", "label": "A", "type": "text"})
        doc["sections"][0]["fields"].append(doc)
        issues = check_schema(doc)
        assert "recursive" in issues[0].message


class TestSemantics:
    def test_blank_title(self):
        issues = check_schema(make_doc({"name": "a", "label": "A", "type": "text"}, title=" "))
        assert messages(issues) == ["Form title is required"]

    def test_no_sections(self):
        assert "Form must have at least one section" in messages(
            check_schema({"title": "F", "sections": []})
        )

    def test_section_without_fields_or_title(self):
        issues = check_schema({"title": "F", "sections": [{"fields": []}]})
        assert messages(issues) == [
            "Section 1 must have a title",
            'Section "" must have at least one field',
        ]

    def test_duplicate_names(self):
        doc = make_doc(
            {"name": "a", "label": "A", "type": "text"},
            {"name": "a", "label": "A again", "type": "text"},
        )
        issues = check_schema(doc)
        assert messages(issues) == ['Duplicate field name "a"']
        assert issues[0].path == "sections[0]/fields[1]"

    def test_empty_label(self):
        issues = check_schema(make_doc({"name": "a", "label": "", "type": "text"}))
        assert messages(issues) == ['Field "a" must have a label']

    def test_choice_without_options(self):
        issues = check_schema(make_doc({"name": "c", "label": "C", "type": "select"}))
        assert messages(issues) == ['Field "c" of type select must have options']

    def test_unknown_reference_is_warning(self):
        doc = make_doc({
            "name": "a",
            "label": "A",
            "type": "text",
            "conditional": {"field": "ghost", "operator": "equals", "value": 1},
        })
        issues = check_schema(doc)
        assert [i.severity for i in issues] == ["warning"]
        assert 'unknown field "ghost"' in issues[0].message

    def test_strict_escalates_warnings(self):
        doc = make_doc({
            "name": "a",
            "label": "A",
            "type": "text",
            "conditional": {"field": "ghost"},
        })
        assert [i.severity for i in check_schema(doc, strict=True)] == ["error"]

    def test_conditional_cycle(self):
        doc = make_doc(
            {"name": "a", "label": "A", "type": "text", "conditional": {"field": "b"}},
            {"name": "b", "label": "B", "type": "text", "conditional": {"field": "a"}},
        )
        issues = check_schema(doc)
        assert messages(issues) == [
            'Field "a" has a conditional that depends on itself',
            'Field "b" has a conditional that depends on itself',
        ]
        assert all(i.severity == "error" for i in issues)


class TestCheckFile:
    def test_unreadable_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("sections: [")
        issues = check_schema_file(path)
        assert len(issues) == 1
        assert "Cannot parse" in issues[0].message

    def test_issue_str(self, tmp_path):
        path = tmp_path / "form.yaml"
        path.write_text("title: F\nsections: []\n")
        (issue,) = check_schema_file(path)
        assert str(issue) == "[ERROR] at sections: Form must have at least one section"


class TestCheckForm:
    def test_built_schema(self):
        builder = SchemaBuilder("Order")
        builder.add_section("Items").add_select_field(
            "size", "Size", [SelectOption(value="s", label="S")],
        ).add_text_field(
            "note",
            "Note",
            conditional=ConditionalRule(field="size", operator=Operator.EQUALS, value="s"),
        )
        assert check_form(builder.build()) == []
