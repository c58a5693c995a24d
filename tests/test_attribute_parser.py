"""Tests for shorthand attribute parsing."""
import pytest

from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.parser import (
    is_valid_attribute_name,
    parse_attribute,
    parse_attributes,
)
from entitygen.generators.entity_gen.types import RelationKind


class TestParseAttribute:
    def test_name_and_type(self):
        field = parse_attribute("title:string")
        assert field.name == "title"
        assert field.type == "string"
        assert field.required is True
        assert field.relationship is None

    def test_trailing_question_mark_marks_optional(self):
        field = parse_attribute("content:text?")
        assert field.type == "text"
        assert field.required is False

    def test_missing_type_defaults_to_string(self):
        assert parse_attribute("title").type == "string"
        assert parse_attribute("title?").required is False

    def test_type_is_case_insensitive(self):
        assert parse_attribute("count:INTEGER").type == "integer"

    def test_unknown_type_degrades_to_string(self):
        assert parse_attribute("mood:widget").type == "string"

    def test_polymorphic_shorthand(self):
        field = parse_attribute("owner:polymorphic")
        assert field.is_polymorphic

    @pytest.mark.parametrize("raw", ["", "   ", ":string", "a:b:c", "status:enum", "author:relation"])
    def test_invalid_shorthand_raises(self, raw):
        with pytest.raises(SchemaError):
            parse_attribute(raw)


class TestIdInference:
    @pytest.mark.parametrize("name,target", [
        ("userId", "User"),
        ("authorId", "Author"),
        ("blogPostId", "BlogPost"),
    ])
    @pytest.mark.parametrize("field_type", ["string", "number"])
    def test_id_suffix_infers_many_to_one(self, name, target, field_type):
        """An ...Id field of type string or number references the Id-stripped entity."""
        field = parse_attribute(f"{name}:{field_type}")
        assert field.relationship is not None
        assert field.relationship.kind == RelationKind.MANY_TO_ONE
        assert field.relationship.target == target

    def test_type_defaults_to_string_for_inference(self):
        assert parse_attribute("userId").relationship.target == "User"

    @pytest.mark.parametrize("raw", ["ownerId:boolean", "Id:string", "identity:string", "ownerId:widget"])
    def test_no_inference(self, raw):
        assert parse_attribute(raw).relationship is None


class TestAttributeNames:
    @pytest.mark.parametrize("name", ["title", "_private", "$ref", "field2"])
    def test_valid_names(self, name):
        assert is_valid_attribute_name(name)

    @pytest.mark.parametrize("name", ["", "2fast", "my-field", "has space"])
    def test_invalid_names(self, name):
        assert not is_valid_attribute_name(name)

    def test_parse_does_not_validate_names(self):
        """Name validity is a separate check."""
        assert parse_attribute("my-field:string").name == "my-field"

    def test_parse_attributes_rejects_invalid_names(self):
        with pytest.raises(SchemaError, match="my-field"):
            parse_attributes(["title:string", "my-field:string"])
