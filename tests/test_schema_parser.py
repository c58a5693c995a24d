"""Tests for structured schema parsing and schema file loading."""
import json

import pytest

from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.loader import load_schema_file
from entitygen.generators.entity_gen.parser import parse_entity, parse_shorthand_entity
from entitygen.generators.entity_gen.types import ALL_OPERATIONS, RelationKind

POST_SCHEMA = {
    "name": "Post",
    "description": "A blog post",
    "fields": [
        {"name": "title", "type": "string", "maxLength": 120},
        {"name": "authorId", "type": "string", "description": "Writer"},
        {"name": "status", "type": "enum", "enum": ["draft", "published"], "default": "draft"},
        {"name": "tags", "type": "string", "array": True, "required": False},
    ],
    "indexes": ["title", ["authorId", "status"]],
}


class TestParseEntity:
    def test_fields_array(self):
        entity = parse_entity(POST_SCHEMA)
        assert entity.name == "Post"
        assert entity.description == "A blog post"
        assert [f.name for f in entity.fields] == ["title", "authorId", "status", "tags"]
        assert entity.indexes == ("title", ("authorId", "status"))

        title, author, status, tags = entity.fields
        assert title.max_length == 120
        assert author.relationship.kind == RelationKind.MANY_TO_ONE
        assert author.relationship.target == "Author"
        assert status.enum_values == ("draft", "published")
        assert status.default_value == "draft"
        assert tags.array is True
        assert tags.required is False

    def test_fields_mapping_and_shorthand_entries(self):
        entity = parse_entity({
            "name": "Comment",
            "fields": {"body": {"type": "text"}, "score": "number?", "postId": "string"},
        })
        body, score, post = entity.fields
        assert body.type == "text"
        assert score.type == "number"
        assert score.required is False
        assert post.relationship.target == "Post"

    def test_json_text(self):
        entity = parse_entity(json.dumps(POST_SCHEMA))
        assert entity.name == "Post"

    def test_invalid_json_text(self):
        with pytest.raises(SchemaError, match="not valid JSON"):
            parse_entity("{not json")

    def test_missing_fields(self):
        with pytest.raises(SchemaError, match="fields"):
            parse_entity({"name": "Post"})

    def test_name_must_be_pascal_case(self):
        with pytest.raises(SchemaError, match="PascalCase"):
            parse_entity({"name": "post", "fields": []})

    def test_enum_without_values(self):
        with pytest.raises(SchemaError, match="no enum values"):
            parse_entity({"name": "Post", "fields": [{"name": "status", "type": "enum"}]})

    def test_duplicate_field_names(self):
        with pytest.raises(SchemaError, match="more than once"):
            parse_entity({"name": "Post", "fields": ["title:string", {"name": "title"}]})

    def test_invalid_field_name(self):
        with pytest.raises(SchemaError, match="not a valid identifier"):
            parse_entity({"name": "Post", "fields": [{"name": "2fast"}]})

    def test_invalid_key(self):
        with pytest.raises(SchemaError, match="valid identifier"):
            parse_entity({"name": "Post", "fields": [{"name": "author", "key": "author-id",
                                                      "relation": {"entity": "User"}}]})

    @pytest.mark.parametrize("name", ["from", "class", "price$", "$ref"])
    def test_field_name_must_be_usable_in_python(self, name):
        with pytest.raises(SchemaError, match="cannot be used in generated Python code"):
            parse_entity({"name": "Post", "fields": [{"name": name, "type": "string"}]})

    def test_field_name_with_trailing_newline(self):
        with pytest.raises(SchemaError, match="not a valid identifier"):
            parse_entity({"name": "Post", "fields": [{"name": "title\n"}]})

    def test_keyword_key(self):
        with pytest.raises(SchemaError, match="valid identifier"):
            parse_entity({"name": "Post", "fields": [{"name": "author", "key": "import",
                                                      "relation": {"entity": "User"}}]})

    @pytest.mark.parametrize("name", ["True", "None", "Post\n"])
    def test_entity_name_must_be_usable_in_python(self, name):
        with pytest.raises(SchemaError, match="PascalCase"):
            parse_entity({"name": name, "fields": ["title:string"]})

    def test_unknown_relation_type(self):
        with pytest.raises(SchemaError):
            parse_entity({"name": "Post", "fields": [{"name": "author", "relation": {"entity": "User", "type": "sideways"}}]})

    def test_relation_requires_entity(self):
        with pytest.raises(SchemaError, match="must specify an entity"):
            parse_entity({"name": "Post", "fields": [{"name": "author", "relation": {"type": "many-to-one"}}]})

    def test_relation_type_without_configuration(self):
        with pytest.raises(SchemaError, match="no relation configuration"):
            parse_entity({"name": "Post", "fields": [{"name": "author", "type": "relation"}]})

    def test_explicit_relation(self):
        entity = parse_entity({
            "name": "Post",
            "fields": [{
                "name": "comments",
                "relation": {"entity": "Comment", "type": "one-to-many", "eager": True, "onDelete": "CASCADE"},
            }],
        })
        rel = entity.fields[0].relationship
        assert rel.kind == RelationKind.ONE_TO_MANY
        assert rel.target == "Comment"
        assert rel.eager is True
        assert rel.on_delete == "CASCADE"

    def test_polymorphic_relation_has_no_target(self):
        entity = parse_entity({
            "name": "Comment",
            "fields": [{"name": "commentable", "relation": {"polymorphic": True}}],
        })
        field = entity.fields[0]
        assert field.is_polymorphic
        assert field.relationship.target is None

    def test_foreign_key_option_on_plain_field(self):
        with pytest.raises(SchemaError, match="not a relation field"):
            parse_entity({"name": "Post", "fields": [{"name": "title", "api": ["object", "foreignKey"]}]})

    def test_unknown_api_option(self):
        with pytest.raises(SchemaError, match="api option"):
            parse_entity({"name": "Post", "fields": [{"name": "title", "api": ["everything"]}]})

    def test_api_options_are_normalized(self):
        entity = parse_entity({
            "name": "Post",
            "fields": [{"name": "author", "relation": {"entity": "User"}, "api": ["object", "foreignKey"]}],
        })
        assert entity.fields[0].api == ("object", "foreign_key")

    def test_array_options(self):
        entity = parse_entity({
            "name": "Post",
            "fields": [{"name": "tags", "array": True, "arrayOptions": {"minLength": 1, "maxLength": 5}}],
        })
        field = entity.fields[0]
        assert (field.min_array_size, field.max_array_size) == (1, 5)


class TestOperations:
    def test_default_is_every_operation(self):
        entity = parse_entity(POST_SCHEMA)
        assert entity.operations is None
        assert entity.enabled_operations() == ALL_OPERATIONS

    def test_aliases_and_canonical_order(self):
        entity = parse_entity({**POST_SCHEMA, "operations": ["createUpdate", "array", "single"]})
        assert entity.enabled_operations() == ("single", "list", "create_update")

    def test_disabled(self):
        entity = parse_entity({**POST_SCHEMA, "operations": False})
        assert entity.enabled_operations() == ()

    def test_unknown_operation(self):
        with pytest.raises(SchemaError, match="Unknown operation"):
            parse_entity({**POST_SCHEMA, "operations": ["publish"]})


class TestShorthandEntity:
    def test_builds_entity(self):
        entity = parse_shorthand_entity("Post", ["title:string", "authorId:string", "content:text?"])
        assert [f.name for f in entity.fields] == ["title", "authorId", "content"]
        assert entity.fields[1].relationship.target == "Author"
        assert entity.operations is None

    def test_rejects_lowercase_name(self):
        with pytest.raises(SchemaError):
            parse_shorthand_entity("post", ["title:string"])

    def test_rejects_keyword_name(self):
        with pytest.raises(SchemaError, match="PascalCase"):
            parse_shorthand_entity("None", ["title:string"])

    def test_rejects_duplicates(self):
        with pytest.raises(SchemaError, match="more than once"):
            parse_shorthand_entity("Post", ["title:string", "title:text"])


class TestLoader:
    def test_json_single_entity(self, tmp_path):
        path = tmp_path / "post.json"
        path.write_text(json.dumps(POST_SCHEMA), encoding="utf-8")
        entities = load_schema_file(path)
        assert [e.name for e in entities] == ["Post"]

    def test_yaml_entities_wrapper(self, tmp_path):
        path = tmp_path / "blog.yaml"
        path.write_text(
            "entities:\n"
            "  - name: Post\n"
            "    fields:\n"
            "      title: string\n"
            "      authorId: string\n"
            "  - name: Comment\n"
            "    fields:\n"
            "      - name: body\n"
            "        type: text\n",
            encoding="utf-8",
        )
        entities = load_schema_file(path)
        assert [e.name for e in entities] == ["Post", "Comment"]
        assert entities[0].fields[1].relationship.target == "Author"

    def test_json_list(self, tmp_path):
        path = tmp_path / "all.json"
        path.write_text(json.dumps([POST_SCHEMA, {"name": "Tag", "fields": ["label:string"]}]), encoding="utf-8")
        assert [e.name for e in load_schema_file(path)] == ["Post", "Tag"]

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("name: Post\nfields: [unclosed\n", encoding="utf-8")
        with pytest.raises(SchemaError, match="Cannot decode"):
            load_schema_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaError, match="Cannot read"):
            load_schema_file(tmp_path / "missing.json")

    def test_empty_list(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(SchemaError, match="no entities"):
            load_schema_file(path)
