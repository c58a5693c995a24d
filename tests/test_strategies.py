"""Tests for field classification, preparation and enum registration."""
import itertools
from dataclasses import replace

import pytest

from entitygen.generators.entity_gen.enums import EnumRegistry
from entitygen.generators.entity_gen.errors import ClassificationError, SchemaError
from entitygen.generators.entity_gen.exposure import ApiExposure
from entitygen.generators.entity_gen.parser import parse_entity
from entitygen.generators.entity_gen.strategies import (
    DEFAULT_STRATEGIES,
    ENUM,
    JSON,
    SCALAR,
    FieldStrategy,
    StrategyKind,
    StrategyRegistry,
    default_registry,
    foreign_key_name,
    input_description,
)
from entitygen.generators.entity_gen.types import EntitySchema, FieldSpec


def make_post(**extra_fields):
    fields = [
        {"name": "title", "type": "string"},
        {"name": "authorId", "type": "string"},
        {"name": "status", "type": "enum", "enum": ["draft", "published"], "default": "draft"},
        {"name": "tags", "type": "string", "array": True},
        {"name": "meta", "type": "json", "required": False},
    ]
    fields.extend({"name": name, **definition} for name, definition in extra_fields.items())
    return parse_entity({"name": "Post", "fields": fields})


def by_name(prepared):
    return {p.name: p for p in prepared}


def selected_kinds(registry, entity):
    enums = EnumRegistry.build(entity)
    return {
        f.name: registry.select(f, registry.context(entity, f, enums)).kind
        for f in entity.fields
    }


class TestDispatch:
    def test_post_fields(self):
        kinds = selected_kinds(default_registry, make_post())
        assert kinds == {
            "title": StrategyKind.SCALAR,
            "authorId": StrategyKind.FOREIGN_KEY,
            "status": StrategyKind.ENUM,
            "tags": StrategyKind.JSON_ARRAY,
            "meta": StrategyKind.JSON,
        }

    def test_json_with_item_schema_is_json_array_without_array_flag(self):
        entity = make_post(items={"type": "json", "itemSchema": {"sku": "string"}})
        assert selected_kinds(default_registry, entity)["items"] == StrategyKind.JSON_ARRAY

    def test_polymorphic_wins_over_everything(self):
        entity = make_post(commentable={"relation": {"polymorphic": True}})
        assert selected_kinds(default_registry, entity)["commentable"] == StrategyKind.POLYMORPHIC

    def test_registration_order_does_not_matter(self):
        entity = make_post(
            commentable={"relation": {"polymorphic": True}},
            items={"type": "json", "itemSchema": {"sku": "string"}},
        )
        expected = selected_kinds(default_registry, entity)
        for order in itertools.permutations(DEFAULT_STRATEGIES):
            assert selected_kinds(StrategyRegistry(order), entity) == expected

    def test_duplicate_priorities_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            StrategyRegistry([SCALAR, replace(JSON, priority=SCALAR.priority)])

    def test_strategies_sorted_by_priority(self):
        registry = StrategyRegistry([SCALAR, ENUM, JSON])
        assert [s.priority for s in registry.strategies] == [80, 60, 10]

    def test_no_match_raises_classification_error(self):
        entity = make_post()
        registry = StrategyRegistry([ENUM])
        with pytest.raises(ClassificationError):
            registry.prepare_fields(entity)

    def test_with_strategy_returns_new_registry(self):
        hidden = FieldStrategy(
            kind=StrategyKind.SCALAR,
            priority=95,
            matches=lambda field, ctx: field.name == "title",
            prepare=lambda ctx: None,
            prepare_input=lambda ctx: None,
        )
        extended = default_registry.with_strategy(hidden)
        assert len(extended.strategies) == len(default_registry.strategies) + 1
        prepared, errors = extended.prepare_fields(make_post())
        assert "title" not in by_name(prepared)
        assert errors == []
        assert "title" in by_name(default_registry.prepare_fields(make_post())[0])


class TestEntityFields:
    def test_scalar(self):
        fields = by_name(default_registry.prepare_fields(make_post())[0])
        title = fields["title"]
        assert title.type_hint == "str"
        assert title.nullable is False
        assert title.annotations == ("field_column(str)",)

    def test_foreign_key(self):
        fields = by_name(default_registry.prepare_fields(make_post())[0])
        author = fields["authorId"]
        assert author.is_foreign_key
        assert author.annotations == (
            "api_field(ID)",
            "foreign_key_column('Author', description='Foreign key for authorId')",
        )

    def test_foreign_key_with_description(self):
        entity = parse_entity({
            "name": "Post",
            "fields": [{"name": "editor", "relation": {"entity": "User"}, "description": "Editor", "required": False}],
        })
        editor = default_registry.prepare_fields(entity)[0][0]
        assert editor.name == "editorId"
        assert editor.nullable is True
        assert editor.annotations == (
            "api_field(ID, description='Editor')",
            "foreign_key_column('User', description='Editor (Foreign key for editor)', required=False)",
        )

    def test_enum_default(self):
        fields = by_name(default_registry.prepare_fields(make_post())[0])
        status = fields["status"]
        assert status.type_hint == "PostStatus"
        assert status.annotations == ("field_column_enum(PostStatus, default_value=PostStatus.DRAFT)",)

    def test_enum_array_default(self):
        entity = parse_entity({
            "name": "Post",
            "fields": [{"name": "labels", "type": "enum", "enum": ["hot", "new"], "array": True, "default": "hot"}],
        })
        labels = default_registry.prepare_fields(entity)[0][0]
        assert labels.type_hint == "List[PostLabel]"
        assert labels.annotations == ("field_column_enum(PostLabel, array=True, default_value=[PostLabel.HOT])",)

    def test_scalar_array_is_json_column(self):
        fields = by_name(default_registry.prepare_fields(make_post())[0])
        assert fields["tags"].type_hint == "List[str]"
        assert fields["tags"].annotations == ("field_column_json(PostTagsSchema)",)
        assert fields["meta"].annotations == ("field_column_json(dict, required=False)",)
        assert fields["meta"].nullable is True

    def test_polymorphic_columns(self):
        entity = make_post(commentable={"relation": {"polymorphic": True}})
        fields = by_name(default_registry.prepare_fields(entity)[0])
        assert fields["commentableId"].is_polymorphic_id
        assert fields["commentableType"].is_polymorphic_type
        assert fields["commentableId"].annotations == (
            "polymorphic_column('id', description='Polymorphic association to any entity ID', max_length=36)",
        )
        assert fields["commentableType"].annotations == (
            "polymorphic_column('type', description='Polymorphic association to any entity type')",
        )

    def test_one_to_many_is_omitted(self):
        entity = make_post(comments={"relation": {"entity": "Comment", "type": "one-to-many"}})
        assert "comments" not in by_name(default_registry.prepare_fields(entity)[0])

    def test_email_and_constraints(self):
        entity = parse_entity({
            "name": "User",
            "fields": [{"name": "email", "unique": True, "maxLength": 255}],
        })
        email = default_registry.prepare_fields(entity)[0][0]
        assert email.annotations == ("field_column(str, unique=True, max_length=255, email=True)",)

    def test_api_false_hides_field_from_object_type(self):
        entity = make_post(secret={"type": "string", "api": False})
        fields = by_name(default_registry.prepare_fields(entity)[0])
        assert fields["secret"].annotations == ("field_column(str, api=False)",)
        inputs = by_name(default_registry.prepare_fields(entity, input_type="create")[0])
        assert "secret" not in inputs

    def test_unserializable_default_is_isolated(self):
        entity = EntitySchema(
            name="Reading",
            fields=(
                FieldSpec(name="label"),
                FieldSpec(name="value", type="float", default_value=float("nan")),
                FieldSpec(name="unit"),
            ),
        )
        prepared, errors = default_registry.prepare_fields(entity)
        assert [p.name for p in prepared] == ["label", "unit"]
        assert len(errors) == 1
        assert errors[0].startswith("Field 'value':")

    def test_unknown_enum_default_is_isolated(self):
        entity = make_post(kind={"type": "enum", "enum": ["a", "b"], "default": "c"})
        prepared, errors = default_registry.prepare_fields(entity)
        assert "kind" not in by_name(prepared)
        assert errors and errors[0].startswith("Field 'kind':")

    def test_output_is_deterministic(self):
        entity = make_post(commentable={"relation": {"polymorphic": True}})
        assert default_registry.prepare_fields(entity) == default_registry.prepare_fields(entity)

    def test_field_order_does_not_change_selection(self):
        entity = make_post(commentable={"relation": {"polymorphic": True}})
        expected_kinds = selected_kinds(default_registry, entity)
        expected = by_name(default_registry.prepare_fields(entity)[0])
        for order in itertools.permutations(entity.fields):
            reordered = replace(entity, fields=tuple(order))
            assert selected_kinds(default_registry, reordered) == expected_kinds
            assert by_name(default_registry.prepare_fields(reordered)[0]) == expected


class TestInputFields:
    def test_create_input(self):
        fields = by_name(default_registry.prepare_fields(make_post(), input_type="create")[0])
        assert fields["title"].annotations == ("field_input(str, input_type='create')",)
        assert fields["title"].nullable is False
        assert fields["authorId"].annotations == (
            "field_input(str, input_type='create', description='Input: ID of related Author')",
        )
        assert fields["meta"].annotations == ("field_input_json(dict, input_type='create', required=False)",)
        assert fields["meta"].type_hint == "Dict[str, Any]"
        assert fields["tags"].type_hint == "List[Any]"

    def test_update_input_is_partial(self):
        fields = by_name(default_registry.prepare_fields(make_post(), input_type="update")[0])
        assert fields["title"].annotations == ("field_input(str, input_type='update')",)
        assert all(f.nullable for f in fields.values())

    def test_enum_input_default(self):
        fields = by_name(default_registry.prepare_fields(make_post(), input_type="create")[0])
        assert fields["status"].annotations == (
            "field_input_enum(PostStatus, input_type='create', default=PostStatus.DRAFT)",
        )

    def test_polymorphic_input(self):
        entity = make_post(commentable={"relation": {"polymorphic": True}})
        fields = by_name(default_registry.prepare_fields(entity, input_type="create")[0])
        assert fields["commentableId"].annotations == (
            "field_input(str, input_type='create', description='Input: ID of the associated entity', max_length=36)",
        )

    def test_input_description_hints(self):
        field = FieldSpec(name="title", description="Headline", max_length=120)
        assert input_description(field, field.description) == "Input: Headline. Required field. Max 120 characters."
        optional = FieldSpec(name="title", description="Headline", required=False)
        assert input_description(optional, optional.description) == "Headline"
        assert input_description(field, None) is None


class TestForeignKeyName:
    @pytest.mark.parametrize("field, expected", [
        (FieldSpec(name="author"), "authorId"),
        (FieldSpec(name="authorId"), "authorId"),
        (FieldSpec(name="author", key="writerRef"), "writerRef"),
    ])
    def test_resolution(self, field, expected):
        assert foreign_key_name(field) == expected

    def test_idempotent(self):
        once = foreign_key_name(FieldSpec(name="author"))
        assert foreign_key_name(FieldSpec(name=once)) == once


class TestEnumRegistry:
    def test_registers_enum_fields_once(self):
        registry = EnumRegistry.build(make_post())
        assert len(registry) == 1
        definition = registry.definitions()[0]
        assert definition.name == "PostStatus"
        assert definition.members == (("draft", "DRAFT"), ("published", "PUBLISHED"))

    def test_conflicting_enum_names(self):
        entity = make_post(statuses={"type": "enum", "enum": ["open", "closed"]})
        with pytest.raises(SchemaError, match="PostStatus"):
            EnumRegistry.build(entity)

    def test_member_collision(self):
        entity = parse_entity({
            "name": "Task",
            "fields": [{"name": "stage", "type": "enum", "enum": ["in-progress", "in_progress"]}],
        })
        with pytest.raises(SchemaError, match="same member"):
            EnumRegistry.build(entity)

    def test_unregistered_enum_field(self):
        entity = make_post()
        empty = EnumRegistry({}, [])
        with pytest.raises(ClassificationError):
            default_registry.prepare_fields(entity, enums=empty)


class TestApiExposure:
    def test_defaults(self):
        assert ApiExposure.for_field(FieldSpec(name="title")) == ApiExposure(True, True, False, False)

    def test_relationship_defaults(self):
        author = make_post().fields[1]
        assert ApiExposure.for_field(author) == ApiExposure(True, True, True, True)

    def test_granular(self):
        field = FieldSpec(name="title", api=("inputs",))
        assert ApiExposure.for_field(field) == ApiExposure(False, True, False, False)
