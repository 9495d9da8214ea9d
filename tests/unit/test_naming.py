"""Tests for operation name derivation."""

import pytest

from dazzle_crud.runtime.naming import (
    camel_case,
    generate_field_names,
    pluralize,
    to_api_plural,
)


class TestPluralize:
    @pytest.mark.parametrize(
        "word,expected",
        [
            ("Book", "Books"),
            ("Category", "Categories"),
            ("Day", "Days"),
            ("Address", "Addresses"),
            ("Box", "Boxes"),
            ("Person", "People"),
            ("BlogPost", "BlogPosts"),
            ("Leaf", "Leaves"),
            ("", ""),
        ],
    )
    def test_pluralize(self, word: str, expected: str) -> None:
        assert pluralize(word) == expected


class TestCamelCase:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Book", "book"),
            ("BlogPost", "blogPost"),
            ("IBGPolicy", "ibgPolicy"),
            ("URL", "url"),
        ],
    )
    def test_camel_case(self, name: str, expected: str) -> None:
        assert camel_case(name) == expected


class TestGenerateFieldNames:
    def test_book(self) -> None:
        names = generate_field_names("Book")

        assert names.query_one == "book"
        assert names.query_many == "books"
        assert names.create == "createBook"
        assert names.update == "updateBook"
        assert names.remove == "removeBook"
        assert names.input_type == "BookInput"

    def test_groups(self) -> None:
        names = generate_field_names("Category")

        assert names.queries == ("category", "categories")
        assert names.mutations == ("createCategory", "updateCategory", "removeCategory")

    def test_api_plural(self) -> None:
        assert to_api_plural("Book") == "books"
        assert to_api_plural("BlogPost") == "blog_posts"
