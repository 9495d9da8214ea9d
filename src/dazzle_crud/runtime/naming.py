"""
Operation name derivation.

Derives the query, mutation and input type names generated for an entity,
e.g. for "Book": book, books, createBook, updateBook, removeBook, BookInput.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Irregular plurals that don't follow standard rules
_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "foot": "feet",
    "tooth": "teeth",
    "goose": "geese",
    "mouse": "mice",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "matrix": "matrices",
    "status": "statuses",
    "address": "addresses",
}


def pluralize(word: str) -> str:
    """
    Convert a singular English word to its plural form.

    Examples:
        >>> pluralize("Book")
        'Books'
        >>> pluralize("Category")
        'Categories'
        >>> pluralize("BlogPerson")
        'BlogPeople'
    """
    if not word:
        return word

    lower_word = word.lower()

    if lower_word in _IRREGULAR_PLURALS:
        plural = _IRREGULAR_PLURALS[lower_word]
        if word[0].isupper():
            return plural.capitalize()
        return plural

    # CamelCase: pluralize the last word only (BlogPost -> Blog + Posts)
    camel_match = re.match(r"^(.+)([A-Z][a-z]+)$", word)
    if camel_match:
        prefix, last_word = camel_match.groups()
        return prefix + pluralize(last_word)

    if lower_word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    elif lower_word.endswith("y"):
        if len(word) > 1 and lower_word[-2] in "aeiou":
            return word + "s"
        return word[:-1] + "ies"
    elif lower_word.endswith("f"):
        if lower_word.endswith(("elf", "alf", "olf", "eaf", "oaf", "arf")):
            return word[:-1] + "ves"
        return word + "s"
    elif lower_word.endswith("fe"):
        return word[:-2] + "ves"
    elif lower_word.endswith(("hero", "potato", "tomato", "echo", "veto")):
        return word + "es"
    return word + "s"


def camel_case(name: str) -> str:
    """Lower the leading capital run: Book -> book, IBGPolicy -> ibgPolicy."""
    match = re.match(r"^([A-Z]+)(?=[A-Z][a-z]|$)", name)
    if match and len(match.group(1)) > 1:
        head = match.group(1)
        return head.lower() + name[len(head) :]
    return name[:1].lower() + name[1:]


def to_api_plural(entity_name: str) -> str:
    """
    Route prefix segment for an entity.

    Examples:
        >>> to_api_plural("Book")
        'books'
        >>> to_api_plural("BlogPost")
        'blog_posts'
    """
    snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", pluralize(entity_name))
    return snake.lower()


@dataclass(frozen=True)
class FieldNames:
    """Generated names for an entity's operations."""

    query_one: str
    query_many: str
    create: str
    update: str
    remove: str
    input_type: str

    @property
    def queries(self) -> tuple[str, str]:
        return (self.query_one, self.query_many)

    @property
    def mutations(self) -> tuple[str, str, str]:
        return (self.create, self.update, self.remove)


def generate_field_names(type_name: str) -> FieldNames:
    """
    Derive operation names for an entity type.

    Example:
        >>> generate_field_names("Book").create
        'createBook'
    """
    return FieldNames(
        query_one=camel_case(type_name),
        query_many=camel_case(pluralize(type_name)),
        create=f"create{type_name}",
        update=f"update{type_name}",
        remove=f"remove{type_name}",
        input_type=f"{type_name}Input",
    )
