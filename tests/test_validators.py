import pytest

from locallibrary.utils.validators import (
    AUTHOR_RULES,
    BOOK_RULES,
    GENRE_RULES,
    TextValidator,
    escape,
    form_to_dict,
    validate_form,
)


class FakeForm:
    """Çok değerli form verisinin en küçük taklidi."""

    def __init__(self, items):
        self._items = items

    def keys(self):
        seen = []
        for key, _ in self._items:
            if key not in seen:
                seen.append(key)
        return seen

    def getlist(self, key):
        return [v for k, v in self._items if k == key]


def _book_form(**overrides):
    form = {"title": "Dune", "author": "a1", "summary": "Spice", "isbn": "9780441013593", "genre": []}
    form.update(overrides)
    return form


def test_escape_markup_characters():
    assert escape("<b>Tom & 'Jerry'</b>") == "&lt;b&gt;Tom &amp; &#x27;Jerry&#x27;&lt;&#x2F;b&gt;"
    assert escape('a"b\\c`d') == "a&quot;b&#x5C;c&#96;d"
    assert escape(5) == 5


@pytest.mark.parametrize("text, expected", [
    ("Jane", True),
    ("Jane2", True),
    ("Jane Doe", False),
    ("Jané", False),
    ("", False),
])
def test_is_alphanumeric(text, expected):
    assert TextValidator.is_alphanumeric(text) is expected


def test_is_iso_date():
    assert TextValidator.is_iso_date("1990-01-15")
    assert not TextValidator.is_iso_date("1990-13-01")
    assert not TextValidator.is_iso_date("15/01/1990")


def test_form_to_dict_keeps_single_values_scalar():
    form = FakeForm([("title", "Dune"), ("genre", "g1"), ("genre", "g2")])
    assert form_to_dict(form) == {"title": "Dune", "genre": ["g1", "g2"]}


def test_valid_book_form_has_no_errors():
    result = validate_form(_book_form(title="  Dune  "), BOOK_RULES)
    assert result.is_empty()
    assert result.data["title"] == "Dune"


def test_book_form_collects_every_error():
    result = validate_form(_book_form(title=" ", summary="", isbn=""), BOOK_RULES)
    assert [e.field for e in result.errors] == ["title", "summary", "isbn"]
    assert [e.message for e in result.errors] == [
        "Title must not be empty.",
        "Summary must not be empty.",
        "ISBN must not be empty",
    ]


def test_validated_fields_are_escaped():
    result = validate_form(_book_form(title="<script>", genre=["<g1>", "g2"]), BOOK_RULES)
    assert result.is_empty()
    assert result.data["title"] == "&lt;script&gt;"
    assert result.data["genre"] == ["&lt;g1&gt;", "g2"]


def test_author_rules_report_empty_and_non_alphanumeric():
    result = validate_form({"first_name": "", "family_name": "Doe-Smith"}, AUTHOR_RULES)
    assert [e.message for e in result.errors] == [
        "First name must be specified.",
        "First name has non-alphanumeric characters.",
        "Family name has non-alphanumeric characters.",
    ]


def test_author_dates_are_optional_but_checked():
    ok = validate_form({"first_name": "Jane", "family_name": "Doe", "date_of_birth": ""}, AUTHOR_RULES)
    assert ok.is_empty()

    bad = validate_form(
        {"first_name": "Jane", "family_name": "Doe", "date_of_birth": "yesterday", "date_of_death": "1999-02-30"},
        AUTHOR_RULES,
    )
    assert [e.message for e in bad.errors] == ["Invalid date of birth", "Invalid date of death"]


def test_genre_name_required():
    result = validate_form({"name": "   "}, GENRE_RULES)
    assert [e.message for e in result.errors] == ["Genre name required"]
    assert result.data["name"] == ""
