import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

# İşaretleme açısından anlamlı karakterler ve HTML varlıkları
_ESCAPES = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})


def escape(value: Any) -> Any:
    """Dizelerdeki işaretleme karakterlerini kaçış dizilerine çevir; diğer değerler aynen döner."""
    if isinstance(value, str):
        return value.translate(_ESCAPES)
    return value


class TextValidator:
    """Form alanları için basit metin doğrulamaları."""

    @staticmethod
    def not_empty(text: Optional[str]) -> bool:
        return bool(text)

    @staticmethod
    def is_alphanumeric(text: Optional[str]) -> bool:
        if not text:
            return False
        return re.fullmatch(r"[0-9A-Za-z]+", text) is not None

    @staticmethod
    def is_iso_date(text: Optional[str]) -> bool:
        if not text:
            return False
        try:
            date.fromisoformat(text)
        except ValueError:
            return False
        return True


@dataclass(frozen=True)
class Check:
    predicate: Callable[[str], bool]
    message: str


@dataclass(frozen=True)
class FieldRule:
    """Tek bir form alanı için sıralı kontroller.

    Boş değerli isteğe bağlı alanlar kontrol edilmez.
    """
    field: str
    checks: Tuple[Check, ...] = ()
    trim: bool = True
    optional: bool = False


@dataclass
class FieldError:
    field: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    data: Dict[str, Any]
    errors: List[FieldError] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.errors


BOOK_RULES: Tuple[FieldRule, ...] = (
    FieldRule("title", (Check(TextValidator.not_empty, "Title must not be empty."),)),
    FieldRule("author", (Check(TextValidator.not_empty, "Author must not be empty."),)),
    FieldRule("summary", (Check(TextValidator.not_empty, "Summary must not be empty."),)),
    FieldRule("isbn", (Check(TextValidator.not_empty, "ISBN must not be empty"),)),
)

AUTHOR_RULES: Tuple[FieldRule, ...] = (
    FieldRule("first_name", (
        Check(TextValidator.not_empty, "First name must be specified."),
        Check(TextValidator.is_alphanumeric, "First name has non-alphanumeric characters."),
    )),
    FieldRule("family_name", (
        Check(TextValidator.not_empty, "Family name must be specified."),
        Check(TextValidator.is_alphanumeric, "Family name has non-alphanumeric characters."),
    )),
    FieldRule("date_of_birth", (Check(TextValidator.is_iso_date, "Invalid date of birth"),), optional=True),
    FieldRule("date_of_death", (Check(TextValidator.is_iso_date, "Invalid date of death"),), optional=True),
)

GENRE_RULES: Tuple[FieldRule, ...] = (
    FieldRule("name", (Check(TextValidator.not_empty, "Genre name required"),)),
)


def form_to_dict(form: Any) -> Dict[str, Any]:
    """Çok değerli form verisini sözlüğe çevir.

    Tek değerli alanlar dize olarak, tekrarlanan alanlar liste olarak kalır.
    """
    data: Dict[str, Any] = {}
    for key in form.keys():
        values = form.getlist(key)
        data[key] = values[0] if len(values) == 1 else list(values)
    return data


def validate_form(form: Mapping[str, Any], rules: Sequence[FieldRule]) -> ValidationResult:
    """Kuralları sırayla uygula, tüm ihlalleri topla ve her alanı kaçışla.

    Kısa devre yapılmaz: her alanın her başarısız kontrolü bir hata üretir.
    Kaçış, doğrulamadan sonra tüm alanlara (liste elemanları dahil) uygulanır.
    """
    data = dict(form)
    errors: List[FieldError] = []

    for rule in rules:
        value = data.get(rule.field)
        if value is None:
            value = ""
        if isinstance(value, list):
            value = value[0] if value else ""
        value = str(value)
        if rule.trim:
            value = value.strip()
        data[rule.field] = value

        if rule.optional and not value:
            continue
        for check in rule.checks:
            if not check.predicate(value):
                errors.append(FieldError(rule.field, check.message, value))

    for key, value in data.items():
        if isinstance(value, list):
            data[key] = [escape(v) for v in value]
        else:
            data[key] = escape(value)

    return ValidationResult(data=data, errors=errors)
