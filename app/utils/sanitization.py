import re

_TAG_RE = re.compile(r"<[^>]*>")


def clean_text(value):
    """Strip HTML tags and surrounding whitespace from user-supplied text.

    Non-string values (None, wrong types) pass through untouched so the
    schema's own type validation reports them.
    """
    if not isinstance(value, str):
        return value
    return _TAG_RE.sub("", value).strip()


def clean_optional_text(value):
    # Blank optional fields are stored as NULL
    value = clean_text(value)
    if isinstance(value, str) and not value:
        return None
    return value
