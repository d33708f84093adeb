from __future__ import annotations

from django import forms as dj_forms


def form_errors_as_text(form: dj_forms.Form, fallback: str | None = None) -> str:
    """Return aggregated validation errors for SweetAlert toasts."""
    parts: list[str] = []

    for field_name, error_list in form.errors.items():
        if field_name == dj_forms.forms.NON_FIELD_ERRORS:
            continue
        label = getattr(form.fields.get(field_name), "label", None) or field_name.replace("_", " ").capitalize()
        for err in error_list:
            parts.append(f"{label}: {err}")

    for err in form.non_field_errors():
        parts.append(str(err))

    unique_errors = list(dict.fromkeys(parts))
    if unique_errors:
        return "\n".join(unique_errors)
    return fallback or "Invalid data."


class DateTimeLocalInput(dj_forms.DateTimeInput):
    input_type = "datetime-local"

    def __init__(self, attrs=None):
        super().__init__(attrs=attrs, format="%Y-%m-%dT%H:%M")
