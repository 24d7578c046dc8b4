"""Terminal UI: form widgets, row layout and page renderers."""

from .forms import Checkbox, FieldKind, FormContainer, FormElement, Select, SelectOption, SecretInput, TextInput

__all__ = [
    "Checkbox",
    "FieldKind",
    "FormContainer",
    "FormElement",
    "Select",
    "SelectOption",
    "SecretInput",
    "TextInput",
]
