"""Tests for the form widgets"""
import pytest

from worktree_tasks import keys as Keys
from worktree_tasks.ui.forms import (
    Checkbox,
    FieldKind,
    FormContainer,
    SecretInput,
    Select,
    SelectOption,
    TextInput,
)


def type_keys(form, keys, *chunks):
    """Press each chunk and run one form update, like one frame per key."""
    for chunk in chunks:
        keys.set_key_state(chunk, True)
        form.update()
        keys.set_key_state(chunk, False)
        keys.update_key_states()


@pytest.fixture
def form(keys):
    container = FormContainer(keys)
    container.add(TextInput("branch", size=10)).add(Checkbox("create")).add(Select("status"))
    return container


class TestTextInput:
    """Text editing."""

    def test_type_and_backspace(self, keys, form):
        type_keys(form, keys, "a", "b", "c", Keys.BACKSPACE)
        assert form.value["branch"] == "ab"
        assert form.get("branch").value == "ab"

    def test_rejects_non_text_keys(self, keys, form):
        type_keys(form, keys, "a", "!", Keys.ENTER, "-", "/", " ")
        assert form.value["branch"] == "a-/ "

    def test_backspace_on_empty(self, keys, form):
        type_keys(form, keys, Keys.BACKSPACE)
        assert form.value["branch"] == ""

    def test_placeholder_when_empty(self):
        field = TextInput("path", size=10, placeholder="abc")
        assert "abc" in field.render().plain

    def test_render_brackets(self):
        field = TextInput("branch", size=4, default="ab")
        assert field.render().plain == "branch:[ab  ]"
        field.focus()
        assert field.render().plain == "branch: ab   "

    def test_invalid_is_red(self):
        field = TextInput("branch", default="ab").set_invalid()
        assert "red" in str(field.render().spans[-1].style)

    def test_secret_masks_value(self, keys):
        form = FormContainer(keys).add(SecretInput("token", size=5))
        type_keys(form, keys, "p", "k", "1")
        element = form.get("token")
        assert element.kind == FieldKind.SECRET
        assert form.value["token"] == "pk1"
        assert "***" in element.render().plain
        assert "pk1" not in element.render().plain


class TestCheckbox:

    def test_space_toggles(self, keys, form):
        form.focus_next()
        type_keys(form, keys, Keys.SPACE)
        assert form.value["create"] is True
        assert "YES" in form.get("create").render().plain
        type_keys(form, keys, Keys.SPACE)
        assert form.value["create"] is False


class TestSelect:
    """Option navigation and rendering."""

    def make_select(self, keys):
        select = Select("status")
        form = FormContainer(keys).add(select)
        return form, select

    def test_loading_without_options(self, keys):
        form, select = self.make_select(keys)
        form.update()
        assert "loading..." in select.render().plain
        assert select.selected_option() is None

    def test_unselected_renders_blank(self):
        select = Select("status").set_options([SelectOption("1", "open")])
        assert "open" not in select.render().plain

    def test_defaults_to_first_option(self, keys):
        form, select = self.make_select(keys)
        select.set_options([SelectOption("1", "open"), SelectOption("2", "closed")])
        form.update()
        assert form.value["status"] == "1"
        assert select.selected_option().label == "open"

    def test_navigation_clamped(self, keys):
        form, select = self.make_select(keys)
        select.set_options([SelectOption("1", "open"), SelectOption("2", "closed")])
        type_keys(form, keys, "j", Keys.ARROW_DOWN, "j")
        assert form.value["status"] == "2"
        type_keys(form, keys, "k", Keys.ARROW_UP)
        assert form.value["status"] == "1"

    def test_source_tracks_loaded_list(self):
        select = Select("status")
        select.set_options([SelectOption("1", "open")], source="list-1")
        assert select.source == "list-1"
        select.clear_options()
        assert select.source is None


class TestFormContainer:
    """Focus, reset and validity."""

    def test_add_is_idempotent(self, keys, form):
        form.add(TextInput("branch", size=3))
        assert len(form.elements) == 3

    def test_focus_clamped(self, keys, form):
        type_keys(form, keys, Keys.SHIFT_TAB)
        assert form.focused == 0
        type_keys(form, keys, Keys.TAB, Keys.TAB, Keys.TAB)
        assert form.focused == 2
        assert form.focused_element().name == "status"

    def test_tab_is_not_typed(self, keys, form):
        type_keys(form, keys, Keys.TAB)
        assert form.value["branch"] == ""

    def test_reset(self, keys, form):
        type_keys(form, keys, "x", Keys.TAB, Keys.SPACE)
        form.get("branch").set_invalid()

        form.reset()

        assert form.focused == 0
        assert form.value == {"branch": "", "create": False, "status": ""}
        assert form.is_valid()
        assert form.get("branch").value == ""

    def test_reset_drops_values_of_unknown_fields(self, form):
        form.value["stale"] = "x"
        form.reset()
        assert "stale" not in form.value

    def test_clear(self, form):
        assert form.clear().value == {}

    def test_is_valid(self, form):
        assert form.is_valid()
        form.get("branch").set_invalid()
        assert not form.is_valid()

    def test_has_focus(self, keys, form):
        assert form.has_focus()
        assert not FormContainer(keys).has_focus()

    def test_render_right_aligns_labels(self, keys, form):
        lines = form.render().plain.split("\n")
        assert lines[0].startswith(" branch:")
        assert lines[1].startswith(" create:")
        assert lines[2].startswith(" status:")

    def test_same_line_elements(self, keys):
        form = FormContainer(keys)
        form.add(TextInput("a", size=1), new_line=False).add(TextInput("b", size=1))
        assert form.render().plain.count("\n") == 1
