"""Tests for value extraction from edited preview lines."""

from __future__ import annotations

import pytest

from segmentsync.core.extractor import (
    extract_line,
    extract_multiple_values,
    extract_single_value,
    split_proportionally,
)
from segmentsync.core.models import LineExtraction, Segment, Variable
from segmentsync.core.renderer import render_line


def _previous(template, variables):
    return render_line(Segment("s", template), variables).expanded


# ═══════════════════════════════════════════════════════════════════
# Single variable
# ═══════════════════════════════════════════════════════════════════

class TestSingleVariable:
    NAME = Variable(id="v1", name="name", value="Bob")

    def test_value_edit_keeps_template(self):
        result = extract_line("Hello {{name}}!", [self.NAME], "Hello Bob!", "Hello Bobby!")
        assert result.values == {"v1": "Bobby"}
        assert result.template == "Hello {{name}}!"

    def test_value_replaced(self):
        assert extract_single_value("Hello {{name}}!", self.NAME, "Hello Alice!") == "Alice"

    def test_unchanged_line_returns_none(self):
        assert extract_single_value("Hello {{name}}!", self.NAME, "Hello Bob!") is None

    def test_unchanged_line_keeps_everything(self):
        result = extract_line("Hello {{name}}!", [self.NAME], "Hello Bob!", "Hello Bob!")
        assert result == LineExtraction(template="Hello {{name}}!")

    def test_value_cleared(self):
        result = extract_line("Hello {{name}}!", [self.NAME], "Hello Bob!", "Hello !")
        assert result.values == {"v1": ""}
        assert result.template == "Hello {{name}}!"

    def test_literal_edit_is_written_to_template(self):
        result = extract_line("Hello {{name}}!", [self.NAME], "Hello Bob!", "Hi Bob!")
        assert result.template == "Hi {{name}}!"
        assert result.values == {}

    def test_empty_value_fills_from_typed_text(self):
        empty = Variable(id="v1", name="name", value="")
        previous = _previous("Name: {{name}}", [empty])
        assert previous == "Name: {{name}}"
        result = extract_line("Name: {{name}}", [empty], previous, "Name: Alice")
        assert result.values == {"v1": "Alice"}
        assert result.template == "Name: {{name}}"

    def test_typing_next_to_shown_placeholder(self):
        empty = Variable(id="v1", name="name", value="")
        result = extract_line("Name: {{name}}", [empty], "Name: {{name}}", "Name: A{{name}}")
        assert result.values == {"v1": "A"}

    def test_rerender_reproduces_edit(self):
        edited = "Hello Bobby Tables!"
        result = extract_line("Hello {{name}}!", [self.NAME], "Hello Bob!", edited)
        updated = [self.NAME.with_value(result.values.get("v1", self.NAME.value))]
        assert _previous(result.template, updated) == edited


# ═══════════════════════════════════════════════════════════════════
# Several variables
# ═══════════════════════════════════════════════════════════════════

class TestMultipleVariables:
    def test_proportional_split_of_adjacent_values(self):
        a = Variable(id="a", name="a", value="12")
        b = Variable(id="b", name="b", value="345")
        values = extract_multiple_values("{{a}}{{b}}", [a, b], "12345", "1234567")
        assert values == {"a": "123", "b": "4567"}
        assert len(values["a"]) + len(values["b"]) == 7

    def test_literal_separator_anchors_values(self):
        first = Variable(id="f", name="first", value="John")
        last = Variable(id="l", name="last", value="Smith")
        result = extract_line("{{first}} {{last}}", [first, last], "John Smith", "Jon Smith")
        assert result.values == {"f": "Jon"}
        assert result.template == "{{first}} {{last}}"

    def test_second_value_edited(self):
        first = Variable(id="f", name="first", value="John")
        last = Variable(id="l", name="last", value="Smith")
        result = extract_line("{{first}} {{last}}", [first, last], "John Smith", "John Smythe")
        assert result.values == {"l": "Smythe"}

    def test_empty_variable_is_not_populated(self):
        a = Variable(id="a", name="a", value="x")
        b = Variable(id="b", name="b", value="")
        previous = _previous("{{a}}-{{b}}", [a, b])
        assert previous == "x-{{b}}"
        result = extract_line("{{a}}-{{b}}", [a, b], previous, "xy-{{b}}")
        assert result.values == {"a": "xy"}
        assert result.template == "{{a}}-{{b}}"

    def test_first_occurrence_wins_for_repeated_variable(self):
        n = Variable(id="n", name="n", value="A")
        result = extract_line("{{n}} and {{n}}", [n], "A and A", "B and A")
        assert result.values == {"n": "B"}

    def test_unresolved_placeholder_stays_literal(self):
        a = Variable(id="a", name="a", value="one")
        result = extract_line("{{a}} {{missing}}", [a], "one {{missing}}", "two {{missing}}")
        assert result.values == {"a": "two"}
        assert result.template == "{{a}} {{missing}}"


# ═══════════════════════════════════════════════════════════════════
# Anchor recovery
# ═══════════════════════════════════════════════════════════════════

class TestAnchorRecovery:
    NAME = Variable(id="v1", name="name", value="Bob")
    A = Variable(id="a", name="a", value="12")
    B = Variable(id="b", name="b", value="34")

    def test_overtyped_first_char_of_following_literal(self):
        result = extract_line("{{name}}:ok", [self.NAME], "Bob:ok", "Bob!ok")
        assert result.values == {}
        assert result.template == "{{name}}!ok"

    def test_overtyped_last_char_of_preceding_literal(self):
        result = extract_line("ok:{{name}}", [self.NAME], "ok:Bob", "ok!Bob")
        assert result.values == {}
        assert result.template == "ok!{{name}}"

    def test_anchor_found_without_its_last_char(self):
        result = extract_line("Dear {{name}}", [self.NAME], "Dear Bob", "DearAl")
        assert result.values == {"v1": "Al"}
        assert result.template == "Dear{{name}}"

    def test_lost_anchor_keeps_values_and_found_placeholders(self):
        result = extract_line("{{a}}-{{b}}", [self.A, self.B], "12-34", "12+34")
        assert result.values == {}
        assert result.template == "{{a}}+{{b}}"

    def test_lost_anchor_drops_placeholder_whose_value_is_gone(self):
        result = extract_line("{{a}}-{{b}}", [self.A, self.B], "12-34", "12+")
        assert result.values == {}
        assert result.template == "{{a}}+"


# ═══════════════════════════════════════════════════════════════════
# Degradation
# ═══════════════════════════════════════════════════════════════════

class TestDegradation:
    def test_line_without_variables_becomes_edited_text(self):
        result = extract_line("plain {{x}}", [], "plain {{x}}", "other text")
        assert result.template == "other text"
        assert result.values == {}

    @pytest.mark.parametrize("template,edited", [
        ("{{a}}{{b}}{{c}}", ""),
        ("{{a}}", "{{a}}{{a}}{{"),
        ("x{{a}}y{{b}}z", "zyx"),
        ("{{a}} and {{b}}", "and and and"),
        ("👍🏽 {{a}} 👍🏽", "👍🏽👍🏽"),
        ("", "new text"),
        ("{{a}", "{{a}"),
        ("{{a}}|{{b}}", "|||"),
    ])
    def test_never_raises(self, template, edited):
        variables = [
            Variable(id="a", name="a", value="alpha"),
            Variable(id="b", name="b", value="b"),
            Variable(id="c", name="c", value=""),
        ]
        previous = _previous(template, variables)
        result = extract_line(template, variables, previous, edited)
        assert isinstance(result, LineExtraction)
        assert isinstance(result.template, str)


# ═══════════════════════════════════════════════════════════════════
# Proportional split
# ═══════════════════════════════════════════════════════════════════

class TestSplitProportionally:
    def test_two_to_three(self):
        assert split_proportionally("1234567", [2, 3]) == ["123", "4567"]

    def test_pieces_concatenate_back(self):
        chunk = "abcdefghij"
        pieces = split_proportionally(chunk, [1, 5, 2])
        assert "".join(pieces) == chunk
        assert len(pieces) == 3

    def test_zero_weights_give_everything_to_last(self):
        assert split_proportionally("abc", [0, 0]) == ["", "abc"]

    def test_no_weights(self):
        assert split_proportionally("abc", []) == []

    def test_empty_chunk(self):
        assert split_proportionally("", [2, 3]) == ["", ""]

    def test_grapheme_clusters_are_not_split(self):
        pieces = split_proportionally("👍🏽ab", [1, 1])
        assert pieces == ["👍🏽a", "b"]
