"""Tests for rendering, provenance maps and template-safe splitting."""

from __future__ import annotations

from segmentsync.core.models import Segment, TokenKind, Variable
from segmentsync.core.renderer import (
    apply_backspace_at_line_start,
    apply_delete_at_line_end,
    apply_enter_at,
    compute_template_split_offset,
    render,
    render_line,
)


def _ids():
    counter = iter(range(1, 1000))
    return lambda: f"new{next(counter)}"


NAME_BOB = Variable(id="v1", name="name", value="Bob")


class TestRender:
    def test_single_variable(self):
        result = render([Segment("s1", "Hello {{name}}!")], [NAME_BOB])
        assert result.preview_text == "Hello Bob!"

    def test_lines_joined_with_newline(self):
        segments = [Segment("s1", "a"), Segment("s2", "{{name}}"), Segment("s3", "")]
        result = render(segments, [NAME_BOB])
        assert result.preview_text == "a\nBob\n"
        assert result.lines == ["a", "Bob", ""]

    def test_empty_document(self):
        result = render([], [])
        assert result.preview_text == ""
        assert result.lines == []

    def test_unresolved_placeholder_shown_verbatim(self):
        line = render_line(Segment("s1", "Hi {{who}}"), [])
        assert line.expanded == "Hi {{who}}"
        tail = line.char_map[3:]
        assert all(p.kind is TokenKind.LITERAL for p in tail)
        assert all(p.variable_name == "who" for p in tail)

    def test_spaced_placeholder_resolves(self):
        line = render_line(Segment("s1", "{{ name }}"), [NAME_BOB])
        assert line.expanded == "Bob"

    def test_empty_value_renders_placeholder_with_variable_provenance(self):
        empty = Variable(id="v1", name="name", value="")
        line = render_line(Segment("s1", "{{name}}"), [empty])
        assert line.expanded == "{{name}}"
        assert all(p.kind is TokenKind.VARIABLE and p.variable_id == "v1" for p in line.char_map)

    def test_char_map_matches_expanded_length(self):
        segments = [Segment("s1", "x {{name}} y {{missing}} z")]
        line = render(segments, [NAME_BOB]).line_maps[0]
        assert len(line.char_map) == len(line.expanded)

    def test_literal_provenance_points_into_template(self):
        template = "ab{{name}}cd"
        line = render_line(Segment("s1", template), [NAME_BOB])
        for ch, prov in zip(line.expanded, line.char_map):
            if prov.kind is TokenKind.LITERAL:
                assert template[prov.template_offset] == ch

    def test_variable_free_round_trip(self):
        segments = [Segment("s1", "plain text"), Segment("s2", "{braces} stay")]
        assert render(segments, []).lines == ["plain text", "{braces} stay"]


class TestSplitOffset:
    def _line(self):
        return render_line(Segment("s1", "Hello {{name}}!"), [NAME_BOB])

    def test_inside_literal(self):
        assert compute_template_split_offset(self._line(), 3) == 3

    def test_between_literal_and_variable(self):
        assert compute_template_split_offset(self._line(), 6) == 6

    def test_inside_value_snaps_to_nearer_boundary(self):
        line = self._line()
        assert compute_template_split_offset(line, 7) == 6
        assert compute_template_split_offset(line, 8) == 14

    def test_after_variable(self):
        assert compute_template_split_offset(self._line(), 9) == 14

    def test_line_edges(self):
        line = self._line()
        assert compute_template_split_offset(line, 0) == 0
        assert compute_template_split_offset(line, 10) == 15
        assert compute_template_split_offset(line, 99) == 15

    def test_between_adjacent_placeholders(self):
        a = Variable(id="a", name="a", value="12")
        b = Variable(id="b", name="b", value="345")
        line = render_line(Segment("s1", "{{a}}{{b}}"), [a, b])
        assert compute_template_split_offset(line, 2) == 5

    def test_never_cuts_a_placeholder(self):
        template = "Dear {{name}}, {{name}}."
        line = render_line(Segment("s1", template), [NAME_BOB])
        for column in range(len(line.expanded) + 1):
            offset = compute_template_split_offset(line, column)
            left = template[:offset]
            assert left.count("{{") == left.count("}}")


class TestStructuralOperations:
    def test_enter_splits_variable_free_line(self):
        segments = [Segment("s1", "Hello world")]
        lm = render(segments, []).line_maps
        result = apply_enter_at(segments, 0, 5, lm, _ids())
        assert [s.content for s in result] == ["Hello", " world"]
        assert result[0].id == "s1"
        assert result[1].id == "new1"
        assert "".join(s.content for s in result) == "Hello world"

    def test_enter_in_empty_document_gives_two_empty_segments(self):
        result = apply_enter_at([], 0, 0, [], _ids())
        assert [(s.id, s.content) for s in result] == [("new1", ""), ("new2", "")]

    def test_enter_inside_value_snaps(self):
        segments = [Segment("s1", "Hello {{name}}!")]
        lm = render(segments, [NAME_BOB]).line_maps
        result = apply_enter_at(segments, 0, 8, lm, _ids())
        assert [s.content for s in result] == ["Hello {{name}}", "!"]

    def test_backspace_at_line_start_merges_upward(self):
        segments = [Segment("s1", "ab"), Segment("s2", "cd")]
        result = apply_backspace_at_line_start(segments, 1)
        assert [(s.id, s.content) for s in result] == [("s1", "abcd")]

    def test_backspace_on_first_line_is_noop(self):
        segments = [Segment("s1", "ab"), Segment("s2", "cd")]
        assert apply_backspace_at_line_start(segments, 0) == segments

    def test_delete_at_line_end_merges_downward(self):
        segments = [Segment("s1", "ab"), Segment("s2", "cd"), Segment("s3", "ef")]
        result = apply_delete_at_line_end(segments, 0)
        assert [(s.id, s.content) for s in result] == [("s1", "abcd"), ("s3", "ef")]

    def test_delete_on_last_line_is_noop(self):
        segments = [Segment("s1", "ab")]
        assert apply_delete_at_line_end(segments, 0) == segments

    def test_operations_do_not_mutate_input(self):
        segments = [Segment("s1", "ab"), Segment("s2", "cd")]
        apply_delete_at_line_end(segments, 0)
        assert len(segments) == 2
