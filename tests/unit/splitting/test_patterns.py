"""Unit tests for pattern inference and table-of-contents detection."""

import re

import pytest

from docnex.schemas.blocks import ImportTarget
from docnex.splitting import detect_index, generate_patterns_from_examples, suggest_target


class TestGeneratePatternsFromExamples:
    """Tests for generate_patterns_from_examples."""

    def test_empty_examples(self) -> None:
        suggestion = generate_patterns_from_examples("   ")

        assert suggestion.parent_pattern == ""
        assert suggestion.child_pattern == ""

    def test_markdown_header(self) -> None:
        suggestion = generate_patterns_from_examples("## Introducción")

        assert suggestion.parent_pattern == r"^##\s+.+"

    @pytest.mark.parametrize(
        ("examples", "expected"),
        [
            ("1. Objeto\n2. Ámbito", r"^\d+\."),
            ("1) Objeto", r"^\d+\)"),
        ],
    )
    def test_numbered_lines_keep_separator(self, examples: str, expected: str) -> None:
        assert generate_patterns_from_examples(examples).parent_pattern == expected

    def test_letter_sub_list_gives_two_levels(self) -> None:
        suggestion = generate_patterns_from_examples("1. Uno\na) primero\nb) segundo")

        assert suggestion.parent_pattern == r"^\d+\."
        assert suggestion.child_pattern == r"^[a-z]\)"

    def test_titulo_heading(self) -> None:
        suggestion = generate_patterns_from_examples("TÍTULO I")

        assert re.search(suggestion.parent_pattern, "TITULO IV")
        assert re.search(suggestion.child_pattern, "CAPÍTULO 2")

    def test_capitulo_heading(self) -> None:
        suggestion = generate_patterns_from_examples("Capítulo 3")

        assert re.search(suggestion.parent_pattern, "CAPÍTULO 12")
        assert re.search(suggestion.child_pattern, "ARTICULO 7")

    def test_single_uppercase_line(self) -> None:
        suggestion = generate_patterns_from_examples("DISPOSICIONES GENERALES")

        assert re.search(suggestion.parent_pattern, "ANEXO TÉCNICO")
        assert not re.search(suggestion.parent_pattern, "Anexo técnico")

    def test_leading_number_is_generalized(self) -> None:
        pattern = generate_patterns_from_examples("12 Normas").parent_pattern

        assert re.search(pattern, "7 Normas")
        assert not re.search(pattern, "Normas")

    def test_leading_letter_enumerator_is_generalized(self) -> None:
        pattern = generate_patterns_from_examples("A. Generalidades").parent_pattern

        assert re.search(pattern, "B. Generalidades")

    def test_other_text_is_escaped_literal(self) -> None:
        pattern = generate_patterns_from_examples("Sección (bis)").parent_pattern

        assert re.search(pattern, "Sección (bis) final")
        assert not re.search(pattern, "Otra Sección (bis)")


class TestDetectIndex:
    """Tests for detect_index."""

    def test_no_heading_returns_none(self) -> None:
        assert detect_index("Texto sin índice\nOtra línea") is None
        assert detect_index("") is None

    def test_entries_end_at_blank_gap(self) -> None:
        text = "Índice\n1. Objeto ..... 3\n2. Ámbito 5\n\n\n1. Objeto\nCuerpo"

        assert detect_index(text) == "1. Objeto\n2. Ámbito"

    def test_entries_end_where_first_entry_repeats(self) -> None:
        text = "Tabla de Contenidos\nObjeto 3\nÁmbito 5\nObjeto\nTexto del objeto"

        assert detect_index(text) == "Objeto\nÁmbito"

    def test_markdown_heading_is_recognized(self) -> None:
        text = "## Sumario\nPrimera parte\nSegunda parte"

        assert detect_index(text) == "Primera parte\nSegunda parte"

    def test_heading_without_entries_returns_none(self) -> None:
        assert detect_index("Índice\n\n\n") is None


class TestSuggestTarget:
    """Tests for suggest_target."""

    def test_short_content_is_note(self) -> None:
        assert suggest_target("x" * 199) is ImportTarget.NOTE

    def test_long_content_is_active_version(self) -> None:
        assert suggest_target("x" * 200) is ImportTarget.ACTIVE_VERSION
