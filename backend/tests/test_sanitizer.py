from pgnbase.sanitizer import clean_comment, sanitize_pgn, split_header_block


def test_semicolon_comment_becomes_brace_comment():
    result = sanitize_pgn("1. e4 e5 2. Nf3 ;comment\nNc6")
    assert result.movetext == "1. e4 e5 2. Nf3 {comment} Nc6"
    assert ";" not in result.movetext
    assert result.comments == ["comment"]


def test_semicolon_comment_at_end_of_input_is_closed():
    result = sanitize_pgn("1. e4 ; best by test")
    assert result.movetext == "1. e4 {best by test}"


def test_nested_braces_are_flattened():
    result = sanitize_pgn("1. e4 {good {nested} move} e5 *")
    assert result.movetext == "1. e4 {good nested move} e5 *"
    assert result.comments == ["good nested move"]


def test_unterminated_comment_is_closed():
    assert sanitize_pgn("1. e4 {unclosed comment").movetext == "1. e4 {unclosed comment}"


def test_stray_closing_brace_is_kept():
    assert sanitize_pgn("1. e4 } e5").movetext == "1. e4 } e5"


def test_vendor_tags_are_stripped_and_empty_comments_dropped():
    result = sanitize_pgn("1. e4 {[%clk 0:03:00]} e5 {[%eval 0.2] solid}")
    assert result.movetext == "1. e4 e5 {solid}"
    assert result.comments == ["solid"]


def test_escaped_lines_are_dropped():
    assert sanitize_pgn("1. e4\n% engine output\ne5").movetext == "1. e4 e5"


def test_headers_are_split_from_movetext():
    text = '\ufeff[Event "Club"]\r\n[White "Ann"]\r\n\r\n1. e4 e5 *'
    result = sanitize_pgn(text)
    assert result.header_lines == ['[Event "Club"]', '[White "Ann"]']
    assert result.movetext == "1. e4 e5 *"
    assert result.text == '[Event "Club"]\n[White "Ann"]\n\n1. e4 e5 *'


def test_text_without_headers_is_just_movetext():
    result = sanitize_pgn("1. d4 d5")
    assert result.header_lines == []
    assert result.text == "1. d4 d5"


def test_sanitizing_twice_changes_nothing():
    raw = '[Event "X"]\n\n1. e4 {a {b} c} e5 ;note\n2. Nf3 {[%clk 0:01:00] quick} Nc6 {open'
    once = sanitize_pgn(raw).text
    assert sanitize_pgn(once).text == once


def test_garbage_never_raises():
    assert sanitize_pgn("}}}{{{").movetext == "}}}"
    assert sanitize_pgn("").movetext == ""


def test_split_header_block_skips_leading_blank_lines():
    headers, movetext = split_header_block('\n\n[Event "A"]\n\n1. e4')
    assert headers == ['[Event "A"]']
    assert "1. e4" in movetext


def test_clean_comment_collapses_whitespace():
    assert clean_comment("  a\n   b [%clk 1:00]  ") == "a b"


def test_braces_inside_semicolon_comment_are_dropped():
    once = sanitize_pgn("1. e4 ; see {Nunn}\n1... e5 2. Nf3 Nc6 *")
    assert once.movetext == "1. e4 {see Nunn} 1... e5 2. Nf3 Nc6 *"
    assert sanitize_pgn(once.text).text == once.text

    unbalanced = sanitize_pgn("1. e4 ; a } b\n1... e5 *")
    assert unbalanced.movetext == "1. e4 {a b} 1... e5 *"
    lone_open = sanitize_pgn("1. e4 ; wait {\n1... e5 2. Nf3 *")
    assert sanitize_pgn(lone_open.text).movetext == "1. e4 {wait} 1... e5 2. Nf3 *"


def test_indented_escape_lines_are_dropped():
    once = sanitize_pgn("  %notescape 1. e4 e5\n1. d4 d5")
    assert once.movetext == "1. d4 d5"
    assert sanitize_pgn("  %x\n1. e4").text == sanitize_pgn(sanitize_pgn("  %x\n1. e4").text).text


def test_output_never_starts_an_escape_line():
    once = sanitize_pgn("{}%x 1. e4 e5")
    assert not once.movetext.startswith("%")
    assert sanitize_pgn(once.text).movetext == once.movetext
