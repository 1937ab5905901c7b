from pgnbase.movelist import extract_moves


def test_plain_movetext():
    assert extract_moves("1. e4 e5 2. Nf3 Nc6 *") == ["e4", "e5", "Nf3", "Nc6"]


def test_headers_are_skipped():
    pgn = '[Event "A"]\n[White "B"]\n\n1. d4 Nf6 2. c4 1-0'
    assert extract_moves(pgn) == ["d4", "Nf6", "c4"]


def test_headers_without_blank_line_are_skipped():
    assert extract_moves('[Event "A"]\n1. e4 c5') == ["e4", "c5"]


def test_comments_and_variations_are_dropped():
    pgn = "1. e4 {best {by} test} e5 (1... c5 2. Nf3 (2. c3)) 2. Nf3 ; a note\n2... Nc6 1/2-1/2"
    assert extract_moves(pgn) == ["e4", "e5", "Nf3", "Nc6"]


def test_annotations_and_nags_are_dropped():
    assert extract_moves("1. e4! e5?! 2. Qh5?? $4 Nc6 $1 0-1") == ["e4", "e5", "Qh5", "Nc6"]


def test_unbalanced_closers_do_not_swallow_moves():
    assert extract_moves("1. e4 } e5 ) 2. Nf3") == ["e4", "e5", "Nf3"]


def test_empty_text():
    assert extract_moves("") == []


def test_braces_inside_semicolon_comment_do_not_hide_moves():
    assert extract_moves("1. e4 ; see {Nunn\n1... e5 2. Nf3 *") == ["e4", "e5", "Nf3"]
    assert extract_moves("1. e4 {a ; b} e5 *") == ["e4", "e5"]
