import pytest
from src.mips32.lexer import tokenize, parse_int, unescape, LexError

def _kinds(text):
    toks, diags = tokenize(text)
    assert not diags
    return [t.kind for t in toks]

def test_instruction_tokens_and_positions():
    toks, diags = tokenize("loop: lw $t0, -8($sp)  # carga")
    assert not diags
    assert [t.kind for t in toks] == [
        "IDENT", "COLON", "IDENT", "REG", "COMMA", "INT", "LPAREN", "REG", "RPAREN", "NEWLINE",
    ]
    lw = toks[2]
    assert (lw.line, lw.col) == (1, 7)
    assert toks[5].value == -8
    assert toks[7].value == "$sp"

def test_directive_and_string():
    toks, diags = tokenize('.asciiz "a\\tb\\n"')
    assert not diags
    assert toks[0].kind == "DIRECTIVE" and toks[0].value == ".asciiz"
    assert toks[1].kind == "STRING" and toks[1].value == b"a\tb\n"

def test_comment_inside_string_is_kept():
    toks, _ = tokenize('.ascii "a # b"  # comentario')
    assert toks[1].value == b"a # b"

def test_char_literal_is_int():
    toks, diags = tokenize("li $t0, 'A'")
    assert not diags
    assert toks[3].kind == "INT" and toks[3].value == 65

def test_one_newline_per_line():
    assert _kinds("\n\nnop\n").count("NEWLINE") == 3

@pytest.mark.parametrize("text, value", [
    ("42", 42),
    ("-1", -1),
    ("+7", 7),
    ("0x10", 16),
    ("0XfF", 255),
    ("0b101", 5),
    ("007", 7),
])
def test_parse_int(text, value):
    assert parse_int(text) == value

@pytest.mark.parametrize("text", ["0x", "0b2", "12ab", "", "--1"])
def test_parse_int_malformed(text):
    with pytest.raises(ValueError):
        parse_int(text)

def test_unescape():
    assert unescape(r"\x41\0\\\"") == b'A\x00\\"'
    with pytest.raises(LexError):
        unescape(r"\q")

@pytest.mark.parametrize("line, fragment", [
    ("addi $t0, $t0, 0x", "Inmediato mal formado"),
    ("addi $t0, $t0, 12ab", "Inmediato mal formado"),
    ('.asciiz "sin cerrar', "Cadena sin cerrar"),
    ('.asciiz "\\q"', "Secuencia de escape desconocida"),
    ("add $t0, $t1, @", "Carácter no reconocido"),
    ("add $t10, $t1, $t2", "Registro inválido"),
])
def test_lexical_errors(line, fragment):
    toks, diags = tokenize(line, filename="e.s")
    assert len(diags) == 1
    d = diags[0]
    assert d.kind == "SyntaxError"
    assert fragment in d.message
    assert d.line == 1 and d.file == "e.s"
    # la línea con error se descarta completa
    assert [t.kind for t in toks] == ["NEWLINE"]

def test_lexer_recovers_on_next_line():
    toks, diags = tokenize("add $t0, @\nnop\nli $t0, 0b2\n")
    assert [d.line for d in diags] == [1, 3]
    assert any(t.kind == "IDENT" and t.text == "nop" and t.line == 2 for t in toks)

def test_error_column():
    _, diags = tokenize("  add $t0, @")
    assert diags[0].col == 12

def test_only_newline_separates_lines():
    toks, diags = tokenize('.data\nm: .asciiz "a\u2028b"\n')
    assert not diags
    s = [t for t in toks if t.kind == "STRING"]
    assert len(s) == 1 and s[0].line == 2

def test_form_feed_does_not_shift_lines():
    _, diags = tokenize("nop\f\nnop\x0b\nadd $t0, @\n")
    assert [d.line for d in diags] == [3]

def test_crlf_line_endings():
    toks, diags = tokenize("nop\r\nnop\r\n")
    assert not diags
    assert [t.kind for t in toks] == ["IDENT", "NEWLINE", "IDENT", "NEWLINE"]
