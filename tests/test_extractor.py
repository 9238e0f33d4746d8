from avi_ls.extractor import RegexSymbolExtractor


def _extractor() -> RegexSymbolExtractor:
    return RegexSymbolExtractor()


def test_extract_function_with_signature():
    functions = _extractor().extract_functions("fn add(a: int, b: int) { }")
    assert len(functions) == 1
    fn = functions[0]
    assert fn.name == "add"
    assert fn.signature == "add(a: int, b: int)"
    assert fn.params == "a: int, b: int"


def test_extract_functions_across_lines():
    source = "fn one() {}\n\nfn two(\n  x: int,\n  y: int\n) {\n}\n"
    names = [fn.name for fn in _extractor().extract_functions(source)]
    assert names == ["one", "two"]


def test_partial_function_declaration_is_skipped():
    source = "fn broken(a: int, \nlet x = len(items)\nfn ok() {}"
    names = [fn.name for fn in _extractor().extract_functions(source)]
    assert names == ["ok"]


def test_extract_variables_collapses_duplicates():
    source = "let total = 1\nlet total = 2\nlet mut count = 0\nconst LIMIT = 3\n"
    assert sorted(_extractor().extract_variables(source)) == ["LIMIT", "count", "total"]


def test_no_matches_gives_empty_results():
    assert _extractor().extract_functions("print(1)") == []
    assert _extractor().extract_variables("") == []


def test_enclosing_functions_outermost_first():
    source = "fn outer(a: int) {\n  fn inner(b: int) {\n    b\n  }\n}\nfn other(c: int) {}\n"
    offset = source.index("    b") + 4
    names = [fn.name for fn in _extractor().enclosing_functions(source, offset)]
    assert names == ["outer", "inner"]


def test_enclosing_functions_unterminated_body_runs_to_end():
    source = "fn draft(x: int) -> int {\n  let y = "
    names = [fn.name for fn in _extractor().enclosing_functions(source, len(source))]
    assert names == ["draft"]


def test_cursor_outside_body_has_no_enclosing_function():
    source = "fn f(a: int) { a }\nlet z = 1\n"
    assert _extractor().enclosing_functions(source, len(source)) == []
