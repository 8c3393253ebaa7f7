from treescope.services.languages import C_STYLE, PLAIN, PYTHON, detect_language, language_family


def test_exact_file_names_win() -> None:
    assert detect_language("Dockerfile", None) == "Dockerfile"
    assert detect_language("Makefile", None) == "Makefile"


def test_name_suffix_rules_beat_extension_table() -> None:
    assert detect_language("webpack.config.js", "js") == "JavaScript (Config)"
    assert detect_language("button.test.js", "js") == "JavaScript (Test)"
    assert detect_language("button.spec.js", "js") == "JavaScript (Test)"


def test_extension_lookup() -> None:
    assert detect_language("main.py", "py") == "Python"
    assert detect_language("App.tsx", "tsx") == "TypeScript (React)"
    assert detect_language("Program.cs", "cs") == "C#"
    assert detect_language("LOUD.PY", "PY") == "Python"


def test_interpreter_directive_used_when_extension_unknown() -> None:
    assert detect_language("manage", None, "#!/usr/bin/env python3\nprint('hi')\n") == "Python"
    assert detect_language("deploy", None, "#!/bin/bash\necho hi\n") == "Shell"
    assert detect_language("tool", None, "#!/usr/bin/env -S node --no-warnings\n") == "JavaScript"
    assert detect_language("report.cgi", "cgi", "#!/usr/bin/perl -w\n") == "Perl"
    assert detect_language("task", None, "#!/usr/local/bin/python3.12\n") == "Python"


def test_extension_takes_priority_over_interpreter_line() -> None:
    # The extension table is consulted first; the directive only fills gaps.
    assert detect_language("odd.py", "py", "#!/bin/bash\n") == "Python"


def test_unknown_is_none_not_an_error() -> None:
    assert detect_language("blob.bin", "bin") is None
    assert detect_language("LICENSE", None) is None
    assert detect_language("script", None, "#!/usr/bin/env\n") is None
    assert detect_language("script", None, "no directive here") is None


def test_language_families() -> None:
    assert language_family("TypeScript") == C_STYLE
    assert language_family("Java") == C_STYLE
    assert language_family("Python") == PYTHON
    assert language_family("Ruby") == PLAIN
    assert language_family(None) == PLAIN
