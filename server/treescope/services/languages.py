from typing import Dict, Optional

C_STYLE = "c_style"
PYTHON = "python"
PLAIN = "plain"

EXTENSION_LANGUAGES: Dict[str, str] = {
    "js": "JavaScript",
    "mjs": "JavaScript",
    "cjs": "JavaScript",
    "jsx": "JavaScript (React)",
    "ts": "TypeScript",
    "tsx": "TypeScript (React)",
    "py": "Python",
    "pyw": "Python",
    "rb": "Ruby",
    "java": "Java",
    "php": "PHP",
    "c": "C",
    "h": "C",
    "cpp": "C++",
    "cc": "C++",
    "hpp": "C++",
    "cs": "C#",
    "go": "Go",
    "rs": "Rust",
    "swift": "Swift",
    "kt": "Kotlin",
    "dart": "Dart",
    "html": "HTML",
    "css": "CSS",
    "scss": "SCSS",
    "less": "Less",
    "json": "JSON",
    "md": "Markdown",
    "yml": "YAML",
    "yaml": "YAML",
    "xml": "XML",
    "sh": "Shell",
    "bat": "Batch",
    "ps1": "PowerShell",
}

FILENAME_LANGUAGES: Dict[str, str] = {
    "Dockerfile": "Dockerfile",
    "Makefile": "Makefile",
}

# Checked in order, first match wins.
FILENAME_SUFFIX_LANGUAGES = (
    (".config.js", "JavaScript (Config)"),
    (".test.js", "JavaScript (Test)"),
    (".spec.js", "JavaScript (Test)"),
)

INTERPRETER_LANGUAGES: Dict[str, str] = {
    "node": "JavaScript",
    "python": "Python",
    "python2": "Python",
    "python3": "Python",
    "bash": "Shell",
    "sh": "Shell",
    "zsh": "Shell",
    "perl": "Perl",
    "ruby": "Ruby",
}

LANGUAGE_FAMILIES: Dict[str, str] = {
    "JavaScript": C_STYLE,
    "JavaScript (React)": C_STYLE,
    "JavaScript (Config)": C_STYLE,
    "JavaScript (Test)": C_STYLE,
    "TypeScript": C_STYLE,
    "TypeScript (React)": C_STYLE,
    "Java": C_STYLE,
    "C": C_STYLE,
    "C++": C_STYLE,
    "C#": C_STYLE,
    "Python": PYTHON,
}


def _interpreter_language(content: str) -> Optional[str]:
    """
    Map a leading ``#!`` line to a language.

    Handles both ``#!/usr/bin/env python3 -u`` and ``#!/bin/bash`` forms.
    """
    if not content.startswith("#!"):
        return None

    first_line = content.split("\n", 1)[0][2:].strip()
    parts = first_line.split()
    if not parts:
        return None

    program = parts[0].rsplit("/", 1)[-1]
    if program == "env":
        args = [p for p in parts[1:] if not p.startswith("-")]
        if not args:
            return None
        program = args[0]

    if program in INTERPRETER_LANGUAGES:
        return INTERPRETER_LANGUAGES[program]
    # python3.12, perl5.36 and friends
    base = program.rstrip("0123456789.")
    return INTERPRETER_LANGUAGES.get(base)


def detect_language(filename: str, extension: Optional[str], content: Optional[str] = None) -> Optional[str]:
    """Return a language name for the file, or None when it cannot be classified."""
    if filename in FILENAME_LANGUAGES:
        return FILENAME_LANGUAGES[filename]
    for suffix, language in FILENAME_SUFFIX_LANGUAGES:
        if filename.endswith(suffix):
            return language

    if extension:
        language = EXTENSION_LANGUAGES.get(extension.lower())
        if language:
            return language

    if content:
        return _interpreter_language(content)
    return None


def language_family(language: Optional[str]) -> str:
    return LANGUAGE_FAMILIES.get(language, PLAIN) if language else PLAIN
