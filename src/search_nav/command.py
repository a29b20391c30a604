"""
Search command construction for ag (the silver searcher).

The color table is passed explicitly so the decoder sees the codes it
classifies, whatever the user's ag defaults are.
"""

from typing import Dict, List, Mapping, Optional, Sequence

PATH_COLOR = "1;32"
LINE_NUMBER_COLOR = "1;33"
MATCH_COLOR = "30;43"

# Editor mode -> ag file type options
DEFAULT_TYPE_OPTIONS: Dict[str, List[str]] = {
    "python-mode": ["--python"],
    "python-ts-mode": ["--python"],
    "js-mode": ["--js"],
    "typescript-mode": ["--ts"],
    "java-mode": ["--java"],
    "go-mode": ["--go"],
    "rust-mode": ["--rust"],
    "c-mode": ["--cc"],
    "c++-mode": ["--cpp"],
    "csharp-mode": ["--csharp"],
    "ruby-mode": ["--ruby"],
    "php-mode": ["--php"],
    "perl-mode": ["--perl"],
    "sh-mode": ["--shell"],
    "lua-mode": ["--lua"],
    "haskell-mode": ["--haskell"],
    "elixir-mode": ["--elixir"],
    "erlang-mode": ["--erlang"],
    "clojure-mode": ["--clojure"],
    "emacs-lisp-mode": ["--elisp"],
    "markdown-mode": ["--markdown"],
    "html-mode": ["--html"],
    "css-mode": ["--css"],
    "yaml-mode": ["--yaml"],
    "json-mode": ["--json"],
}


def resolve_type_options(
    mode: Optional[str], overrides: Optional[Mapping[str, Sequence[str]]] = None
) -> List[str]:
    """Look up type options for a mode; overrides take precedence over defaults"""
    if not mode:
        return []
    if overrides and mode in overrides:
        return list(overrides[mode])
    return list(DEFAULT_TYPE_OPTIONS.get(mode, []))


def build_search_args(
    executable: str,
    pattern: str,
    heading: bool = False,
    literal: bool = False,
    case_sensitive: bool = True,
    type_options: Sequence[str] = (),
    extra_args: Sequence[str] = (),
) -> List[str]:
    if not pattern:
        raise ValueError("Search pattern must not be empty")

    cmd = [
        executable,
        "--color",
        "--color-path", PATH_COLOR,
        "--color-line-number", LINE_NUMBER_COLOR,
        "--color-match", MATCH_COLOR,
        "--group" if heading else "--nogroup",
    ]
    if literal:
        cmd.append("--literal")
    cmd.append("--case-sensitive" if case_sensitive else "--ignore-case")
    cmd.extend(type_options)
    cmd.extend(extra_args)
    cmd.extend(["--", pattern])
    return cmd


def build_list_args(
    executable: str, pattern: str, type_options: Sequence[str] = ()
) -> List[str]:
    """File listing mode - NUL separated names of files with matches"""
    if not pattern:
        raise ValueError("Search pattern must not be empty")
    return [executable, "--nocolor", "--null", "--files-with-matches", *type_options, "--", pattern]
