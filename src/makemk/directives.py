import re
from typing import override
from parsy import ParseError, seq, string, regex

from makemk.lib import DuplicateDirectiveError


class Directive:
    keyword: str = ""
    # ldflags and reflibs hold one entry per token, the rest a single string
    tokenized: bool = False
    values: list[str]

    def __init__(self, value: str):
        value = value.strip()
        if self.tokenized:
            self.values = value.split()
        else:
            self.values = [value] if value else []

    @override
    def __repr__(self):
        return f"{self.keyword}({' '.join(self.values)})"


# C/C++ preprocessor flags (e.g., -DDEBUG, -Iinclude)
class CppFlags(Directive):
    keyword = "cppflags"


# C compiler flags (e.g., -Wall, -std=c11)
class CFlags(Directive):
    keyword = "cflags"


# C++ compiler flags (e.g., -std=c++20)
class CxxFlags(Directive):
    keyword = "cxxflags"


# linker flags (e.g., -L/lib -lm)
class LdFlags(Directive):
    keyword = "ldflags"
    tokenized = True


# static libraries in lib/ (e.g., string util/memory)
class RefLibs(Directive):
    keyword = "reflibs"
    tokenized = True


KINDS: dict[str, type[Directive]] = {
    kind.keyword: kind for kind in (CppFlags, CFlags, CxxFlags, LdFlags, RefLibs)
}

# the kinds that end up as per-object compiler flags
COMPILE_KINDS = ("cppflags", "cflags", "cxxflags")


class DirectiveSet(dict[str, Directive]):
    def get_values(self, keyword: str) -> list[str]:
        directive = self.get(keyword)
        return [] if directive is None else list(directive.values)


spaces = regex(r"\s*")

# @keyword: value
directive_parser = seq(
    keyword=string("@") >> regex(r"\w+").map(str.lower) << string(":"),
    value=spaces >> regex(".*"),
)

block_start = re.compile(r"^\s*/\*")
block_end = re.compile(r"\*+/")
line_comment = re.compile(r"^\s*//")
include = re.compile(r"^\s*#\s*(include|import)\b")
preprocessor = re.compile(r"^\s*#")


# finds the first known @keyword: in a comment line
def find_directive(line: str) -> tuple[int, str, str] | None:
    start = line.find("@")
    while start != -1:
        try:
            found = directive_parser.parse(line[start:])  # type: ignore[reportAny]
            if found["keyword"] in KINDS:
                return start, found["keyword"], found["value"]
        except ParseError:
            pass
        start = line.find("@", start + 1)
    return None


# parses the //@...: directives in the leading comments of a source file
def parse_directives(filepath: str) -> DirectiveSet:
    directives = DirectiveSet()
    try:
        with open(filepath, encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
    except OSError:
        return directives

    in_block = False
    for lineno, line in enumerate(lines, 1):
        if in_block:
            end = block_end.search(line)
            if end:
                in_block = False
                line = line[: end.start()]
        elif opening := block_start.match(line):
            # the block may close on the very same line
            body = line[opening.end() :]
            end = block_end.search(body)
            if end:
                body = body[: end.start()]
            else:
                in_block = True
            line = body
        elif line_comment.match(line):
            pass
        elif not line.strip():
            continue
        elif include.match(line):
            break
        elif preprocessor.match(line):
            continue
        else:
            # actual code
            break

        found = find_directive(line)
        if found is None:
            continue
        start, keyword, value = found
        # "@cflags:" with nothing after it declares nothing
        if not value.strip():
            continue
        if keyword in directives:
            raise DuplicateDirectiveError(line[start:].strip(), filepath, lineno)
        directives[keyword] = KINDS[keyword](value)
    return directives
