from os.path import exists
from typing import override
from parsy import ParseError, seq, string, regex


# prints out lovely bold green text
def info(msg: str):
    print(f"\033[92m\033[1m{msg}\033[0m")


# bold yellow, for things that will probably break later
def warn(msg: str):
    print(f"\033[93m\033[1m{msg}\033[0m")


# not so lovely bold red text
def error(msg: str):
    print(f"\033[91m\033[1m{msg}\033[0m")


class MakemkError(Exception):
    pass


class PathError(MakemkError):
    pass


class DuplicateNameError(MakemkError):
    pass


class DuplicateDirectiveError(MakemkError):
    path: str
    lineno: int

    def __init__(self, directive: str, path: str, lineno: int):
        self.path = path
        self.lineno = lineno
        super().__init__(
            f'Duplicate directive "{directive}" found in file {path}:{lineno}'
        )


class ConfigError(MakemkError):
    pass


class EmitError(MakemkError):
    pass


# appends the items of src not yet in dest, keeping the first seen order
def merge_unique(src: list[str], dest: list[str] | None = None) -> list[str]:
    dest = [] if dest is None else dest
    for item in src:
        if item not in dest:
            dest.append(item)
    return dest


class Var:
    name: str

    def __init__(self, name: str):
        self.name = name

    @override
    def __repr__(self):
        return f"var({self.name})"


spaces = regex(r"\s*")

var_parser = seq(
    name=regex(r"[A-Za-z_][A-Za-z0-9_]*") << spaces << string("="),
    val=(spaces >> regex(".*")).map(
        lambda args: list(
            map(
                lambda arg: (
                    Var(arg[2:-1])
                    if arg.startswith("$(") and arg.endswith(")")
                    else arg
                ),
                args.split(),
            )
        )
    ),
)


def resolve_single(
    name: str, table: dict[str, list[str | Var]], seen: tuple[str, ...] = ()
) -> list[str]:
    if name in seen:
        raise ConfigError(f"$({name}) refers to itself")
    result: list[str] = []
    for str_or_var in table[name]:
        if isinstance(str_or_var, str):
            result.append(str_or_var)
        else:
            var = str_or_var.name
            if var not in table:
                raise ConfigError(f"$({var}) used in {name} but not declared")
            result += resolve_single(var, table, seen + (name,))
    return result


def resolve(table: dict[str, list[str | Var]]) -> dict[str, list[str]]:
    return {name: resolve_single(name, table) for name in table}


def read_vars(lines: list[str], filename: str = "Makemkfile") -> dict[str, list[str]]:
    lookup: dict[str, list[str | Var]] = {}
    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            key_val = var_parser.parse(line)  # type: ignore[reportAny]
        except ParseError:
            raise ConfigError(
                f"Cannot parse {filename}:{lineno}\n{line}\nas a variable"
            )
        lookup[key_val["name"]] = key_val["val"]
    return resolve(lookup)


DEFAULTS: dict[str, list[str]] = {
    "LIBDIR": ["lib/"],
    "SRCDIR": ["src/"],
    "OUTPUT": ["mk/modules.mk"],
}


class Config:
    libdir: str
    srcdir: str
    output: str
    warn_unresolved: bool

    def __init__(self, vars: dict[str, list[str]]):
        merged = DEFAULTS | vars
        self.libdir = as_dir(" ".join(merged["LIBDIR"]))
        self.srcdir = as_dir(" ".join(merged["SRCDIR"]))
        self.output = " ".join(merged["OUTPUT"])
        if not self.output:
            raise ConfigError("OUTPUT must not be empty")
        flag = " ".join(merged.get("WARN_UNRESOLVED", [])).lower()
        self.warn_unresolved = flag in ("1", "yes", "true", "on")

    @override
    def __repr__(self):
        return f"Config: {self.libdir} | {self.srcdir} | {self.output}"


# directory roots always end in a slash, module names are built on them
def as_dir(path: str) -> str:
    if not path:
        raise ConfigError("source directories must not be empty")
    return path if path.endswith("/") else path + "/"


def read_config(filename: str = "Makemkfile") -> Config:
    if exists(filename):
        with open(filename, encoding="utf-8") as f:
            return Config(read_vars(f.readlines(), filename))
    return Config({})
