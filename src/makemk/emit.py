import os
import re
import tempfile
from datetime import datetime

from makemk.directives import COMPILE_KINDS
from makemk.group import Group, group_dir
from makemk.lib import EmitError, as_dir
from makemk.reflibs import Linkage, resolve_reflibs
from makemk.scan import check_root, scan_tree

HEADER = """
# This file is generated by makemk
# Do not edit this file directly.
# To regenerate this file, run `makemk` from the project root.
# Generated on: @@DATE@@

""".lstrip()

DEFAULTS = """
#
# Default variable definitions
#
AR ?= ar

# C++ compiler configuration
# If CXX is not properly set, derive it from CC to inherit all SDK and platform
# settings, so C++ compilation uses the same environment as C compilation.
ifndef CXX
CXX = $(subst gcc,g++,$(subst clang,clang++,$(CC)))
else ifeq ($(CXX),c++)
# the basic 'c++' is replaced with a version derived from CC
CXX = $(subst gcc,g++,$(subst clang,clang++,$(CC)))
endif
""".lstrip()

RULES = """
#
# Generic compilation rules
#
%.o: %.c
	$(CC) $(CPPFLAGS) $($@_CPPFLAGS) $(CFLAGS) $($@_CFLAGS) $(PLATFORM_CFLAGS) $(WARNINGS) $(COVFLAGS) $(SANITIZERFLAGS) -o $@ -c $<

%.o: %.cpp
	$(CXX) $(CPPFLAGS) $($@_CPPFLAGS) $(CXXFLAGS) $($@_CXXFLAGS) $(PLATFORM_CXXFLAGS) $(WARNINGS) $(COVFLAGS) $(SANITIZERFLAGS) -o $@ -c $<

#
# Module definitions and build rules
#
""".lstrip()

TARGET = """
# target for @@MODULE@@
@@NAME@@_SRC := @@SRCS@@
@@NAME@@_LINKER = $(@@LINKER@@)
@@NAME@@_LDFLAGS = @@LDFLAGS@@
@@NAME@@_OBJS := $(@@NAME@@_SRC:.c=.o)
@@NAME@@_OBJS := $(@@NAME@@_OBJS:.cpp=.o)
""".lstrip()

OBJFLAGS = """
# Set compiler flags for each object file
@@EACH_OBJFLAGS@@
""".lstrip()

STATIC_RULE = """
# Build rule for static @@MODULE@@
@@NAME@@_AR = $(AR)
@@NAME@@_ARFLAGS = rcs
@@MODULE@@.a: $(@@NAME@@_OBJS)
	@mkdir -p $(@D)
	$(@@NAME@@_AR) $(@@NAME@@_ARFLAGS) $@ $^
""".lstrip()

SHARED_RULE = """
# Build rule for dynamic @@MODULE@@
@@MODULE@@.$(LIB_EXTENSION): $(@@NAME@@_OBJS) @@BUILD_REFLIBS@@
	@mkdir -p $(@D)
	$(@@NAME@@_LINKER) -o $@ $^ $(LDFLAGS) $(PLATFORM_LDFLAGS) $(@@NAME@@_LDFLAGS) $(COVFLAGS) $(SANITIZERFLAGS)
""".lstrip()

pattern = re.compile(r"@@(\w+)@@")
leading_non_word = re.compile(r"^[^\w]+")
source_ext = re.compile(r"\.(c|cpp)$")


def str_interpolate(template: str, lookup: dict[str, str]) -> str:
    text = pattern.sub(
        lambda match: lookup.get(match.group(1), match.group(0)), template
    )
    # empty substitutions must not leave trailing blanks behind
    return "\n".join(line.rstrip() for line in text.split("\n"))


# src/foo.cpp -> src/foo.o
def object_for(src: str) -> str:
    return source_ext.sub(".o", src)


class Target(Linkage):
    module: str
    name: str
    is_static: bool
    lines: str

    def __init__(self, module: str, linkage: Linkage, is_static: bool):
        super().__init__(linkage.linker, linkage.ldflags, linkage.prereqs)
        self.module = module
        # lib/util/memory -> lib_util_memory
        self.name = leading_non_word.sub("", module).replace("/", "_")
        self.is_static = is_static
        self.lines = ""


def object_flags(group: Group) -> list[str]:
    objflags: list[str] = []
    for src in group.srcs:
        flags = group.flags4src.get(src, {})
        for kind in COMPILE_KINDS:
            if flags.get(kind):
                obj = object_for(src)
                objflags.append(f"{obj}_{kind.upper()} = {' '.join(flags[kind])}")
    return objflags


# creates the Makefile stanza for one group
def make_target(
    dirname: str,
    gname: str,
    group: Group,
    is_static: bool = False,
    archives: dict[str, Linkage] | None = None,
    libdir: str = "lib/",
    warn_unresolved: bool = False,
) -> Target:
    module = dirname + gname
    if is_static:
        # archives are plain aggregates, their references are never linked in
        linkage = Linkage(group.linker, list(group.ldflags), [])
    else:
        linkage = resolve_reflibs(
            module, group, archives or {}, libdir, warn_unresolved
        )
    target = Target(module, linkage, is_static)

    template = TARGET
    objflags = object_flags(group)
    if objflags:
        template += OBJFLAGS
    template += STATIC_RULE if is_static else SHARED_RULE

    target.lines = str_interpolate(
        template,
        {
            "MODULE": target.module,
            "NAME": target.name,
            "SRCS": " ".join(group.srcs),
            "LINKER": target.linker.upper(),
            "LDFLAGS": " ".join(target.ldflags),
            "EACH_OBJFLAGS": "\n".join(objflags),
            "BUILD_REFLIBS": " ".join(target.prereqs),
        },
    )
    return target


# creates the targets of every group under root, in directory order
def make_targets(
    root: str,
    is_static: bool = False,
    archives: dict[str, Linkage] | None = None,
    libdir: str = "lib/",
    warn_unresolved: bool = False,
) -> tuple[list[Target], dict[str, Linkage]]:
    targets: list[Target] = []
    lookup: dict[str, Linkage] = {}
    for dirinfo in scan_tree(root):
        for gname, group in group_dir(dirinfo).items():
            target = make_target(
                dirinfo.dirname,
                gname,
                group,
                is_static,
                archives,
                libdir,
                warn_unresolved,
            )
            targets.append(target)
            lookup[target.module] = target
    return targets, lookup


def render(archives: list[Target], modules: list[Target], now: datetime) -> str:
    parts = [
        str_interpolate(HEADER, {"DATE": now.strftime("%Y-%m-%d %H:%M:%S")}),
        DEFAULTS + "\n",
        RULES,
    ]
    for target in archives + modules:
        parts.append(target.lines + "\n")
    parts.append(f"MODULES = {' '.join(t.module for t in modules)}".rstrip() + "\n")
    return "".join(parts)


def current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# writes the whole fragment or nothing at all
def write_fragment(path: str, text: str):
    dirname = os.path.dirname(path) or "."
    try:
        os.makedirs(dirname, exist_ok=True)
    except OSError as e:
        raise EmitError(f"Failed to create directory: {dirname}: {e.strerror}")

    try:
        fd, tmp = tempfile.mkstemp(prefix=".modules-", suffix=".tmp", dir=dirname)
    except OSError as e:
        raise EmitError(f"Failed to open {path} for writing: {e.strerror}")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # mkstemp files are private, the fragment is not
            os.fchmod(f.fileno(), 0o666 & ~current_umask())
            f.write(text)
        os.replace(tmp, path)
    except OSError as e:
        raise EmitError(f"Failed to write {path}: {e.strerror}")
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)


# scans lib/ then src/ and writes the fragment, nothing is written on error
def generate(
    libdir: str = "lib/",
    srcdir: str = "src/",
    output: str = "mk/modules.mk",
    now: datetime | None = None,
    warn_unresolved: bool = False,
) -> tuple[list[Target], list[Target]]:
    check_root(libdir)
    check_root(srcdir)
    libdir, srcdir = as_dir(libdir), as_dir(srcdir)
    archives, lookup = make_targets(libdir, True)
    modules, _ = make_targets(srcdir, False, lookup, libdir, warn_unresolved)
    write_fragment(output, render(archives, modules, now or datetime.now()))
    return archives, modules
