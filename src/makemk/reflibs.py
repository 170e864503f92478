from typing import override

from makemk.group import Group
from makemk.lib import merge_unique, warn


class Linkage:
    linker: str
    ldflags: list[str]
    prereqs: list[str]

    def __init__(self, linker: str, ldflags: list[str], prereqs: list[str]):
        self.linker = linker
        self.ldflags = ldflags
        self.prereqs = prereqs

    @override
    def __repr__(self):
        ldflags = " ".join(self.ldflags)
        return f"Linkage: {self.linker} | {ldflags} | {' '.join(self.prereqs)}"


# links a group against the static libraries it references.
# an archive missing from the table still gets its path listed, so the
# build fails at link time rather than here
def resolve_reflibs(
    module: str,
    group: Group,
    archives: dict[str, Linkage],
    libdir: str = "lib/",
    warn_unresolved: bool = False,
) -> Linkage:
    linker = group.linker
    ldflags = merge_unique(group.ldflags)
    prereqs: list[str] = []
    for reflib in group.reflibs:
        libname = libdir + reflib
        archive = archives.get(libname)
        if archive is not None:
            if archive.linker == "cxx":
                linker = "cxx"
            merge_unique(archive.ldflags, ldflags)
        elif warn_unresolved:
            warn(
                f"module {module} references {libname} "
                + f"which is not built from {libdir}"
            )
        ldflags.append(libname + ".a")
        prereqs.append(libname + ".a")
    return Linkage(linker, ldflags, prereqs)
