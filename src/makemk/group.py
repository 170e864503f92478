from typing import override

from makemk.directives import COMPILE_KINDS, DirectiveSet
from makemk.lib import merge_unique
from makemk.scan import EXTENSIONS, DirInfo

# runtime the C++ driver needs when linking C++ objects
CXX_RUNTIME = "-lstdc++"


class Group:
    srcs: list[str]
    linker: str
    ldflags: list[str]
    reflibs: list[str]
    flags4src: dict[str, dict[str, list[str]]]

    def __init__(self, linker: str = "cc"):
        self.srcs = []
        self.linker = linker
        self.ldflags = []
        self.reflibs = []
        self.flags4src = {}

    @override
    def __repr__(self):
        srcs = " ".join(self.srcs)
        return f"Group: {srcs} | {self.linker} | {' '.join(self.ldflags)}"

    def add(self, src: str, ext: str, directives: DirectiveSet):
        if src not in self.srcs:
            self.srcs.append(src)
        flags = self.flags4src.setdefault(src, {})
        for kind in COMPILE_KINDS:
            flags[kind] = merge_unique(directives.get_values(kind), flags.get(kind))
        # once a group links with the C++ driver it stays that way
        if EXTENSIONS[ext] == "cxx":
            self.linker = "cxx"
            merge_unique([CXX_RUNTIME], self.ldflags)
        merge_unique(directives.get_values("ldflags"), self.ldflags)
        merge_unique(directives.get_values("reflibs"), self.reflibs)


# adds a file to the first group whose name is a shorter prefix of it,
# or opens a new group named after the file
def group_by_prefix(
    groups: dict[str, Group], src: str, name: str, ext: str, directives: DirectiveSet
):
    for gname, group in groups.items():
        if len(gname) < len(name) and name.startswith(gname):
            group.add(src, ext, directives)
            return
    group = Group()
    group.add(src, ext, directives)
    groups[name] = group


def group_dir(dirinfo: DirInfo) -> dict[str, Group]:
    groups: dict[str, Group] = {}
    for name in sorted(dirinfo.names):
        group_by_prefix(
            groups,
            dirinfo.src4name[name],
            name,
            dirinfo.ext4name[name],
            dirinfo.directives4name[name],
        )
    return groups
