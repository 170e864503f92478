import os
import re
from typing import override

from makemk.directives import DirectiveSet, parse_directives
from makemk.lib import DuplicateNameError, PathError

# compilable extensions, the value is the driver that links them
EXTENSIONS: dict[str, str] = {"c": "cc", "cpp": "cxx"}

unsafe_start = re.compile(r"^[^\w]")


class DirInfo:
    dirname: str
    names: list[str]
    ext4name: dict[str, str]
    src4name: dict[str, str]
    directives4name: dict[str, DirectiveSet]

    def __init__(self, dirname: str):
        self.dirname = dirname
        self.names = []
        self.ext4name = {}
        self.src4name = {}
        self.directives4name = {}

    @override
    def __repr__(self):
        return f"DirInfo: {self.dirname} | {' '.join(self.names)}"

    def add(self, pathname: str, name: str, ext: str):
        known = self.ext4name.get(name)
        if known is not None:
            raise DuplicateNameError(
                f"Cannot have the same filename {name}.({ext}|{known}) "
                + f"in the same directory {self.dirname}"
            )
        self.names.append(name)
        self.ext4name[name] = ext
        self.src4name[name] = pathname
        self.directives4name[name] = parse_directives(pathname)


def check_root(root: str):
    if not root:
        raise PathError("Target directory location must not be empty")
    if unsafe_start.match(root):
        raise PathError(
            f'Target directory location "{root}" must not start with '
            + "a non-alphanumeric and non-underscore character"
        )


# foo.c -> (foo, c), None for anything we cannot compile
def split_name(filename: str) -> tuple[str, str] | None:
    name, dot, ext = filename.rpartition(".")
    if not dot or not name or ext not in EXTENSIONS:
        return None
    return name, ext


# collects the compilable files under root, one DirInfo per directory
def scan_tree(root: str) -> list[DirInfo]:
    check_root(root)
    root = root if root.endswith("/") else root + "/"
    dirs: dict[str, DirInfo] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        rel = os.path.relpath(dirpath, root).replace(os.sep, "/")
        dirname = root if rel == "." else f"{root}{rel}/"
        for filename in sorted(filenames):
            parts = split_name(filename)
            if parts is None:
                continue
            # regular files only, like find -type f
            path = os.path.join(dirpath, filename)
            if os.path.islink(path) or not os.path.isfile(path):
                continue
            if dirname not in dirs:
                dirs[dirname] = DirInfo(dirname)
            dirs[dirname].add(dirname + filename, *parts)

    result = sorted(dirs.values(), key=lambda d: d.dirname)
    for dirinfo in result:
        dirinfo.names.sort()
    return result
