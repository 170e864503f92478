import os

import pytest

from makemk.lib import DuplicateNameError, PathError
from makemk.scan import check_root, scan_tree, split_name


@pytest.mark.parametrize("root", ["./src", "/abs/src", "-src", " src"])
def test_unsafe_roots_are_rejected(root: str) -> None:
    with pytest.raises(PathError, match="must not start with"):
        check_root(root)


@pytest.mark.parametrize("root", ["src", "src/", "_build/lib", "9lib"])
def test_safe_roots_pass(root: str) -> None:
    check_root(root)


def test_split_name() -> None:
    assert split_name("foo.c") == ("foo", "c")
    assert split_name("foo.bar.cpp") == ("foo.bar", "cpp")
    assert split_name("foo.h") is None
    assert split_name(".c") is None
    assert split_name("Makefile") is None


def test_scan_groups_files_per_directory(tree) -> None:
    tree(
        {
            "src/zeta.c": "",
            "src/alpha.cpp": "//@cflags: -O2\n",
            "src/notes.txt": "",
            "src/sub/inner.c": "",
            "src/sub/inner.h": "",
        }
    )

    dirs = scan_tree("src")

    assert [d.dirname for d in dirs] == ["src/", "src/sub/"]
    top, sub = dirs
    assert top.names == ["alpha", "zeta"]
    assert top.ext4name == {"alpha": "cpp", "zeta": "c"}
    assert top.src4name["alpha"] == "src/alpha.cpp"
    assert top.directives4name["alpha"].get_values("cflags") == ["-O2"]
    assert sub.names == ["inner"]
    assert sub.src4name["inner"] == "src/sub/inner.c"


def test_same_name_different_extension_is_an_error(tree) -> None:
    tree({"src/x.c": "", "src/x.cpp": ""})

    with pytest.raises(DuplicateNameError) as excinfo:
        scan_tree("src/")

    assert "x.(cpp|c)" in str(excinfo.value)
    assert "in the same directory src/" in str(excinfo.value)


def test_same_name_in_different_directories_is_fine(tree) -> None:
    tree({"src/x.c": "", "src/sub/x.cpp": ""})

    assert [d.names for d in scan_tree("src/")] == [["x"], ["x"]]


def test_missing_root_yields_nothing(tree) -> None:
    tree({})

    assert scan_tree("lib/") == []


def test_empty_root_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    walked: list[str] = []
    monkeypatch.setattr(os, "walk", lambda root: walked.append(root) or iter(()))

    with pytest.raises(PathError, match="must not be empty"):
        scan_tree("")

    assert walked == []


def test_symlinked_sources_are_skipped(tree) -> None:
    root = tree({"src/real.c": "", "shared/linked.c": ""})
    (root / "src" / "alias.c").symlink_to(root / "src" / "real.c")
    (root / "src" / "linked.c").symlink_to(root / "shared" / "linked.c")

    dirs = scan_tree("src")

    assert [d.names for d in dirs] == [["real"]]
