import pytest

from makemk.directives import DirectiveSet, LdFlags, RefLibs
from makemk.group import Group
from makemk.reflibs import Linkage, resolve_reflibs


def module_group(reflibs: str, ldflags: str = "") -> Group:
    group = Group()
    directives = DirectiveSet({"reflibs": RefLibs(reflibs)})
    if ldflags:
        directives["ldflags"] = LdFlags(ldflags)
    group.add("src/m.c", "c", directives)
    return group


def test_cxx_archive_escalates_plain_module() -> None:
    group = module_group("util/memory")
    archives = {"lib/util/memory": Linkage("cxx", ["-lstdc++"], [])}

    linkage = resolve_reflibs("src/m", group, archives)

    assert linkage.linker == "cxx"
    assert linkage.ldflags == ["-lstdc++", "lib/util/memory.a"]
    assert linkage.prereqs == ["lib/util/memory.a"]


def test_archive_flags_are_deduplicated_in_reference_order() -> None:
    group = module_group("a b", ldflags="-lm")
    archives = {
        "lib/a": Linkage("cc", ["-lm", "-lz"], []),
        "lib/b": Linkage("cc", ["-lz", "-lpthread"], []),
    }

    linkage = resolve_reflibs("src/m", group, archives)

    assert linkage.linker == "cc"
    assert linkage.ldflags == ["-lm", "-lz", "lib/a.a", "-lpthread", "lib/b.a"]
    assert linkage.prereqs == ["lib/a.a", "lib/b.a"]


def test_group_is_left_untouched() -> None:
    group = module_group("a", ldflags="-lm")

    resolve_reflibs("src/m", group, {"lib/a": Linkage("cxx", ["-lz"], [])})

    assert group.ldflags == ["-lm"]
    assert group.linker == "cc"


def test_unknown_archive_is_listed_without_warning(
    capsys: pytest.CaptureFixture[str],
) -> None:
    linkage = resolve_reflibs("src/m", module_group("nope"), {})

    assert linkage.linker == "cc"
    assert linkage.ldflags == ["lib/nope.a"]
    assert linkage.prereqs == ["lib/nope.a"]
    assert capsys.readouterr().out == ""


def test_unknown_archive_warns_when_asked(capsys: pytest.CaptureFixture[str]) -> None:
    resolve_reflibs("src/m", module_group("nope"), {}, warn_unresolved=True)

    out = capsys.readouterr().out
    assert "src/m" in out
    assert "lib/nope" in out


def test_custom_libdir() -> None:
    archives = {"native/lib/x": Linkage("cc", [], [])}

    linkage = resolve_reflibs(
        "src/m", module_group("x"), archives, libdir="native/lib/"
    )

    assert linkage.prereqs == ["native/lib/x.a"]
