from sys import argv

from makemk.emit import generate
from makemk.lib import MakemkError, error, info, read_config

help_str = """
makemk
Generate mk/modules.mk for the C/C++ modules of a Lua package
Usage:
    makemk [--warn-unresolved]
  --warn-unresolved     Warn about //@reflibs: naming archives that lib/ does not build

Files in src/ become shared modules, files in lib/ static archives. Files
whose names start with the name of a sibling are grouped into its module:
    src/foo.c src/foo_bar.c src/foo_baz.cpp -> src/foo
Locations can be changed with LIBDIR, SRCDIR and OUTPUT in a Makemkfile.
""".strip()


# Main
def main():
    warn_unresolved = False
    for opt in argv[1:]:
        if opt == "--help":
            print(help_str)
            exit(0)
        elif opt == "--warn-unresolved":
            warn_unresolved = True
        else:
            error(f"Unknown option {opt}\n{help_str}")
            exit(-1)

    try:
        config = read_config()
        info("#" * 80)
        info(f"Generating {config.output}...")
        archives, modules = generate(
            config.libdir,
            config.srcdir,
            config.output,
            warn_unresolved=warn_unresolved or config.warn_unresolved,
        )
    except MakemkError as e:
        error(str(e))
        exit(-1)

    for target in archives:
        info(f'static library "{target.module}" target generated: {target.name}_*')
    for target in modules:
        info(f'module "{target.module}" target generated: {target.name}_*')
    info(f"{config.output} generated successfully.")
    info("#" * 80)


if __name__ == "__main__":
    main()
