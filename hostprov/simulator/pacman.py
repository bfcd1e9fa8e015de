def _provider(pkg, state):
    return state.provides.get(pkg, pkg)


def handle_pacman(argv, state):
    if state.errors.get("pacman_broken"):
        return 127, "pacman: error while loading shared libraries: libalpm.so.14"

    if argv == ["pacman", "-Qq"]:
        return 0, "\n".join(sorted(state.installed_packages))

    if argv[:2] == ["pacman", "-T"] and len(argv) == 3:
        dep = argv[2]
        if _provider(dep, state) in state.installed_packages:
            return 0, ""
        return 127, dep

    if argv[:2] == ["pacman", "-S"]:
        pkg = _provider(argv[-1], state)

        if state.errors.get("not_root"):
            return 1, "error: you cannot perform this operation unless you are root."

        if state.errors.get("repo_offline", 0) > 0:
            state.errors["repo_offline"] -= 1
            return 1, (
                "error: failed retrieving file 'core.db' from mirror : "
                "Could not resolve host: mirror.example.org"
            )

        if pkg not in state.repository:
            return 1, f"error: target not found: {argv[-1]}"

        if pkg in state.installed_packages and "--needed" in argv:
            return 0, f"warning: {pkg}-1.0-1 is up to date -- skipping\n there is nothing to do"

        state.installed_packages.add(pkg)
        unit = state.provides_units.get(pkg)
        if unit and unit not in state.services:
            state.services[unit] = {"enabled": False, "running": False}
        return 0, f"resolving dependencies...\ninstalling {pkg}"

    return 1, "error: invalid option"
