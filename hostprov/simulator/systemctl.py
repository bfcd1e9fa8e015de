def _service(unit):
    return unit[: -len(".service")] if unit.endswith(".service") else unit


def handle_systemctl(argv, state):
    if len(argv) != 3:
        return 1, "systemctl: unknown command"

    verb, unit = argv[1], argv[2]
    svc = state.services.get(_service(unit))

    if verb == "is-enabled":
        if svc is None:
            return 1, f"Failed to get unit file state for {unit}: No such file or directory"
        return (0, "enabled") if svc["enabled"] else (1, "disabled")

    if verb == "is-active":
        if svc is not None and svc["running"]:
            return 0, "active"
        return 3, "inactive"

    if verb in ("enable", "start"):
        if state.errors.get("not_root"):
            return 1, f"Failed to {verb} unit: Access denied"
        if svc is None:
            if verb == "enable":
                return 1, f"Failed to enable unit: Unit file {unit} does not exist."
            return 5, f"Failed to start {unit}: Unit {unit} not found."
        svc["enabled" if verb == "enable" else "running"] = True
        return 0, "" if verb == "start" else (
            f"Created symlink /etc/systemd/system/multi-user.target.wants/{unit}"
        )

    return 1, f"Unknown command verb {verb}."
