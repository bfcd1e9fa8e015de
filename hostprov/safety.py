import re

ALLOWED_BINARIES = (
    "pacman",
    "dnf",
    "rpm",
    "apt-get",
    "dpkg-query",
    "systemctl",
)

# package and unit names: letters, digits and the usual separators only
NAME_RE = re.compile(r"^[A-Za-z0-9@_+][A-Za-z0-9@._+:-]*$")

FORBIDDEN = [";", "|", ">", "<", "&", "`", "$(", "\n"]


class UnsafeCommand(ValueError):
    pass


def validate_name(name: str) -> None:
    if not NAME_RE.match(name or ""):
        raise UnsafeCommand(f"Blocked unsafe name: {name!r}")


def validate(argv) -> None:
    if not argv:
        raise UnsafeCommand("Empty command")

    if argv[0] not in ALLOWED_BINARIES:
        raise UnsafeCommand(f"Command not allowed: {' '.join(argv)}")

    for part in argv:
        for bad in FORBIDDEN:
            if bad in part:
                raise UnsafeCommand(f"Blocked unsafe command: {' '.join(argv)}")
