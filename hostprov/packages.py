from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Type

from hostprov.errors import (
    PackageUnavailable,
    PermissionDenied,
    ProvisionError,
    TransientManagerFailure,
)
from hostprov.safety import validate_name
from hostprov.shell import which as _which

logger = logging.getLogger(__name__)

UNAVAILABLE_MARKERS = (
    "target not found",
    "no match for argument",
    "unable to find a match",
    "unable to locate package",
    "has no installation candidate",
)

PERMISSION_MARKERS = (
    "you cannot perform this operation unless you are root",
    "superuser privileges",
    "permission denied",
    "are you root",
)

TRANSIENT_MARKERS = (
    "failed retrieving file",
    "could not resolve host",
    "temporary failure",
    "unable to lock database",
    "could not get lock",
    "timed out",
    "curl error",
)


def classify(name: str, rc: int, output: str) -> ProvisionError:
    """Map a failed manager call onto the matching error kind."""
    text = output.lower()
    last = output.strip().splitlines()[-1] if output.strip() else f"exit status {rc}"

    if any(m in text for m in UNAVAILABLE_MARKERS):
        return PackageUnavailable(name, "not found in any configured repository", output)
    if any(m in text for m in PERMISSION_MARKERS):
        return PermissionDenied(name, "insufficient privileges to install", output)
    if any(m in text for m in TRANSIENT_MARKERS):
        return TransientManagerFailure(name, last, output)
    return ProvisionError(name, last, output)


class PackageManager:
    name = ""

    def __init__(self, runner):
        self.runner = runner

    def query_argv(self, pkg: str) -> List[str]:
        raise NotImplementedError

    def install_argv(self, pkg: str) -> List[str]:
        raise NotImplementedError

    def is_installed(self, pkg: str) -> bool:
        validate_name(pkg)
        rc, _ = self.runner.run(self.query_argv(pkg))
        return rc == 0

    def install(self, pkg: str) -> None:
        validate_name(pkg)
        logger.info("installing %s via %s", pkg, self.name)
        rc, out = self.runner.run(self.install_argv(pkg))
        if rc != 0:
            raise classify(pkg, rc, out)


class Pacman(PackageManager):
    name = "pacman"

    def query_argv(self, pkg):
        # -T resolves provided names too, so "java-runtime" is satisfied by
        # jdk-openjdk; package groups are not resolved
        return ["pacman", "-T", pkg]

    def install_argv(self, pkg):
        return ["pacman", "-S", "--noconfirm", "--needed", pkg]


class Dnf(PackageManager):
    name = "dnf"

    def query_argv(self, pkg):
        return ["rpm", "-q", pkg]

    def install_argv(self, pkg):
        return ["dnf", "install", "-y", pkg]


class Apt(PackageManager):
    name = "apt"

    def query_argv(self, pkg):
        return ["dpkg-query", "-W", "-f=${Status}", pkg]

    def install_argv(self, pkg):
        return ["apt-get", "install", "-y", pkg]

    def is_installed(self, pkg: str) -> bool:
        # dpkg keeps records for removed packages; only "install ok installed" counts
        validate_name(pkg)
        rc, out = self.runner.run(self.query_argv(pkg))
        return rc == 0 and "install ok installed" in out


MANAGERS: Dict[str, Type[PackageManager]] = {
    "pacman": Pacman,
    "dnf": Dnf,
    "apt": Apt,
}

# binary that marks each manager as present on the host
_PROBES = (
    ("pacman", "pacman"),
    ("dnf", "dnf"),
    ("apt", "apt-get"),
)


def detect_package_manager(which: Callable[[str], bool] = _which) -> Optional[str]:
    for name, binary in _PROBES:
        if which(binary):
            return name
    return None


def get_package_manager(name: str, runner) -> PackageManager:
    try:
        cls = MANAGERS[name]
    except KeyError:
        raise ValueError(f"unknown package manager: {name}") from None
    return cls(runner)
