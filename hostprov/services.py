from __future__ import annotations

import logging
from dataclasses import dataclass

from hostprov.errors import PermissionDenied, ProvisionError, ServiceNotFound
from hostprov.safety import validate_name

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = (
    "could not be found",
    "does not exist",
    "not-found",
    "not found",
    "no such file",
)

PERMISSION_MARKERS = (
    "access denied",
    "authentication required",
    "permission denied",
)


@dataclass(frozen=True)
class ServiceStatus:
    enabled: bool
    running: bool


def unit_name(name: str) -> str:
    name = name.strip()
    if "." not in name:
        name += ".service"
    return name


def _classify(name: str, rc: int, output: str) -> ProvisionError:
    text = output.lower()
    if rc == 127:
        return ProvisionError(name, output.strip() or "systemctl not available", output)
    if any(m in text for m in NOT_FOUND_MARKERS):
        return ServiceNotFound(name, "no such service unit", output)
    if any(m in text for m in PERMISSION_MARKERS):
        return PermissionDenied(name, "insufficient privileges to manage service", output)
    return ProvisionError(name, output.strip() or f"exit status {rc}", output)


class Systemctl:
    def __init__(self, runner):
        self.runner = runner

    def status(self, name: str) -> ServiceStatus:
        validate_name(name)
        unit = unit_name(name)

        # is-enabled/is-active exit non-zero for disabled/inactive units, so
        # only the printed state word is trusted
        rc, out = self.runner.run(["systemctl", "is-enabled", unit])
        if rc == 127:
            raise _classify(name, rc, out)
        state = out.strip()
        if not state or any(m in state.lower() for m in NOT_FOUND_MARKERS):
            raise ServiceNotFound(name, "no such service unit", out)

        _, active = self.runner.run(["systemctl", "is-active", unit])
        return ServiceStatus(
            enabled=(rc == 0 and state in ("enabled", "enabled-runtime", "static", "alias")),
            running=active.strip() == "active",
        )

    def enable(self, name: str) -> None:
        self._call("enable", name)

    def start(self, name: str) -> None:
        self._call("start", name)

    def _call(self, verb: str, name: str) -> None:
        validate_name(name)
        logger.info("%s %s", verb, name)
        rc, out = self.runner.run(["systemctl", verb, unit_name(name)])
        if rc != 0:
            raise _classify(name, rc, out)
