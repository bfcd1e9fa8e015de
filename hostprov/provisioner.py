from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple, Union

from hostprov.config import DesiredState, unique
from hostprov.errors import ProvisionError, ServiceNotFound, TransientManagerFailure
from hostprov.safety import UnsafeCommand
from hostprov.services import ServiceStatus

logger = logging.getLogger(__name__)


@dataclass
class PackageReport:
    installed: Set[str] = field(default_factory=set)
    changed: List[str] = field(default_factory=list)
    failures: List[ProvisionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class ApplyReport:
    packages: PackageReport
    services_changed: Dict[str, bool] = field(default_factory=dict)
    service_failures: List[ProvisionError] = field(default_factory=list)

    @property
    def failures(self) -> List[ProvisionError]:
        return self.packages.failures + self.service_failures

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class Plan:
    to_install: List[str] = field(default_factory=list)
    service_actions: List[Tuple[str, List[str]]] = field(default_factory=list)
    failures: List[ProvisionError] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.to_install or self.service_actions)


class Provisioner:
    """Drives the host toward a DesiredState.

    ``packages`` is a package manager adapter (``is_installed``/``install``)
    and ``services`` a service manager adapter (``status``/``enable``/``start``).
    Manager calls that fail transiently are retried ``retries`` more times,
    sleeping ``backoff * 2**attempt`` seconds in between.
    """

    def __init__(self, packages, services, retries: int = 2, backoff: float = 1.0, sleep=time.sleep):
        self.packages = packages
        self.services = services
        self.retries = retries
        self.backoff = backoff
        self.sleep = sleep

    def _with_retry(self, fn, *args):
        attempt = 0
        while True:
            try:
                return fn(*args)
            except TransientManagerFailure as e:
                if attempt >= self.retries:
                    raise
                delay = self.backoff * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "transient failure for %s (%s), retry %d/%d in %.1fs",
                    e.name, e, attempt, self.retries, delay,
                )
                self.sleep(delay)

    def ensure_packages(self, names: Iterable[str]) -> PackageReport:
        report = PackageReport()

        for name in unique(names):
            try:
                if self._with_retry(self.packages.is_installed, name):
                    logger.debug("%s already installed", name)
                else:
                    self._with_retry(self.packages.install, name)
                    report.changed.append(name)
                report.installed.add(name)
            except ProvisionError as e:
                logger.error("package %s failed: %s", name, e)
                report.failures.append(e)
            except UnsafeCommand as e:
                logger.error("package %s rejected: %s", name, e)
                report.failures.append(ProvisionError(name, str(e)))

        return report

    def ensure_service_running(self, name: str, enabled: bool = True, running: bool = True) -> bool:
        """Enable and/or start ``name``; returns True when something changed.

        Raises ServiceNotFound for a missing unit. Only the requested
        properties are acted on, a False flag leaves that property alone.
        """
        status = self._with_retry(self.services.status, name)
        changed = False

        if enabled and not status.enabled:
            self._with_retry(self.services.enable, name)
            changed = True

        if running and not status.running:
            self._with_retry(self.services.start, name)
            changed = True

        if not changed:
            logger.debug("service %s already in desired state", name)
        return changed

    def apply(self, desired: DesiredState) -> ApplyReport:
        report = ApplyReport(packages=self.ensure_packages(desired.package_names))

        for svc in desired.services:
            try:
                report.services_changed[svc.name] = self.ensure_service_running(
                    svc.name, enabled=svc.enabled, running=svc.running
                )
            except ProvisionError as e:
                logger.error("service %s failed: %s", svc.name, e)
                report.service_failures.append(e)
            except UnsafeCommand as e:
                logger.error("service %s rejected: %s", svc.name, e)
                report.service_failures.append(ProvisionError(svc.name, str(e)))

        return report

    def plan(self, desired: DesiredState) -> Plan:
        plan = Plan()

        for name in unique(desired.package_names):
            try:
                if not self._with_retry(self.packages.is_installed, name):
                    plan.to_install.append(name)
            except ProvisionError as e:
                plan.failures.append(e)

        for svc in desired.services:
            try:
                status = self._with_retry(self.services.status, svc.name)
            except ServiceNotFound as e:
                # the unit may ship with one of the pending packages
                if not plan.to_install:
                    plan.failures.append(e)
                    continue
                status = ServiceStatus(enabled=False, running=False)
            except ProvisionError as e:
                plan.failures.append(e)
                continue
            actions = []
            if svc.enabled and not status.enabled:
                actions.append("enable")
            if svc.running and not status.running:
                actions.append("start")
            if actions:
                plan.service_actions.append((svc.name, actions))

        return plan

    def status(self, desired: DesiredState) -> Tuple[Dict[str, bool], Dict[str, Union[ServiceStatus, ProvisionError]]]:
        packages = {}
        for name in unique(desired.package_names):
            try:
                packages[name] = self._with_retry(self.packages.is_installed, name)
            except ProvisionError:
                packages[name] = False

        services: Dict[str, Union[ServiceStatus, ProvisionError]] = {}
        for svc in desired.services:
            try:
                services[svc.name] = self._with_retry(self.services.status, svc.name)
            except ProvisionError as e:
                services[svc.name] = e

        return packages, services
