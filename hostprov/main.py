from __future__ import annotations

import argparse
import logging
import sys

from hostprov.config import load_config
from hostprov.errors import ConfigError
from hostprov.packages import detect_package_manager, get_package_manager
from hostprov.provisioner import Provisioner
from hostprov.services import ServiceStatus, Systemctl
from hostprov.shell import HostRunner
from hostprov.simulator.runner import Simulator
from hostprov.simulator.state import HostState


def build_provisioner(settings, simulate: bool = False) -> Provisioner:
    if simulate:
        runner = Simulator(HostState())
        manager = "pacman"
    else:
        runner = HostRunner()
        manager = settings.manager or detect_package_manager()
        if manager is None:
            raise ConfigError("no supported package manager found (pacman, dnf, apt-get)")

    return Provisioner(
        get_package_manager(manager, runner),
        Systemctl(runner),
        retries=settings.retries,
        backoff=settings.backoff,
    )


def _report_failures(failures) -> None:
    for err in failures:
        print(f"{err.kind}: {err}", file=sys.stderr)


def cmd_apply(prov, desired) -> int:
    report = prov.apply(desired)

    for name in report.packages.changed:
        print(f"+ installed {name}")
    for name, changed in report.services_changed.items():
        print(f"{'+' if changed else '='} service {name}")

    if report.ok:
        print(f"ok: {len(report.packages.installed)} packages, {len(report.services_changed)} services")
        return 0

    _report_failures(report.failures)
    return 1


def cmd_plan(prov, desired) -> int:
    plan = prov.plan(desired)

    for name in plan.to_install:
        print(f"+ package {name}")
    for name, actions in plan.service_actions:
        print(f"~ service {name}: {', '.join(actions)}")
    if not plan.has_changes and not plan.failures:
        print("no changes needed")

    _report_failures(plan.failures)
    return 1 if plan.failures else 0


def cmd_status(prov, desired) -> int:
    packages, services = prov.status(desired)
    missing = False

    print("Packages:")
    for name, present in packages.items():
        print(f"  {'ok     ' if present else 'missing'} {name}")
        missing = missing or not present

    print("Services:")
    for name, st in services.items():
        if isinstance(st, ServiceStatus):
            print(f"  {name}: enabled={st.enabled} running={st.running}")
        else:
            print(f"  {name}: {st.kind}")
            missing = True

    return 1 if missing else 0


def cmd_profiles(cfg) -> int:
    if not cfg.profiles:
        print("no profiles configured")
    for name in cfg.profiles:
        print(f"{'*' if name == cfg.profile else ' '} {name}")
    return 0


COMMANDS = {
    "apply": cmd_apply,
    "plan": cmd_plan,
    "status": cmd_status,
}


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="hostprov", description="Ensure packages are installed and services are running")
    ap.add_argument("command", nargs="?", default="apply", choices=sorted(COMMANDS) + ["profiles"])
    ap.add_argument("-c", "--config", default=None, help="YAML desired-state file (default: hostprov.yaml)")
    ap.add_argument("-p", "--profile", default=None, help="profile to overlay on the base config")
    ap.add_argument("--simulate", action="store_true", help="run against an in-memory host")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(args.config, profile=args.profile)
        if args.command == "profiles":
            return cmd_profiles(cfg)
        prov = build_provisioner(cfg.settings, simulate=args.simulate)
    except (ConfigError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        return COMMANDS[args.command](prov, cfg.desired)
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
