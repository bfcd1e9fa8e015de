from __future__ import annotations

import logging
import os
import shutil
import subprocess
from typing import List, Tuple

from hostprov.safety import validate

logger = logging.getLogger(__name__)

# extra environment per binary, keeps installs from prompting
COMMAND_ENV = {
    "apt-get": {"DEBIAN_FRONTEND": "noninteractive"},
}


def which(cmd: str) -> bool:
    return shutil.which(cmd) is not None


class HostRunner:
    """Runs manager commands on the real host.

    The child runs in its own session so a terminal Ctrl-C never reaches a
    package manager mid-transaction. An interrupt received while it runs is
    held until the child exits and re-raised afterwards.
    """

    def run(self, argv: List[str]) -> Tuple[int, str]:
        validate(argv)
        logger.debug("exec: %s", " ".join(argv))

        env = None
        if argv[0] in COMMAND_ENV:
            env = dict(os.environ, **COMMAND_ENV[argv[0]])

        try:
            p = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=env,
                start_new_session=True,
            )
        except FileNotFoundError:
            return 127, f"Command not found: {argv[0]}"

        interrupted = False
        while True:
            try:
                out, _ = p.communicate()
                break
            except KeyboardInterrupt:
                interrupted = True
                logger.warning("interrupt received, waiting for %s to finish", argv[0])

        if interrupted:
            raise KeyboardInterrupt
        return p.returncode, out
