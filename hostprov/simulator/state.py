class HostState:
    def __init__(self):
        self.installed_packages = {
            "bash", "linux", "pacman", "systemd",
        }

        # everything the configured repositories can provide
        self.repository = {
            "bash", "linux", "pacman", "systemd",
            "bison", "cmake", "docker", "elixir", "erlang", "gcc", "gdb",
            "ghc", "git", "irssi", "jq", "libxml2", "libxslt", "make",
            "mercurial", "soundfont-fluid", "jdk-openjdk", "openssh",
        }

        # packages that ship a service unit, registered disabled on install
        # virtual names and the package that provides them
        self.provides = {
            "java-runtime": "jdk-openjdk",
            "java-environment": "jdk-openjdk",
        }

        self.provides_units = {
            "docker": "docker",
            "openssh": "sshd",
        }

        self.services = {
            "systemd-journald": {"enabled": True, "running": True},
        }

        self.errors = {
            "pacman_broken": False,
            "not_root": False,
            "repo_offline": 0,
        }

        self.history = []
