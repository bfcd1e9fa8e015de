from hostprov.safety import validate
from hostprov.simulator.pacman import handle_pacman
from hostprov.simulator.systemctl import handle_systemctl


class Simulator:
    """Answers manager commands from a HostState instead of the real host."""

    def __init__(self, state):
        self.state = state

    def run(self, argv):
        validate(argv)
        self.state.history.append(list(argv))

        if argv[0] == "pacman":
            return handle_pacman(argv, self.state)

        if argv[0] == "systemctl":
            return handle_systemctl(argv, self.state)

        return 127, f"{argv[0]}: command not found"

    def installs(self):
        return [cmd for cmd in self.state.history if cmd[:2] == ["pacman", "-S"]]
