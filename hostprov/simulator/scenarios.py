def pacman_broken(state):
    state.errors["pacman_broken"] = True

def not_root(state):
    state.errors["not_root"] = True

def repo_offline(state, attempts=1):
    state.errors["repo_offline"] = attempts

def service_missing(state, name):
    state.services.pop(name, None)
    state.provides_units = {k: v for k, v in state.provides_units.items() if v != name}

def service_stopped(state, name):
    state.services[name] = {"enabled": True, "running": False}
