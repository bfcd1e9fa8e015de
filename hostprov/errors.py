class ProvisionError(Exception):
    kind = "ProvisionError"

    def __init__(self, name: str, message: str = "", output: str = ""):
        self.name = name
        self.output = output
        super().__init__(message or f"{self.kind}: {name}")

    def __str__(self):
        msg = super().__str__()
        return f"{self.name}: {msg}"


class PackageUnavailable(ProvisionError):
    kind = "PackageUnavailable"


class PermissionDenied(ProvisionError):
    kind = "PermissionDenied"


class ServiceNotFound(ProvisionError):
    kind = "ServiceNotFound"


class TransientManagerFailure(ProvisionError):
    kind = "TransientManagerFailure"


class ConfigError(Exception):
    pass
