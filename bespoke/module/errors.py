"""Module system error types."""


class ModuleError(Exception):
    """Base exception for module-related errors."""

    pass


class IdentityConflictError(ModuleError):
    """Raised when a module identifier is already present in the registry."""

    def __init__(self, identifier: str):
        super().__init__(
            f'A module with the same identifier "{identifier}" is already registered'
        )
        self.identifier = identifier


class DependencyError(ModuleError):
    """A module was disabled because its dependencies cannot be satisfied."""

    pass


class DependencyCycleError(DependencyError):
    """A module takes part in a dependency cycle."""

    def __init__(self, cycle: tuple[str, ...]):
        super().__init__(f"dependency cycle: {' -> '.join(cycle)}")
        self.cycle = cycle


class PreInitError(ModuleError):
    """Raised when a pre-init unit fails; aborts the rest of the pre-init pass."""

    def __init__(self, identifier: str, cause: BaseException):
        super().__init__(f"Pre-init of {identifier} failed: {cause}")
        self.identifier = identifier


class ActivationError(ModuleError):
    """Style or code activation failed for a single module."""

    pass
