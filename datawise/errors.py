"""Exceptions raised by the provisioning steps. The CLI maps them to exit codes."""


class ConfigurationError(RuntimeError):
    """The environment table is missing or does not match its schema."""


class InvalidEnvironmentError(ValueError):
    """The requested environment label is not one of the supported ones."""


class ProvisioningError(RuntimeError):
    """A fatal provisioning step failed; the run stops without cleanup."""


class PreflightError(ProvisioningError):
    pass


class KeyPairError(ProvisioningError):
    pass


class InstanceError(ProvisioningError):
    pass
