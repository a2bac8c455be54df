class TollCheckError(Exception):
    """Base class for failures the check pipeline knows how to classify."""


class ElementNotFoundError(TollCheckError):
    """Raised when the plate input or submit control cannot be resolved by any strategy."""


class SubmissionFailedError(TollCheckError):
    """Raised when the submit control was found but activating it did not register."""


class NavigationFailedError(TollCheckError):
    """Raised when the provider entry URL is unreachable or times out."""


class InvalidPlateError(ValueError):
    """Raised when a plate is empty once separators are stripped."""


class UnknownProviderError(KeyError):
    """Raised when a provider id is not in the registry."""


class ProviderConfigError(ValueError):
    """Raised when a provider configuration file cannot be loaded."""
