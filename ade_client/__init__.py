__version__ = "0.1.0"

from ade_client.core.errors import (  # noqa: E402
    ADEAuthenticationError,
    ADEConfigurationError,
    ADEConnectionError,
    ADEError,
    ADEExtractionError,
    ADEJobFailedError,
    ADEJobTimeoutError,
    ADEParseError,
    ADERateLimitError,
    ADEServerError,
)
from ade_client.providers.ade import ADEClient  # noqa: E402

__all__ = [
    "ADEAuthenticationError",
    "ADEClient",
    "ADEConfigurationError",
    "ADEConnectionError",
    "ADEError",
    "ADEExtractionError",
    "ADEJobFailedError",
    "ADEJobTimeoutError",
    "ADEParseError",
    "ADERateLimitError",
    "ADEServerError",
    "__version__",
]
