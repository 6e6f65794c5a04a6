"""Package metadata for aspmailer."""

__app_name__ = "aspmailer"
__version__ = "0.1.0"
__author__ = "aspmailer contributors"

#: Version string reported by ``Mailer.version`` to legacy callers.
LEGACY_COMPONENT_VERSION = "4.1.0.0"

__all__ = [
    "LEGACY_COMPONENT_VERSION",
    "__app_name__",
    "__author__",
    "__version__",
]
