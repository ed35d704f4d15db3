"""Journey error taxonomy.

Terminal errors abort page processing and move the lifecycle engine to
the errored state. Accessibility errors are terminal only when the page is
configured to stop on failure; otherwise they are accumulated in the run
report and the journey continues.
"""


class JourneyError(Exception):
    """Base class for journey failures."""

    pass


class ConfigurationError(JourneyError):
    """Raised when journey configuration cannot be read or validated."""

    pass


class HostNotAllowedError(JourneyError):
    """Raised when the browser lands on a host outside the allow-list."""

    pass


class ErrorPageError(JourneyError):
    """Raised when an error-page marker is present on the page."""

    pass


class ExitPageError(JourneyError):
    """Raised when the journey falls out of the intended flow."""

    pass


class MaxTriesError(JourneyError):
    """Raised when a page is revisited beyond its retry budget."""

    pass


class NavigationError(JourneyError):
    """Raised when no navigation target can be found on the page."""

    pass


class FormFillError(JourneyError):
    """Raised on a field failure when strict field filling is enabled."""

    pass


class AccessibilityError(JourneyError):
    """Raised when accessibility findings remain after filtering."""

    def __init__(self, message: str, findings=None):
        super().__init__(message)
        self.findings = list(findings or [])
