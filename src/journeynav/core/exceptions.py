"""Custom exceptions for JourneyNav."""


class JourneyNavError(Exception):
    """Base exception for all JourneyNav errors."""

    pass


class ValidationError(JourneyNavError):
    """Raised when data validation fails."""

    pass


class InvalidTouchpointError(ValidationError):
    """Raised when a raw touchpoint carries an unknown type, channel or device."""

    def __init__(self, message: str = "invalid touchpoint type/channel", field: str = None, value=None):
        """Initialize touchpoint validation error.

        Args:
            message: Error message
            field: Name of the offending field (if known)
            value: Rejected value (if known)
        """
        self.field = field
        self.value = value
        if field:
            message = f"{message}: {field}={value!r}"
        super().__init__(message)


class StitchingError(JourneyNavError):
    """Raised when a touchpoint could not be stitched into a journey.

    Nothing is committed to the journey store when this is raised.
    """

    def __init__(self, message: str, identity: str = None):
        """Initialize stitching error.

        Args:
            message: Error message
            identity: Identity whose journey was being updated
        """
        super().__init__(message)
        self.identity = identity


class AnalysisError(JourneyNavError):
    """Raised when analysis fails."""

    def __init__(self, message: str, job: str = None):
        """Initialize analysis error.

        Args:
            message: Error message
            job: Name of the analysis job that failed
        """
        super().__init__(message)
        self.job = job


class StorageError(JourneyNavError):
    """Raised when storage operations fail."""

    pass


class ConfigurationError(JourneyNavError):
    """Raised when configuration is invalid."""

    pass


class ResourceNotFoundError(JourneyNavError):
    """Raised when requested resource is not found."""

    pass


class JourneyNotFoundError(ResourceNotFoundError):
    """Raised when a journey id is unknown to the store."""

    def __init__(self, journey_id: str):
        """Initialize journey lookup error.

        Args:
            journey_id: The journey id that was requested
        """
        super().__init__(f"Journey not found: {journey_id}")
        self.journey_id = journey_id
