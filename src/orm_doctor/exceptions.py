class OrmDoctorError(Exception):
    pass


class ConfigurationError(OrmDoctorError, ValueError):
    """Raised when an analyzer or setting is given an out-of-range value."""


class MetadataError(OrmDoctorError):
    def __init__(self, message: str, entity: str | None = None) -> None:
        super().__init__(message)
        self.entity = entity


class CaptureFormatError(OrmDoctorError, ValueError):
    pass
