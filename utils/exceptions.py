"""Exceptions raised by the MIME validator for configuration problems.

Validation outcomes (unreadable file, undetected type, disallowed type) are
reported as error codes on the validator, never raised.
"""


class MimeValidatorError(Exception):
    """Base class for validator configuration errors."""

    pass


class InvalidArgumentError(MimeValidatorError, ValueError):
    """Raised for malformed options or file descriptors."""

    pass


class InvalidMagicFileError(MimeValidatorError):
    """Raised when libmagic cannot load a signature database."""

    def __init__(self, magic_file: str, cause: str) -> None:
        self.magic_file = magic_file
        self.cause = cause
        super().__init__(
            f'The given magicfile ("{magic_file}") could not be used by libmagic: {cause}'
        )


class MagicUnavailableError(MimeValidatorError, RuntimeError):
    """Raised when a signature database is requested but libmagic is missing."""

    pass
