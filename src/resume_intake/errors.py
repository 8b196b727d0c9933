"""Exception types raised by the ingestion pipeline."""


class IntakeError(Exception):
    """Base class for all Resume Intake errors."""


class PreconditionError(IntakeError):
    """Mailbox credentials (or other required settings) are missing."""


class MailboxConnectionError(IntakeError):
    """Opening, authenticating or searching the mailbox failed.

    Fatal to the current scan pass.
    """


class UnsupportedFormatError(IntakeError):
    """Attachment bytes do not match any document format we can decode."""


class ExtractionError(IntakeError):
    """A decoder recognised the format but could not read the document."""


class MissingIdentityError(IntakeError):
    """No candidate email could be derived from the resume or the sender."""
