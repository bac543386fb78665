"""Custom exceptions for editguard.

Guards report model misbehaviour through result objects. The exceptions here
are raised only for incorrect use of the library by calling code.
"""


class EditGuardError(Exception):
    """Base class for editguard programmer errors."""


class EditInProgressError(EditGuardError):
    """Raised when an edit is started on a session that already has one pending.

    Attributes:
        draft_id: Draft whose session is busy
        message: Human-readable error message
    """

    def __init__(self, draft_id: str, message: str = "An edit is already pending for this draft"):
        self.draft_id = draft_id
        self.message = message
        super().__init__(f"{message}: {draft_id}")


class NoPendingEditError(EditGuardError):
    """Raised when a completion is submitted but no edit was started.

    Attributes:
        draft_id: Draft whose session has nothing pending
        message: Human-readable error message
    """

    def __init__(self, draft_id: str, message: str = "No pending edit for this draft"):
        self.draft_id = draft_id
        self.message = message
        super().__init__(f"{message}: {draft_id}")


class UnknownSectionError(EditGuardError, ValueError):
    """Raised when a section name outside HOOK/BODY/CTA/TONE is passed in."""

    def __init__(self, section: str):
        self.section = section
        super().__init__(f"Unknown canon section: {section!r}")
