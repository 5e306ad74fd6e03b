class SalesChallengeError(Exception):
    """Base exception for the sales challenge service.

    Subclasses set ``status_code`` and ``code`` so the API layer can render
    a structured rejection without knowing every error type.
    """

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__.strip().splitlines()[0]
        super().__init__(self.message)


class NotConfiguredError(SalesChallengeError):
    """Required secret or credential is not configured."""

    status_code = 500
    code = "not_configured"


class UnauthorizedError(SalesChallengeError):
    """Caller could not be authenticated."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(SalesChallengeError):
    """Caller is not allowed to perform this action."""

    status_code = 403
    code = "forbidden"


class ChallengeNotFoundError(SalesChallengeError):
    """Challenge not found."""

    status_code = 404
    code = "challenge_not_found"


class EntryNotFoundError(SalesChallengeError):
    """Entry not found."""

    status_code = 404
    code = "entry_not_found"


class VotingClosedError(SalesChallengeError):
    """Voting is closed for this challenge."""

    status_code = 409
    code = "voting_closed"


class BudgetExceededError(SalesChallengeError):
    """Raised when a vote would push the voter over their budget."""

    status_code = 409
    code = "budget_exceeded"

    def __init__(self, used: int, requested_total: int, budget: int):
        self.used = used
        self.requested_total = requested_total
        self.budget = budget
        super().__init__(
            f"Vote budget exceeded: {requested_total} > {budget} (currently used {used})"
        )


class InvalidVoteWeightError(SalesChallengeError):
    """Vote weight is outside the allowed range."""

    status_code = 422
    code = "invalid_weight"


class EditingClosedError(SalesChallengeError):
    """Editing is closed for this challenge."""

    status_code = 409
    code = "editing_closed"


class EntryLockedError(SalesChallengeError):
    """Entry is already published and can no longer be edited."""

    status_code = 409
    code = "entry_locked"


class InvalidEntryError(SalesChallengeError):
    """Entry text is empty."""

    status_code = 422
    code = "invalid_entry"
