class CampusEventsError(Exception):
    """Base class for errors raised by the service layer."""


class DuplicateActionError(CampusEventsError):
    """An action was already performed for the same (event, student) pair."""


class AlreadyRegisteredError(DuplicateActionError):
    def __init__(self, message: str = "Already registered for this event"):
        super().__init__(message)


class AttendanceAlreadyMarkedError(DuplicateActionError):
    def __init__(self, message: str = "Attendance already marked"):
        super().__init__(message)


class FeedbackAlreadySubmittedError(DuplicateActionError):
    def __init__(self, message: str = "Feedback already submitted"):
        super().__init__(message)


class EmailAlreadyRegisteredError(DuplicateActionError):
    def __init__(self, message: str = "An account with this email already exists"):
        super().__init__(message)


class RegistrationLimitError(CampusEventsError):
    """Registration refused because of the event's capacity or deadline."""


class EventFullError(RegistrationLimitError):
    def __init__(self, message: str = "Event is at full capacity"):
        super().__init__(message)


class RegistrationClosedError(RegistrationLimitError):
    def __init__(self, message: str = "Registration deadline has passed"):
        super().__init__(message)
