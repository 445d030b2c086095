"""
Error kinds raised by the tutoring engine.

Every failure the engine reports to its callers is a TutorError subclass.
`kind` is a stable machine-readable name (used by the web API), and
`user_message` is safe to show to a student.

Nothing in the engine retries on these errors. They are either handled
locally with an explicit fallback (quiz parsing) or propagated for the
interface to render.
"""


class TutorError(Exception):
    """Base class for all engine errors."""

    kind = "tutor_error"
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


# -- provider errors ----------------------------------------------------------


class ServiceUnavailable(TutorError):
    """The embedding or generation provider is unreachable, timed out or errored."""

    kind = "service_unavailable"
    default_message = "The AI service is unavailable right now. Please try again later."


class InvalidResponse(TutorError):
    """The provider answered, but with data we cannot use."""

    kind = "invalid_response"
    default_message = "The AI service returned an unexpected response."


class QuizParseError(InvalidResponse):
    """Generated quiz output did not contain a single valid question."""

    kind = "quiz_parse_error"
    default_message = "The generated quiz could not be read."


# -- content errors (user-actionable) -----------------------------------------


class NoContext(TutorError):
    """No compatible chunk was retrieved for a question."""

    kind = "no_context"
    default_message = "No study materials found. Upload your notes first, then ask again."


class InsufficientContent(TutorError):
    """There is no content to build a quiz from."""

    kind = "insufficient_content"
    default_message = "Not enough study materials to build a quiz. Upload your notes first."


# -- client input errors ------------------------------------------------------


class NotFound(TutorError):
    kind = "not_found"
    default_message = "Not found."


class AlreadyCompleted(TutorError):
    kind = "already_completed"
    default_message = "This quiz has already been submitted."


class InvalidAnswerSet(TutorError):
    kind = "invalid_answer_set"
    default_message = "The submitted answers do not match the quiz."
