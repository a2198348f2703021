class StoryApiError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(StoryApiError):
    status_code = 400


class NotFoundError(StoryApiError):
    status_code = 404


class RateLimitError(StoryApiError):
    status_code = 429

    def __init__(self, message="Rate limit exceeded. Please try again in a moment."):
        super().__init__(message)


class ConfigurationError(StoryApiError):
    status_code = 500


class InferenceError(StoryApiError):
    status_code = 500
