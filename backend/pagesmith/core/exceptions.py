class PagesmithError(Exception):
    """Base exception for the deployment pipeline."""

    pass


class ConfigurationError(PagesmithError):
    """Raised when a required credential or setting is missing."""

    pass


class GitHubAPIError(PagesmithError):
    """Raised when the GitHub API answers with a status >= 400."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"GitHub API error ({status_code}): {message}")


class NotificationError(PagesmithError):
    """Base for evaluation webhook delivery failures."""

    pass


class TransientDeliveryError(NotificationError):
    """5xx or network failure. Retried by the notifier."""

    pass


class NotificationRejectedError(NotificationError):
    """The webhook rejected the payload (4xx). Never retried."""

    def __init__(self, status_code: int, body: str, attempts: int):
        self.status_code = status_code
        self.body = body
        self.attempts = attempts
        super().__init__(f"Evaluation endpoint returned client error {status_code}: {body}")


class NotificationExhaustedError(NotificationError):
    """Raised when every delivery attempt failed transiently."""

    def __init__(self, attempts: int, last_error: BaseException | None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Evaluation endpoint not reached after {attempts} attempts: {last_error}")


class InvalidStageTransitionError(PagesmithError):
    """Raised when the pipeline attempts a transition the stage table forbids."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid pipeline transition '{current}' -> '{target}'")
