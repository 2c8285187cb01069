# ai_providers/errors.py


class QuizError(Exception):
    """Base for every failure the quiz core reports to its caller."""


class UnknownProvider(QuizError):
    def __init__(self, provider: str):
        super().__init__(f"Unsupported provider: {provider}")
        self.provider = provider


class MissingCredentials(QuizError):
    def __init__(self, provider: str):
        super().__init__(f"{provider} API key is missing! Please set it in the settings.")
        self.provider = provider


CONTEXT_MESSAGE = (
    "The document is too large for the model's context window. "
    "Please split your document into smaller sections or use a model with larger context."
)


class ContextLengthExceeded(QuizError):
    """Prompt rejected as too large; `detail` is the provider's own wording."""

    def __init__(self, detail: str = ""):
        super().__init__(f"{CONTEXT_MESSAGE} ({detail})" if detail else CONTEXT_MESSAGE)
        self.detail = detail


class ProviderHttpError(QuizError):
    def __init__(self, status: int, body: str, message: str = ""):
        super().__init__(f"HTTP {status}: {message or body}")
        self.status = status
        self.body = body
        self.message = message or body


class ProviderResponseError(QuizError):
    """2xx reply that carries no completion text."""


class ProviderUnreachable(QuizError):
    def __init__(self, base_url: str):
        super().__init__(
            f"Could not connect to the local model server at {base_url}. "
            "Make sure Ollama is running (`ollama serve`)."
        )
        self.base_url = base_url


class UnparseableResponse(QuizError):
    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ProviderCallFailed(QuizError):
    def __init__(self, provider: str, model: str, cause: Exception):
        super().__init__(f"{provider} ({model}) call failed: {cause}")
        self.provider = provider
        self.model = model
        self.cause = cause


# phrases providers use when the prompt does not fit the model
CONTEXT_OVERFLOW_MARKERS = ("context_length_exceeded", "maximum context length")


def looks_like_context_overflow(message: str) -> bool:
    m = (message or "").lower()
    return any(marker in m for marker in CONTEXT_OVERFLOW_MARKERS)
