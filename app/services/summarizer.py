from google import genai

from app.log import get_logger

logger = get_logger(__name__)

# Descriptions shorter than this are already summary-sized
MIN_DESCRIPTION_LENGTH = 100


def build_summary_prompt(description: str, title: str = "", subjects: list[str] | None = None) -> str:
    subjects = subjects or []
    subjects_context = (
        f"The book covers topics like: {', '.join(subjects[:5])}." if subjects else ""
    )

    return f"""You are a book curator helping readers understand books quickly.

Book Title: "{title}"
{subjects_context}

Description:
{description}

Task: Create a clear, engaging 2-3 sentence summary that captures the essence of this book. Focus on what makes it interesting and who might enjoy it. Be concise and inviting."""


def build_insight_prompt(subjects: list[str]) -> str:
    return (
        f"Based on someone interested in these topics: {', '.join(subjects[:10])}.\n\n"
        "Provide a brief 1-2 sentence insight about their reading interests "
        "and what kinds of books they might explore next."
    )


class BookSummarizer:
    """
    Thin wrapper around the Gemini API client.

    Every method returns None instead of raising: summaries are an optional
    extra and a missing key, a blocked prompt or a network error must never
    fail the request that asked for one.
    """

    def __init__(self, api_key: str | None = None, model_name: str = "gemini-2.0-flash", client=None):
        self.model_name = model_name
        if client is not None:
            self.client = client
        elif api_key:
            self.client = genai.Client(api_key=api_key)
        else:
            logger.warning("GEMINI_API_KEY not set, AI summaries are disabled")
            self.client = None

    @property
    def available(self) -> bool:
        return self.client is not None

    async def _generate(self, prompt: str) -> str | None:
        response = await self.client.aio.models.generate_content(model=self.model_name, contents=prompt)
        text = (response.text or "").strip()
        return text or None

    async def summarize(self, description: str | None, title: str = "", subjects: list[str] | None = None) -> str | None:
        if not self.available:
            return None
        if not description or len(description) < MIN_DESCRIPTION_LENGTH:
            return None

        try:
            return await self._generate(build_summary_prompt(description, title, subjects))
        except Exception as exc:
            logger.warning("Gemini summarization failed for %r: %s", title, exc)
            return None

    async def reading_insight(self, subjects: list[str]) -> str | None:
        if not self.available or not subjects:
            return None

        try:
            return await self._generate(build_insight_prompt(subjects))
        except Exception as exc:
            logger.warning("Gemini reading insight failed: %s", exc)
            return None
