"""Prompt for paragraph summarization."""


class SummarizationPrompt:
    """Builds the chat messages that ask for a short summary.

    The summary is only ever embedded, never shown to users, so the prompt
    asks for plain prose without preamble.
    """

    DEFAULT_SYSTEM_PROMPT = """You summarize paragraphs taken from GitHub issues and comments.

Rules:
- Reply with the summary only, no preamble
- Keep technical terms, error names and component names
- Drop logs, stack traces and code, describe what they show instead
- At most three sentences"""

    DEFAULT_USER_TEMPLATE = """Summarize:

{text}"""

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def build(self, text: str) -> tuple[str, str]:
        """Return the (system, user) prompt pair for `text`."""
        return self.system_prompt, self.user_template.format(text=text)
