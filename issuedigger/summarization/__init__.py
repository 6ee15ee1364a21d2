"""Summarization module."""

from issuedigger.summarization.models import Message, Role, Summary
from issuedigger.summarization.prompts import SummarizationPrompt
from issuedigger.summarization.service import ChatCompletionSummarizer, Summarizer

__all__ = [
    "ChatCompletionSummarizer",
    "Message",
    "Role",
    "Summarizer",
    "Summary",
    "SummarizationPrompt",
]
