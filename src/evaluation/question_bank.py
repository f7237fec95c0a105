"""Built-in interview prompts grouped by category."""

from __future__ import annotations

from src.evaluation.models import InterviewQuestionSet

CUSTOM_CATEGORY = "Custom"

INTERVIEW_SETS: list[InterviewQuestionSet] = [
    InterviewQuestionSet(
        category="Behavioral / Fit",
        questions=[
            "Tell me about yourself.",
            "Describe a time you handled conflict on a team.",
            "Why are you interested in this role?",
        ],
    ),
    InterviewQuestionSet(
        category="Technical - Computer Science (DSA / Coding)",
        questions=[
            "Explain the time complexity of binary search.",
            "Walk through how you would detect a cycle in a linked list.",
            "Design an algorithm to find the top K frequent elements.",
        ],
    ),
    InterviewQuestionSet(
        category="Technical - Economics (Micro / Macro / Metrics)",
        questions=[
            "Explain the difference between GDP and GNP.",
            "How does a price ceiling affect supply and demand?",
            "Describe what a p-value means in a regression.",
        ],
    ),
    InterviewQuestionSet(
        category="Case Interview",
        questions=[
            "Estimate the annual market size for electric scooters in a city.",
            "A coffee chain's profits are down. How would you analyze it?",
            "How would you structure a market entry for a new fintech app?",
        ],
    ),
    InterviewQuestionSet(
        category="Quantitative / Math",
        questions=[
            "Explain how you would model expected value for a simple gamble.",
            "If a fair coin is flipped 5 times, what is the probability of exactly 3 heads?",
            "How would you approximate sqrt(10) without a calculator?",
        ],
    ),
    InterviewQuestionSet(
        category="System Design",
        questions=[
            "Design a URL shortener.",
            "Outline a scalable chat system.",
            "Design a notification system for a mobile app.",
        ],
    ),
]


def _normalise(text: str) -> str:
    return " ".join(text.split()).casefold()


_CATEGORY_BY_PROMPT: dict[str, str] = {
    _normalise(question): question_set.category
    for question_set in INTERVIEW_SETS
    for question in question_set.questions
}


def category_for_prompt(prompt: str) -> str:
    """Category of a built-in prompt, or ``"Custom"`` for anything else."""
    return _CATEGORY_BY_PROMPT.get(_normalise(prompt), CUSTOM_CATEGORY)


def categories() -> list[str]:
    return [question_set.category for question_set in INTERVIEW_SETS]
