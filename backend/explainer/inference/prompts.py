from typing import Iterable, Optional

TUTOR_PROMPT = (
    "You are a helpful tutor assistant. Analyze this problem image and provide a clear, "
    "step-by-step explanation to help the student understand the concept and solution approach. "
    "Focus on teaching the underlying principles rather than just giving the answer."
)

CLASSIFY_HINTS = (
    "Based on the content of the problem image, determine which subject category it belongs to. Consider:\n"
    "- Mathematical equations, graphs, or formulas\n"
    "- Physics diagrams, circuits, or mechanics problems\n"
    "- Chemistry molecular structures or reactions\n"
    "- Biology diagrams or processes\n"
    "- Programming code or computer science concepts\n"
    "- Engineering drawings or calculations\n"
    "- Other academic subjects"
)


def build_tutor_prompt(question: Optional[str]) -> str:
    if not question:
        return TUTOR_PROMPT
    return f'{TUTOR_PROMPT}\n\nStudent\'s specific question: "{question}"'


def build_classification_prompt(
    labels: Iterable[str],
    question: Optional[str] = None,
    prior_response: Optional[str] = None,
    context_chars: int = 200,
) -> str:
    parts = [
        "Analyze this problem image and classify it into one of these subjects. "
        "Only respond with the exact subject name from this list:",
        ", ".join(labels),
        CLASSIFY_HINTS,
    ]
    context = []
    if question:
        context.append(f'Student\'s question: "{question}"')
    if prior_response:
        context.append(f'AI response context: "{prior_response[:context_chars]}..."')
    if context:
        parts.append("\n".join(context))
    parts.append("Respond with only the subject name from the list above, nothing else.")
    return "\n\n".join(parts)
