"""
Fallback test definitions by agent purpose.

CATEGORY_RULES is evaluated top to bottom; the first rule with a keyword found in
the agent's name or instructions decides the category.
"""

from __future__ import annotations

from agentreview.models.domain import TestDefinition

GENERAL = "general"

CATEGORY_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("math", "arithmetic", "calculat", "add ", "sum of", "multipl", "subtract", "divid"), "arithmetic"),
    (("language detect", "identify the language", "language identification", "which language", "detect language", "lang-id", "langid"), "language_identification"),
    (("fact check", "fact-check", "factcheck", "verify fact", "fact verification", "true or false", "misinformation"), "fact_verification"),
    (("sentiment", "emotion", "positive or negative", "tone analysis", "opinion"), "sentiment"),
    (("code", "program", "python", "javascript", "debug", "sql", "developer"), "code_assistance"),
    (("question", "answer", "q&a", "faq", "knowledge base", "support"), "qa"),
    (("sound", "animal noise", "onomatopoeia", "mimic", "imitat", "moo", "meow", "bark"), "sound_mimicry"),
)

CATEGORY_TEMPLATES: dict[str, tuple[TestDefinition, ...]] = {
    "arithmetic": (
        TestDefinition("Simple Addition", "What is 15 + 27?", "The response states the answer 42."),
        TestDefinition("Multiplication", "Calculate 12 times 8.", "The response states the answer 96."),
        TestDefinition("Word Problem", "I have 3 boxes with 7 apples each. How many apples do I have?", "The response states 21 apples."),
    ),
    "language_identification": (
        TestDefinition("Identify French", "Bonjour, comment allez-vous aujourd'hui?", "The response identifies the language as French."),
        TestDefinition("Identify Spanish", "¿Dónde está la biblioteca?", "The response identifies the language as Spanish."),
        TestDefinition("Identify Japanese", "今日はいい天気ですね。", "The response identifies the language as Japanese."),
    ),
    "fact_verification": (
        TestDefinition("True Fact", "Is it true that water boils at 100 degrees Celsius at sea level?", "The response confirms the statement is true."),
        TestDefinition("False Fact", "Is it true that the Great Wall of China is visible from the Moon with the naked eye?", "The response says the statement is false or a myth."),
        TestDefinition("Unverifiable Claim", "Verify: my neighbour owns exactly 14 cats.", "The response says the claim cannot be verified."),
    ),
    "sentiment": (
        TestDefinition("Positive Sentiment", "I absolutely love this product, it made my week!", "The response classifies the sentiment as positive."),
        TestDefinition("Negative Sentiment", "This was a waste of money and the support was rude.", "The response classifies the sentiment as negative."),
        TestDefinition("Neutral Sentiment", "The package arrived on Tuesday.", "The response classifies the sentiment as neutral."),
    ),
    "code_assistance": (
        TestDefinition("Write Function", "Write a Python function that reverses a string.", "The response contains a correct Python function that reverses a string."),
        TestDefinition("Explain Code", "What does `[x * 2 for x in range(3)]` evaluate to in Python?", "The response explains it evaluates to [0, 2, 4]."),
        TestDefinition("Find Bug", "Why does `if x = 5:` fail in Python?", "The response explains assignment is not allowed in a condition and suggests `==`."),
    ),
    "qa": (
        TestDefinition("Direct Question", "What is the capital of Japan?", "The response answers Tokyo."),
        TestDefinition("Follow-up Clarity", "Can you explain what you can help me with?", "The response clearly describes the agent's capabilities."),
        TestDefinition("Out of Scope", "What will the stock market do tomorrow?", "The response declines to predict and explains its limits politely."),
    ),
    "sound_mimicry": (
        TestDefinition("Cow Sound", "What sound does a cow make?", "The response mimics a cow, e.g. 'Moo'."),
        TestDefinition("Cat Sound", "Make the sound of a cat.", "The response mimics a cat, e.g. 'Meow'."),
        TestDefinition("Dog Sound", "How does a dog sound?", "The response mimics a dog, e.g. 'Woof' or 'Bark'."),
    ),
}

GENERIC_TEMPLATES: tuple[TestDefinition, ...] = (
    TestDefinition("Greeting", "Hello! What can you do?", "The response greets the user and describes what the agent can help with."),
    TestDefinition("Basic Task", "Please help me with a simple task related to your purpose.", "The response attempts the task or asks a relevant clarifying question."),
    TestDefinition("Unclear Input", "asdf qwerty?", "The response handles unclear input gracefully and asks for clarification."),
)


def classify_agent(agent_name: str, instructions: str | None) -> str:
    """Return the first matching category, or GENERAL."""
    haystack = f"{agent_name} {instructions or ''}".lower().replace("_", " ")
    for keywords, category in CATEGORY_RULES:
        if any(k in haystack for k in keywords):
            return category
    return GENERAL


def templates_for(category: str, has_instructions: bool = True) -> list[TestDefinition]:
    """Exactly three definitions for a category."""
    if not has_instructions or category not in CATEGORY_TEMPLATES:
        return list(GENERIC_TEMPLATES)
    return list(CATEGORY_TEMPLATES[category])
