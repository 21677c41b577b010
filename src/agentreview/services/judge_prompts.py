"""Prompt text sent to the evaluator agent."""

from __future__ import annotations

DEFAULT_CRITERIA = (
    "Evaluate if the response is helpful, accurate, and addresses the user query appropriately."
)

EVALUATION_PROMPT = """You are evaluating an AI agent's response. Please analyze the following conversation and determine if the agent's response meets the evaluation criteria.

## Test Name
{test_name}

## Evaluation Criteria
{criteria}

## Conversation History
{conversation_history}

## Instructions
Based on the conversation above and the evaluation criteria, provide your assessment in the following JSON format:

```json
{{
  "verdict": "pass" or "fail",
  "reasoning": "Your detailed explanation of why the response passes or fails the criteria"
}}
```

Be thorough in your reasoning. Consider:
1. Does the response directly address the user's query?
2. Is the information accurate and relevant?
3. Does it meet the specific criteria outlined above?
4. Are there any issues with the response that would cause it to fail?

Provide your evaluation now."""


def build_conversation_history(prompt: str, agent_response: str | None) -> str:
    return f"User: {prompt}\n\nAssistant: {agent_response or '[No response]'}"


def format_evaluation_prompt(test_name: str, criteria: str | None, conversation_history: str) -> str:
    return EVALUATION_PROMPT.format(
        test_name=test_name,
        criteria=criteria or DEFAULT_CRITERIA,
        conversation_history=conversation_history,
    )
