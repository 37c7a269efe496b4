# Prompt text for the two generative calls.

from __future__ import annotations

PROBLEM_SYSTEM_TEMPLATE = """You are a math problem generator. Generate a single word problem that is {difficulty} difficulty, suitable for a 5th-grade student, and primarily focuses on {problem_type} while potentially including one other basic arithmetic operation.
{reference_section}
You MUST provide the problem, the exact final numerical answer, a simple but helpful hint and a detailed step by step solution.
The response MUST be a single JSON object with the fields "problem_text" (string), "final_answer" (number), "hint_text" (string) and "step_by_step_solution" (array of strings).

Make sure "step_by_step_solution" is an ARRAY of short strings, each one showing exactly one mathematical operation and its result.
Example (for a problem where you add 10 and 5, subtract 5, then multiply by 2):
"step_by_step_solution": [
    "1. Start by finding the total: 10 + 5 = 15",
    "2. Find the remaining amount: 15 - 5 = 10",
    "3. Calculate the final value: 10 * 2 = 20"
]"""

REFERENCE_TEMPLATE = """
[REFERENCE CONTEXT]: Use the following course material as context so the word problem is relevant to what the student is learning, keeping it suitable for a 5th-grade level.
Content: {context}
"""

PROBLEM_USER_TEMPLATE = "Generate a new word problem of {difficulty} difficulty focused on {problem_type}."

FEEDBACK_SYSTEM_PROMPT = (
    "You are a friendly and encouraging math tutor. Provide personalized feedback to the "
    "student based on their answer. Keep the feedback concise but helpful. The response "
    "MUST be a single JSON object matching the provided schema."
)

FEEDBACK_USER_TEMPLATE = """The original problem was: "{problem_text}"
The correct answer is: {correct_answer}
The user submitted the answer: {user_answer}

Based on this, tell the student if they were correct or incorrect, and provide a constructive hint or encouragement."""


def format_number(x: float) -> str:
    if float(x).is_integer():
        return str(int(x))
    return repr(float(x))


def problem_system_prompt(difficulty: str, problem_type: str, reference_context: str = "") -> str:
    reference_section = (
        REFERENCE_TEMPLATE.format(context=reference_context) if reference_context else ""
    )
    return PROBLEM_SYSTEM_TEMPLATE.format(
        difficulty=difficulty,
        problem_type=problem_type,
        reference_section=reference_section,
    )


def problem_user_prompt(difficulty: str, problem_type: str) -> str:
    return PROBLEM_USER_TEMPLATE.format(difficulty=difficulty, problem_type=problem_type)


def feedback_user_prompt(problem_text: str, correct_answer: float, user_answer: float) -> str:
    return FEEDBACK_USER_TEMPLATE.format(
        problem_text=problem_text,
        correct_answer=format_number(correct_answer),
        user_answer=format_number(user_answer),
    )
