"""
Prompt construction for interview turns.

All functions here are pure: they only format strings.
"""

from resume_interviewer.orchestrator.schemas import Action


def build_start_prompt() -> str:
    return (
        "Please start the interview by asking the FIRST question. Use the 'start_interview' "
        "function with a question relevant to the candidate's background."
    )


def build_continue_prompt(history: str, answer_text: str, question_number: int | None = None) -> str:
    label = f" (Question #{question_number})" if question_number else ""
    return f"""
CONVERSATION HISTORY:
{history}

CANDIDATE'S ANSWER{label}:
{answer_text}

Based on this answer, decide whether to:
1. Ask a follow-up question using 'ask_next_question' (if the answer needs more depth or clarification)
2. Provide feedback using 'generate_feedback' (if you have enough information after 2-5 questions)

Be intelligent about your choice - don't ask too many questions, but also don't end too early."""


def build_feedback_prompt(history: str) -> str:
    return f"""
CONVERSATION SO FAR:
{history}

The candidate has requested feedback or wants to end the interview. Please provide comprehensive feedback using the 'generate_feedback' function. Set 'is_final' to true."""


def build_skip_prompt(history: str) -> str:
    return f"""
CONVERSATION SO FAR:
{history}

The candidate wants to skip the current question. Ask the next question using 'ask_next_question'."""


def build_no_answer_prompt(history: str) -> str:
    return f"""
CONVERSATION SO FAR:
{history}

The candidate did not answer the last question. Either rephrase it more simply or move on to a different question, using 'ask_next_question'."""


def build_prompt(
    action: Action | str,
    history: str = "",
    answer_text: str = "",
    question_number: int | None = None,
) -> str:
    """
    Build the instruction text for a turn.

    Args:
        action: Turn action. Unknown values are handled like CONTINUE.
        history: Recalled conversation, already formatted.
        answer_text: Candidate's latest answer.
        question_number: Number of the question being answered.

    Returns:
        Prompt text for the model.
    """
    if action in (Action.START, Action.RESTART):
        return build_start_prompt()
    if action in (Action.FEEDBACK, Action.END):
        return build_feedback_prompt(history)
    if action == Action.SKIP:
        return build_skip_prompt(history)
    if action == Action.NO_ANSWER:
        return build_no_answer_prompt(history)
    return build_continue_prompt(history, answer_text, question_number)


def format_conversation_history(history: str) -> str:
    """Return history, or a placeholder when it is blank."""
    if not history or not history.strip():
        return "No previous conversation."
    return history


def build_system_prompt(resume_context: str, job_description: str | None = None) -> str:
    """
    Build the one-time system instruction for an interview.

    Args:
        resume_context: Grounding snippets from the candidate's resume.
        job_description: Optional role the candidate is preparing for.

    Returns:
        System instruction text.
    """
    job_block = ""
    if job_description and job_description.strip():
        job_block = f"""
JOB DESCRIPTION:
{job_description.strip()}

Tailor your questions to the requirements of this role where the resume supports it.
"""

    return f"""You are an experienced interviewer conducting a behavioral and technical interview.

CANDIDATE'S RESUME CONTEXT:
{resume_context}
{job_block}
YOUR ROLE:
- Conduct a professional interview based on the candidate's resume
- Ask relevant behavioral and technical questions
- Provide constructive feedback on their answers at the end
- Be encouraging but honest in your assessment

INTERVIEW FLOW:
1. Start interview: use the start_interview function
2. Follow-up: use the ask_next_question function
3. Feedback / end interview: use the generate_feedback function after 2-5 questions, or when requested by the candidate

GUIDELINES:
- Tailor questions to the candidate's background and experience level
- Ask one question at a time
- Look for the STAR method in behavioral answers (Situation, Task, Action, Result)

IMPORTANT:
- Always use the provided functions to structure your responses
- Be specific in your feedback with actionable suggestions
- Acknowledge good answers and areas of strength
- Set is_final to true only when giving final comprehensive feedback"""
