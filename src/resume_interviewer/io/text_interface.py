"""
Text-based interview interface.

Provides a command-line REPL that drives the interview controller for a
single user.
"""

import os

from resume_interviewer.errors import InterviewError
from resume_interviewer.orchestrator.interview_controller import InterviewController
from resume_interviewer.orchestrator.schemas import Action, ChatRequest, ChatResponse, StreamEvent

# Typed commands that map onto non-answer actions
COMMANDS = {
    "skip": Action.SKIP,
    "feedback": Action.FEEDBACK,
    "restart": Action.RESTART,
    "pass": Action.NO_ANSWER,
    "quit": Action.END,
    "exit": Action.END,
    "end": Action.END,
}


class TextInterface:
    """
    Command-line text interface for interviews.

    Answers are sent as CONTINUE turns; the words in COMMANDS trigger the
    matching action instead.
    """

    def __init__(
        self,
        controller: InterviewController,
        user_id: str,
        resume_id: int | None = None,
        stream: bool = True,
    ) -> None:
        """
        Initialize the text interface.

        Args:
            controller: Interview controller to drive.
            user_id: Identity the interview runs under.
            resume_id: Resume to ground on (primary resume when None).
            stream: Print model text as it arrives.
        """
        self._controller = controller
        self._user_id = user_id
        self._resume_id = resume_id
        self._stream = stream
        self._question_number: int | None = None

    async def run(self) -> None:
        """Run the interactive interview session."""
        print("\n" + "=" * 60)
        print("Resume Interview Practice")
        print("=" * 60 + "\n")
        print(f"Commands: {', '.join(sorted(COMMANDS))}\n")

        job_description = await self._get_job_description()

        response = await self._send(
            ChatRequest(action=Action.START, resume_id=self._resume_id, job_description=job_description)
        )
        if response is None:
            return

        while not (response and response.is_complete):
            candidate_input = await self._get_input("You: ")
            command = COMMANDS.get(candidate_input.strip().lower())

            if command is not None:
                request = ChatRequest(action=command, resume_id=self._resume_id)
            elif candidate_input.strip():
                request = ChatRequest(
                    action=Action.CONTINUE,
                    message=candidate_input,
                    question_number=self._question_number,
                )
            else:
                continue

            response = await self._send(request)
            if response is None and command == Action.END:
                break

        await self._controller.clear_session(self._user_id)

    async def _send(self, request: ChatRequest) -> ChatResponse | None:
        try:
            response = await self._controller.process_chat(
                self._user_id,
                request,
                on_chunk=self._print_chunk if self._stream else None,
            )
        except InterviewError as e:
            print(f"\n[error] {e.message}" + (f": {e.details}" if e.details else "") + "\n")
            return None

        self._display_response(response)
        return response

    async def _print_chunk(self, event: StreamEvent) -> None:
        if event.type == "text" and event.content:
            print(event.content, end="", flush=True)
        elif event.type == "complete" and event.full_text:
            print()

    def _display_response(self, response: ChatResponse) -> None:
        if response.question:
            self._question_number = response.question_number
            print(f"\nInterviewer (Q{response.question_number}, {response.question_type}): {response.question}\n")
            return

        if response.feedback:
            self._display_feedback(response.feedback)
            return

        if response.context and not self._stream:
            print(f"\nInterviewer: {response.context}\n")

    def _display_feedback(self, feedback: dict) -> None:
        print("\n" + "=" * 60)
        print("Interview Feedback")
        print("=" * 60)
        print(f"\nConfidence score: {feedback.get('confidence_score')}/10")
        print(f"\nCommunication: {feedback.get('grammar_assessment')}")
        print(f"\nContent: {feedback.get('content_quality')}")

        if feedback.get("strengths"):
            print("\nStrengths:")
            for item in feedback["strengths"]:
                print(f"  - {item}")

        if feedback.get("improvement_suggestions"):
            print("\nSuggestions:")
            for item in feedback["improvement_suggestions"]:
                print(f"  - {item}")

        print("\n" + "=" * 60)

    async def _get_job_description(self) -> str | None:
        """Optionally load a job description from a file."""
        file_path = (await self._get_input("Job description file (blank to skip): ")).strip()
        if not file_path:
            return None

        file_path = os.path.abspath(os.path.expanduser(file_path))
        if not os.path.exists(file_path):
            print(f"File not found: {file_path}. Continuing without a job description.")
            return None

        with open(file_path, encoding="utf-8") as f:
            return f.read()

    async def _get_input(self, prompt: str) -> str:
        # Using input() for simplicity; in production, could use aioconsole
        try:
            return input(prompt)
        except EOFError:
            return "exit"
