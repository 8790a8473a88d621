"""
Main entry point for the Resume Interviewer application.
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from resume_interviewer.api.app import create_app
from resume_interviewer.config import get_settings
from resume_interviewer.io.text_interface import TextInterface
from resume_interviewer.orchestrator.interview_controller import build_controller


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="resume_interviewer")
    parser.add_argument(
        "--mode",
        choices=["serve", "text"],
        default="serve",
        help="Serve the HTTP API or run an interview in the terminal",
    )
    parser.add_argument("--user-id", help="User id for text mode")
    parser.add_argument("--resume-id", type=int, help="Resume id for text mode (defaults to primary)")
    parser.add_argument("--host", help="API host (defaults to settings)")
    parser.add_argument("--port", type=int, help="API port (defaults to settings)")
    args = parser.parse_args(argv)

    if args.mode == "text" and not args.user_id:
        parser.error("--user-id is required in text mode")
    return args


async def run_text_interview(user_id: str, resume_id: int | None = None) -> None:
    """
    Run an interactive interview session in the terminal.

    Initializes all components, runs the REPL, then releases resources.
    """
    logger = logging.getLogger(__name__)
    settings = get_settings()

    logger.info("Initializing Resume Interviewer...")
    logger.debug(f"Using LLM model: {settings.llm_model_name}")

    controller = build_controller(settings)
    try:
        await TextInterface(controller, user_id=user_id, resume_id=resume_id).run()
    finally:
        await controller.close()


def serve(host: str | None = None, port: int | None = None) -> None:
    """Serve the HTTP API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    """Main entry point for the application."""
    setup_logging()
    args = parse_args(sys.argv[1:])

    try:
        if args.mode == "text":
            asyncio.run(run_text_interview(args.user_id, args.resume_id))
        else:
            serve(args.host, args.port)
    except KeyboardInterrupt:
        print("\nInterview session terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
