"""
Main entry point for the Recruiter Call Assistant.
"""

import argparse
import asyncio
import logging
import sys

from recruiter_call_assistant.agent.turn_engine import TurnEngine
from recruiter_call_assistant.config import get_settings
from recruiter_call_assistant.io.text_interface import TextInterface
from recruiter_call_assistant.models.llm_client import LLMClient
from recruiter_call_assistant.tools.recruitment import build_recruitment_registry


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="recruiter-call-assistant")
    subparsers = parser.add_subparsers(dest="mode")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.host, help="Bind address (default: HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=settings.port, help="Port (default: PORT or 3002)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    text = subparsers.add_parser("text", help="Chat with the assistant in the terminal")
    text.add_argument("--hide-tools", action="store_true", help="Do not print tool calls")

    return parser


async def run_text(show_tools: bool = True) -> None:
    """
    Run an interactive terminal session.

    Initializes the provider client and the turn engine in-process and runs
    the chat loop.
    """
    settings = get_settings()
    logger = logging.getLogger(__name__)

    logger.info("Initializing Recruiter Call Assistant...")
    logger.debug(f"Using LLM model: {settings.llm_model_name}")

    llm_client = LLMClient(
        model=settings.llm_model_name,
        timeout=settings.llm_timeout,
    )
    engine = TurnEngine(llm_client, build_recruitment_registry())

    try:
        await TextInterface(engine, show_tools=show_tools).run()
    finally:
        await llm_client.close()


def run_server(host: str, port: int, reload: bool = False) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "recruiter_call_assistant.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the application."""
    setup_logging()
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    try:
        if args.mode == "serve":
            run_server(args.host, args.port, reload=args.reload)
        else:
            asyncio.run(run_text(show_tools=not getattr(args, "hide_tools", False)))
    except KeyboardInterrupt:
        print("\nSession terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
