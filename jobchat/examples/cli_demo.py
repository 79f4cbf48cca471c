"""
jobchat CLI Demo

Command-line interface demonstrating the chat pipeline.
Run with: python -m jobchat.examples.cli_demo

This shows how all components work together:
1. Chat turns against the mock agent (no AWS calls)
2. Job extraction from the listing layouts the agent uses
3. Filter recovery from dashboard blocks
4. Keyword filter hints from user queries
"""

import sys
import os

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

import logging

from jobchat.core.agent_client import MockAgentClient
from jobchat.core.schemas import ChatRequest
from jobchat.parsing.query_filters import parse_filters_from_query, describe_filters
from jobchat.services.chat_service import ChatService, ParsedReply, parse_agent_output

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


SAMPLE_REPLIES = {
    "Simple numbered": (
        "Here are some roles:\n"
        "1. Software Developer at NetDirector in Tampa, FL\n"
        "2. Data Analyst at Acme Corp in Austin, TX"
    ),
    "Dash format": (
        "- Android Developer at Acme in Austin, TX. Responsibilities include building "
        "mobile features. [AD123]"
    ),
    "Labeled bullets": (
        "1. Software Developer at NetDirector in Tampa, FL.\n"
        "   - Location: Tampa, FL\n"
        "   - Salary Range: $60,000-$80,000\n"
        "   - [Apply](https://example.com/apply/1)"
    ),
    "Markdown bold": (
        "1. **Registered Nurse** at Mercy Health in Detroit, MI. Responsibilities: patient care.\n"
        "2. **ICU Nurse** at Beaumont in Royal Oak, MI. Responsibilities: critical care."
    ),
    "Dashboard update": (
        '<response>I have updated your dashboard.</response>'
        '<update_dashboard>{"filters": {"jobTitle": ["Nurse"], "datePosted": "past_week"}}</update_dashboard>'
    ),
}


def print_reply(parsed: ParsedReply):
    """Pretty print a parsed agent reply."""

    green = '\033[92m'
    yellow = '\033[93m'
    reset = '\033[0m'
    bold = '\033[1m'

    print(f"\n{green}{bold}[AGENT]{reset} ({parsed.content_type.value})")
    print(parsed.message)

    for i, job in enumerate(parsed.jobs, 1):
        print(f"\n  {i}. {job.title}")
        print(f"     Company: {job.company}")
        print(f"     Location: {job.location}{' (remote)' if job.remote else ''}")
        if job.salary:
            print(f"     Salary: {job.salary}")
        if job.apply_url:
            print(f"     Apply: {job.apply_url}")

    if parsed.filters:
        print(f"\n{yellow}{describe_filters(parsed.filters)}{reset}")


def run_interactive_demo():
    """Chat with the mock agent."""

    print("\n" + "=" * 60)
    print("           JOBCHAT - Interactive Demo")
    print("=" * 60)
    print("\nMessages go to the mock agent. Try 'find nursing jobs'.")
    print("Type 'quit' or 'exit' at any time to stop.\n")

    service = ChatService(MockAgentClient())
    session_id = None

    while True:
        try:
            user_input = input("\n> ").strip()

            if user_input.lower() in ['quit', 'exit', 'q']:
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            hints = parse_filters_from_query(user_input)
            if hints:
                print(f"(filter hints: {hints})")

            response = service.handle(ChatRequest(message=user_input, sessionId=session_id))
            session_id = response.session_id

            print_reply(ParsedReply(
                message=response.message,
                jobs=response.jobs,
                filters=response.filters,
            ))

        except KeyboardInterrupt:
            print("\n\nInterrupted. Goodbye!")
            break
        except Exception as e:
            logger.error(f"Error: {e}")
            print(f"\nError: {e}")


def run_layouts_demo():
    """Parse one sample reply per listing layout."""

    print("\n" + "=" * 60)
    print("           LISTING LAYOUTS DEMO")
    print("=" * 60)

    for name, reply in SAMPLE_REPLIES.items():
        print(f"\n{'=' * 40}")
        print(name)
        print('=' * 40)
        print_reply(parse_agent_output(reply))


def run_stdin_demo():
    """Parse agent output piped on stdin."""

    text = sys.stdin.read()
    print_reply(parse_agent_output(text))


def main():
    """Main entry point."""

    if len(sys.argv) > 1 and sys.argv[1] == "-":
        run_stdin_demo()
        return

    print("\n" + "=" * 60)
    print("           JOBCHAT DEMO MENU")
    print("=" * 60)
    print("""
Choose a demo:

1. Interactive Chat Demo (mock agent)
2. Listing Layouts Demo

Enter 'q' to quit. Pass '-' as an argument to parse stdin instead.
""")

    demos = {
        '1': run_interactive_demo,
        '2': run_layouts_demo,
    }

    while True:
        choice = input("Select demo (1-2): ").strip()

        if choice.lower() in ['q', 'quit', 'exit']:
            break

        if choice in demos:
            demos[choice]()
            print("\n" + "-" * 60)
            print("Demo complete. Select another or 'q' to quit.\n")
        else:
            print("Invalid choice. Please enter 1-2 or 'q'.")


if __name__ == "__main__":
    main()
