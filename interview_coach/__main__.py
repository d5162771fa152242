#!/usr/bin/env python3
"""
Main entry point for the interview coach.
Allows running the package with: python -m interview_coach
"""
import sys
from typing import Optional

from .config import get_config
from .infrastructure.llm import GeminiRestClient
from .interview.models import Evaluation, SessionPhase, Speaker, Turn
from .interview.prompts import PromptBuilder
from .interview.session import InterviewSession
from .utils import setup_logging

COMMANDS_HELP = "Commands: /end to finish and get feedback, /reset to start over, /quit to exit"


def read_job_description() -> Optional[str]:
    """Read a multi-line job description terminated by an empty line."""
    print("\n💼 Paste the job description below (finish with an empty line):")
    lines = []
    while True:
        try:
            line = input()
        except EOFError:
            break
        if not line.strip():
            if lines:
                break
            continue
        lines.append(line)
    return "\n".join(lines) if lines else None


def show_turn(turn: Turn) -> None:
    prefix = "🧑" if turn.speaker is Speaker.CANDIDATE else "🤖"
    print(f"\n{prefix} {turn.speaker.label}: {turn.text}")


def show_evaluation(evaluation: Evaluation) -> None:
    print("\n" + "=" * 50)
    print("🏆 INTERVIEW FEEDBACK")
    print("=" * 50)
    range_note = "" if evaluation.score_in_range else "  (⚠️ outside 0-10)"
    print(f"Score: {evaluation.score}/10 ({evaluation.score_band}){range_note}")
    verdict = "✅" if evaluation.is_positive else "⚠️"
    print(f"Recommendation: {verdict} {evaluation.recommendation}")
    print(f"\n{evaluation.summary}")

    print("\n💪 Key Strengths:")
    for item in evaluation.strengths:
        print(f"  • {item}")

    print("\n📈 Areas for Improvement:")
    for item in evaluation.improvements:
        print(f"  • {item}")
    print("=" * 50)


def show_error(session: InterviewSession) -> None:
    if session.error_message:
        print(f"\n❌ {session.error_message}")


def run_interview(session: InterviewSession) -> bool:
    """
    Drive one session from setup to feedback.

    Returns:
        False if the user asked to quit
    """
    while session.phase is SessionPhase.SETUP:
        show_error(session)
        job_description = read_job_description()
        if job_description is None:
            return False
        print("\n⏳ Starting interview...")
        session.submit_job_description(job_description)

    for turn in session.transcript:
        show_turn(turn)
    print(f"\n{COMMANDS_HELP}")

    while session.phase is not SessionPhase.EVALUATED:
        try:
            answer = input("\n✏️  Your answer: ")
        except EOFError:
            return False

        command = answer.strip().lower()
        if command == "/quit":
            return False
        if command == "/reset":
            session.reset()
            return True
        if command == "/end":
            print("\n⏳ Analyzing your performance...")
            session.end_interview()
            show_error(session)
            continue

        seen = len(session.transcript)
        session.send_answer(answer)
        for turn in session.transcript[seen:]:
            if turn.speaker is Speaker.INTERVIEWER:
                show_turn(turn)
        show_error(session)

    show_evaluation(session.evaluation)
    try:
        again = input("\n🔄 Start a new interview? [y/N] ")
    except EOFError:
        return False
    session.reset()
    return again.strip().lower() in ("y", "yes")


def main():
    """Command-line interface for the interview coach."""

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    model_name = config.model_name
    log_file = config.log_file
    history_window = config.history_window
    for arg in sys.argv[1:]:
        if arg.startswith("--model="):
            model_name = arg.split("=", 1)[1]
        elif arg.startswith("--log-file="):
            log_file = arg.split("=", 1)[1]
        elif arg.startswith("--window="):
            try:
                history_window = int(arg.split("=", 1)[1])
            except ValueError:
                print("❌ Invalid window value. Use --window=<number of turns>")
                sys.exit(1)
            if history_window <= 0:
                print("❌ Invalid window value. Use --window=<number of turns>")
                sys.exit(1)
        else:
            print(f"❌ Unknown option: {arg}")
            print("   Options: --model=<name>, --log-file=<path>, --window=<turns>")
            sys.exit(1)

    setup_logging(log_file, config.log_level)

    gateway = GeminiRestClient(
        api_key=config.api_key,
        model=model_name,
        base_url=config.api_base_url,
        timeout=config.llm_timeout,
    )
    session = InterviewSession(gateway, prompt_builder=PromptBuilder(history_window))

    print(f"\n🎙️  Interview Coach - model {model_name}")
    print(f"📝 Detailed logs: {log_file}")
    print("=" * 50)

    try:
        while run_interview(session):
            pass
    except KeyboardInterrupt:
        print()

    print("\n👋 Good luck with the real thing!")


if __name__ == "__main__":
    main()
