#!/usr/bin/env python3
"""
Interactive command line tutor.

Usage:
    python scripts/main.py [options]

Examples:
    # Ask questions interactively
    python scripts/main.py

    # One question, no diagram
    python scripts/main.py --query "How does photosynthesis work?" --no-render

    # Read engagement from the local camera
    python scripts/main.py --camera --log-level DEBUG
"""
import argparse
import sys
from pathlib import Path
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from eduai.agents.orchestrator import TutoringOrchestrator, create_orchestrator
from eduai.core.config import settings
from eduai.core.exceptions import InputError
from eduai.models.pipeline import PipelineResult
from eduai.utils.log_config import setup_logging

console = Console()


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="EduAI adaptive tutor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s
    %(prog)s --query "How does photosynthesis work?" --no-render
        """
    )

    parser.add_argument(
        "--query", "-q",
        help="Ask a single question and exit"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Path to log file (optional)"
    )

    parser.add_argument(
        "--no-render",
        action="store_true",
        help="Do not draw concept diagrams"
    )

    parser.add_argument(
        "--camera",
        action="store_true",
        help="Read engagement from the local camera (needs the vision extra)"
    )

    return parser.parse_args(argv)


def build_orchestrator(args: argparse.Namespace) -> TutoringOrchestrator:
    if args.camera:
        settings.ENABLE_CAMERA = True
    return create_orchestrator(render_diagrams=not args.no_render)


def print_result(result: PipelineResult) -> None:
    """Print one pipeline result."""
    table = Table(title="🔍 NLP Agent Output", show_header=False)
    table.add_row("Topic type", result.topic_type.value)
    table.add_row("Key phrases", ", ".join(result.key_phrases) or "-")
    table.add_row(
        "Triples",
        "; ".join(f"({t.subject}, {t.predicate}, {t.object})" for t in result.triples) or "-"
    )
    table.add_row("Concept map", " → ".join(result.concept_graph.nodes) or "-")
    if result.diagram_path:
        table.add_row("Diagram", result.diagram_path)
    table.add_row("Engagement", f"{result.engagement_score:.1f} ({result.emotion or 'no signal'})")
    console.print(table)

    if result.similar_utterance:
        console.print(f"🧠 You've asked something similar before: {result.similar_utterance}", style="magenta")

    for warning in result.warnings:
        console.print(f"⚠️  {warning}", style="yellow")

    console.print(Panel(result.response, title="🤖 Final Response", border_style="green"))


def ask(orchestrator: TutoringOrchestrator, question: str) -> bool:
    try:
        result = orchestrator.run_pipeline(question)
    except InputError as e:
        console.print(f"❌ {e}", style="bold red")
        return False
    print_result(result)
    return True


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        orchestrator = build_orchestrator(args)

        if args.query is not None:
            return 0 if ask(orchestrator, args.query) else 1

        console.print("🎓 EduAI Tutor", style="bold blue", justify="center")
        console.print("Ask a question, or press Ctrl+D to quit.", style="blue")

        while True:
            try:
                question = console.input("\n[bold]Enter your question:[/bold] ")
            except EOFError:
                return 0
            if question.strip():
                ask(orchestrator, question)

    except KeyboardInterrupt:
        console.print("\n⚠️  Interrupted by user", style="bold yellow")
        return 130

    except Exception as e:
        console.print(f"\n❌ Tutor failed: {e}", style="bold red")
        if args.log_level == "DEBUG":
            import traceback
            console.print(traceback.format_exc(), style="red")
        return 1


if __name__ == "__main__":
    sys.exit(main())
