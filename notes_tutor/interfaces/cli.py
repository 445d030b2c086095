#!/usr/bin/env python3
"""
CLI Interface - Interactive command-line tutor.

This module provides a terminal interface for studying your own notes.
It supports:
- Free-form questions answered from your uploaded notes
- Ingesting text or markdown files (/ingest)
- Adaptive quizzes on your weakest topics (/quiz)
- Mastery progress and a dashboard (/progress, /dashboard)
- Help and commands (/help)

Run with:
    python -m notes_tutor.interfaces.cli
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from notes_tutor.config import LOG_LEVEL, TUTOR_USER_ID
from notes_tutor.errors import TutorError
from notes_tutor.pipeline import TutorPipeline

OPTION_LETTERS = "ABCD"

console = Console()


def print_welcome():
    """Print welcome message and instructions."""
    welcome_text = """
[bold blue]Welcome to Notes Tutor![/bold blue]

Upload your own study notes, then:

• [cyan]Ask[/cyan] anything about them - answers come only from your notes
• [cyan]Quiz[/cyan] yourself - quizzes focus on your weakest topics
• [cyan]Track[/cyan] your mastery of every topic over time

[dim]Type /help for all commands[/dim]
"""
    console.print(Panel(welcome_text, border_style="blue"))


def print_help():
    """Print help message with available commands."""
    table = Table(title="Available Commands", show_header=True, header_style="bold cyan")
    table.add_column("Command", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="dim")

    commands = [
        ("(any question)", "Ask about your notes", "How do I add fractions?"),
        ("/ingest <file> [subject] [topic] [subtopic]", "Upload a text file", "/ingest notes.md Maths Fractions"),
        ("/quiz", "Take an adaptive quiz", "/quiz"),
        ("/progress", "Show mastery per topic", "/progress"),
        ("/dashboard", "Show your study summary", "/dashboard"),
        ("/clear", "Clear the screen", "/clear"),
        ("/help", "Show this help message", "/help"),
        ("/exit", "Exit the tutor", "/exit"),
    ]

    for cmd, desc, example in commands:
        table.add_row(cmd, desc, example)

    console.print(table)


def parse_command(user_input: str) -> tuple[str, list[str]]:
    """
    Parse user input into command and arguments.

    Returns:
        Tuple of (command, arguments)
        For regular questions, command is 'ask'
    """
    user_input = user_input.strip()

    if not user_input:
        return ("empty", [])

    if user_input.startswith("/"):
        parts = user_input[1:].split(maxsplit=1)
        command = parts[0].lower() if parts else ""
        args = parts[1].split() if len(parts) > 1 else []
        return (command, args)

    return ("ask", [user_input])


def handle_ask(tutor: TutorPipeline, owner_id: str, question: str):
    with console.status("[bold green]Thinking...", spinner="dots"):
        answer = tutor.ask(owner_id, question)

    console.print("\n[bold green]🎓 Tutor:[/bold green]")
    console.print(Markdown(answer.answer_text))

    if answer.topic:
        label = " / ".join(part for part in (answer.subject, answer.topic, answer.subtopic) if part)
        console.print(f"\n[dim]Topic: {label}[/dim]")
    for number, source in enumerate(answer.sources, 1):
        console.print(f"[dim]  [{number}] ({source.similarity:.2f}) {source.content}[/dim]")


def handle_ingest(tutor: TutorPipeline, owner_id: str, args: list[str]):
    """Handle /ingest command."""
    if not args:
        console.print("[yellow]Usage: /ingest <file> [subject] [topic] [subtopic][/yellow]")
        console.print("[dim]Example: /ingest notes/fractions.md Maths Fractions[/dim]")
        return

    path = Path(args[0]).expanduser()
    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        return

    subject, topic, subtopic = (args[1:] + [None, None, None])[:3]
    text = path.read_text(encoding="utf-8")

    with console.status(f"[bold green]Ingesting {path.name}...", spinner="dots"):
        result = tutor.ingest(owner_id, text, path.name, subject, topic, subtopic)

    style = "green" if result.status == "completed" else "yellow"
    console.print(
        f"[{style}]{path.name}: {result.chunks_stored}/{result.chunks_total} chunks stored "
        f"({result.status})[/{style}]"
    )
    for failure in result.failures:
        console.print(f"[dim]  chunk {failure.chunk_index}: {failure.message}[/dim]")


def ask_option(number: int) -> int:
    choice = Prompt.ask(
        f"[bold cyan]Answer {number}[/bold cyan]",
        choices=list(OPTION_LETTERS) + list(OPTION_LETTERS.lower()),
        show_choices=False,
    )
    return OPTION_LETTERS.index(choice.upper())


def handle_quiz(tutor: TutorPipeline, owner_id: str):
    """Handle /quiz command: generate, take and submit a quiz."""
    with console.status("[bold green]Building your quiz...", spinner="dots"):
        quiz = tutor.generate_quiz(owner_id)

    topic = f" - {quiz.topic}" if quiz.topic else ""
    console.print(f"\n[bold green]📝 {quiz.title}{topic}[/bold green]")

    answers = []
    for question in quiz.questions:
        number = question["index"] + 1
        console.print(f"\n[bold]{number}. {question['question_text']}[/bold]")
        for letter, option in zip(OPTION_LETTERS, question["options"]):
            console.print(f"   {letter}) {option}")
        answers.append(ask_option(number))

    result = tutor.submit_quiz(owner_id, quiz.id, answers)

    table = Table(title=f"Score: {result.score}%", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("Your answer")
    table.add_column("Correct")
    table.add_column("Explanation", style="white")
    for number, item in enumerate(result.results, 1):
        mark = "[green]✓[/green]" if item.is_correct else "[red]✗[/red]"
        table.add_row(
            str(number),
            f"{mark} {OPTION_LETTERS[item.user_answer]}",
            OPTION_LETTERS[item.correct_answer],
            item.explanation,
        )
    console.print(table)
    console.print(
        f"[bold]{result.correct_answers}/{result.total_questions} correct[/bold]"
    )


def print_progress_table(rows: list[dict], title: str = "Topic Mastery"):
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Topic", style="white")
    table.add_column("Subject", style="dim")
    table.add_column("Mastery", style="green")
    table.add_column("Quizzes", style="dim")
    for row in rows:
        table.add_row(
            row["topic"],
            row["subject"] or "-",
            f"{row['mastery_score']}%",
            f"{row['questions_correct']}/{row['questions_attempted']}",
        )
    console.print(table)


def handle_progress(tutor: TutorPipeline, owner_id: str):
    """Handle /progress command."""
    rows = tutor.progress(owner_id)
    if not rows:
        console.print("[yellow]No progress yet. Take a quiz with /quiz.[/yellow]")
        return
    print_progress_table(rows)


def handle_dashboard(tutor: TutorPipeline, owner_id: str):
    """Handle /dashboard command."""
    data = tutor.dashboard(owner_id)
    stats = data["stats"]

    table = Table(title="Your Dashboard", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="white")
    table.add_column("Value", style="green")
    table.add_row("Questions asked", str(stats["total_questions"]))
    table.add_row("Quizzes completed", str(stats["completed_quizzes"]))
    table.add_row("Average score", f"{stats['average_score']}%")
    table.add_row("Uploads", str(stats["total_uploads"]))
    console.print(table)

    if data["weak_topics"]:
        print_progress_table(data["weak_topics"], title="Topics to Practise")

    if data["recent_activity"]:
        console.print("\n[bold]Recent activity:[/bold]")
        for item in data["recent_activity"]:
            console.print(f"  • {item['title']} [dim]{item['created_at']}[/dim]")


def setup_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Main CLI loop."""
    setup_logging()
    print_welcome()

    try:
        tutor = TutorPipeline()
    except TutorError as e:
        console.print(f"[red]Error initializing: {e.user_message}[/red]")
        return

    owner_id = TUTOR_USER_ID
    chunk_count = tutor.corpus_store.count(owner_id)
    if chunk_count == 0:
        console.print("[yellow]⚠️  You have no notes yet. Add some with /ingest <file>.[/yellow]")
    else:
        console.print(f"[dim]📚 Loaded {chunk_count} chunks from your notes[/dim]")

    if not tutor.generator.check_available():
        console.print("[yellow]Make sure Ollama is running: ollama serve[/yellow]")

    console.print()

    while True:
        try:
            user_input = Prompt.ask("[bold cyan]You[/bold cyan]")
            command, args = parse_command(user_input)

            if command == "empty":
                continue

            elif command == "exit" or command == "quit":
                console.print("\n[bold blue]Goodbye! Keep learning! 📚[/bold blue]")
                break

            elif command == "help":
                print_help()

            elif command == "clear":
                console.clear()
                print_welcome()

            elif command == "ingest":
                handle_ingest(tutor, owner_id, args)

            elif command == "quiz":
                handle_quiz(tutor, owner_id)

            elif command == "progress":
                handle_progress(tutor, owner_id)

            elif command == "dashboard":
                handle_dashboard(tutor, owner_id)

            elif command == "ask":
                handle_ask(tutor, owner_id, args[0])

            else:
                console.print(f"[yellow]Unknown command: /{command}[/yellow]")
                console.print("[dim]Type /help for available commands[/dim]")

            console.print()

        except KeyboardInterrupt:
            console.print("\n\n[bold blue]Goodbye! Keep learning! 📚[/bold blue]")
            break
        except TutorError as e:
            console.print(f"[red]{e.user_message}[/red]")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Could not read file: {e}[/red]")


if __name__ == "__main__":
    main()
