# Import necessary modules and libraries for CLI
import asyncio
import os
import requests
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from app.agents.normalizer_agent import build_normalizer
from app.agents.task_router import PsalmLookupRouter

# Run lookups in-process, or against a running API when PSALMS_API_URL is set
load_dotenv()

BASE_URL = os.getenv("PSALMS_API_URL")
console = Console()


def ask_api(prompt: str):
    payload = {"prompt": prompt}
    try:
        response = requests.post(f"{BASE_URL.rstrip('/')}/lookup", json=payload, timeout=60)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        console.print(f"[red]❌ Request failed:[/red] {e}")
        return None


def ask_local(loop, lookup_router: PsalmLookupRouter, prompt: str):
    result = loop.run_until_complete(lookup_router.run(prompt))
    return {
        "prompt": result.prompt,
        "normalized_prompt": result.normalized_prompt,
        "found": result.found,
        "error": result.error,
        "results": [
            {"reference": v.reference, "chapter": v.chapter, "verse": v.verse, "text": v.text}
            for v in result.verses
        ],
        "lines": result.lines,
    }


def render_results(response: dict):
    normalized = response.get("normalized_prompt")
    if normalized and normalized != response.get("prompt"):
        console.print(f"[blue]🔍 Interpreted as:[/blue] {normalized}\n")

    if response.get("error"):
        console.print(f"[bold red]⚠ {response['error']}[/bold red]")
        return

    verses = response.get("results", [])
    table = Table(title="📖 Psalms", show_lines=True, expand=True)
    table.add_column("Reference", style="cyan", no_wrap=True, min_width=12)
    table.add_column("Text", style="white", ratio=3, overflow="fold")

    for verse in verses:
        table.add_row(verse["reference"], verse["text"])

    console.print(table)
    if len(verses) > 1:
        console.print(f"[dim]Total: {len(verses)} verses[/dim]")


def show_examples():
    """Show usage examples"""
    console.print("\n[bold blue]📚 Usage Examples:[/bold blue]")

    examples = [
        ("Whole Psalm", "Psalm 23"),
        ("Single Verse", "Psalm 23:4"),
        ("Verse Range", "Psalm 23:1-3"),
        ("Worded Range", "Psalm 121:1 through 4"),
        ("Several Psalms", "Psalm 1, Psalm 2:1"),
        ("Free Text", "the first verse of every psalm"),
    ]

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="green", no_wrap=True)
    table.add_column(style="white")

    for example_type, example_query in examples:
        table.add_row(f"{example_type}:", f'"{example_query}"')

    console.print(table)


def show_help():
    """Show help information"""
    help_text = """
[bold blue]🔍 Psalms Lookup Help[/bold blue]

[bold yellow]Query Types:[/bold yellow]
• [green]References[/green]: Psalm 23, Psalm 23:4, Psalms 23:1-6
• [green]Worded ranges[/green]: Psalm 23:1 to 3, Psalm 121:1 through 4
• [green]Free text[/green]: "the first three psalms" (needs GROQ_API_KEY)

[bold yellow]Commands:[/bold yellow]
• [cyan]help[/cyan] - Show this help
• [cyan]examples[/cyan] - Show usage examples
• [cyan]exit/quit[/cyan] - Exit the program
"""
    console.print(Panel(help_text, border_style="blue"))


def run_cli():
    console.print("[bold magenta]📜 Psalms Lookup[/bold magenta]")
    console.print("[dim]Type 'help' for usage examples, 'exit' to quit[/dim]\n")

    # One loop for the session so the AI client is not bound to a closed loop
    loop = asyncio.new_event_loop()
    lookup_router = None
    if BASE_URL:
        console.print(f"[dim]Using API at {BASE_URL}[/dim]\n")
    else:
        lookup_router = PsalmLookupRouter(None, build_normalizer())

    while True:
        try:
            query = console.input("[bold yellow]🔍 Psalm[/bold yellow]: ").strip()

            if query.lower() in ["exit", "quit", "q"]:
                console.print("\n👋 Goodbye!")
                break
            elif query.lower() in ["help", "h", "?"]:
                show_help()
                continue
            elif query.lower() in ["examples", "ex"]:
                show_examples()
                continue
            elif not query:
                continue

            with console.status("[bold green]Looking up verses..."):
                if lookup_router is None:
                    response = ask_api(query)
                else:
                    response = ask_local(loop, lookup_router, query)

            if response:
                console.print()
                render_results(response)
                console.print()

        except KeyboardInterrupt:
            console.print("\n\n👋 Exiting...")
            break

    loop.close()


if __name__ == "__main__":
    run_cli()
