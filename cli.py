import asyncio
import json
from uuid import UUID

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from innodraw.core.config import settings
from innodraw.core.exceptions import StorageFailure
from innodraw.db.repositories.project_repository import ProjectRepository
from innodraw.services.ai_service import AIService
from innodraw.services.diagram_assembler import DiagramAssembler, ProgressUpdate
from innodraw.services.workspace_service import Workspace

cli_app = typer.Typer()
console = Console()

def _print_progress(update: ProgressUpdate) -> None:
    console.print(f"[cyan]{update.message}[/cyan]")

@cli_app.command()
def generate(
    idea: str = typer.Option(..., "--idea", "-i", help="The idea to turn into a diagram."),
    save: bool = typer.Option(False, "--save", "-s", help="Save the result as a project."),
):
    """
    Runs the full generation pipeline for an idea and prints the diagram.
    """
    if not settings.GEMINI_API_KEY:
        console.print("[bold red]Error:[/bold red] GEMINI_API_KEY is not set in your .env file.")
        raise typer.Exit(code=1)

    async def main():
        workspace = Workspace()
        assembler = DiagramAssembler(AIService(api_key=settings.GEMINI_API_KEY))
        model = await workspace.generate(idea, assembler, _print_progress)
        if model is None:
            console.print(f"[bold red]Error:[/bold red] {workspace.error}")
            raise typer.Exit(code=1)

        console.print("\n[bold green]Generated Diagram:[/bold green]")
        model_json = json.dumps(model.model_dump(mode="json", exclude={"components": {"__all__": {"artwork_ref"}}}), indent=2)
        console.print(Syntax(model_json, "json", theme="solarized-dark"))

        if save:
            project = await workspace.save(ProjectRepository(settings.PROJECT_STORE_PATH))
            console.print(f"[green]Saved project[/green] {project.name} ({project.id})")

    asyncio.run(main())

@cli_app.command()
def projects():
    """
    Lists saved projects, most recent first.
    """
    repository = ProjectRepository(settings.PROJECT_STORE_PATH)
    try:
        saved = asyncio.run(repository.list())
    except StorageFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(code=1)

    if not saved:
        console.print("[yellow]You don't have any projects yet.[/yellow]")
        return

    table = Table(title="Your Projects")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Created")
    table.add_column("Components", justify="right")
    for project in saved:
        table.add_row(
            str(project.id),
            project.name,
            project.created_at.strftime("%Y-%m-%d %H:%M"),
            str(len(project.model.components)),
        )
    console.print(table)

@cli_app.command()
def delete(
    project_id: UUID = typer.Option(..., "--id", help="The UUID of the project to delete."),
):
    """
    Deletes a saved project. Deleting an unknown id is not an error.
    """
    repository = ProjectRepository(settings.PROJECT_STORE_PATH)
    try:
        asyncio.run(repository.delete(project_id))
    except StorageFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted project[/green] {project_id}")


if __name__ == "__main__":
    cli_app()
