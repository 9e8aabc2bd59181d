"""CLI commands for eduportal.

Commands:
- init-db: Create the SQLite schema
- create-admin: Register an administrator account
- import-questions: Extract questions from a PDF/TXT document
- generate-path: Generate a learning path with AI
- classbuild-check / classbuild-export: Classbuild integration
- serve: Run the web API
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from eduportal.config.app_config import load_app_config
from eduportal.core.auth import AuthError, register_user
from eduportal.core.document_extractor import ExtractionError, extract_document_text
from eduportal.core.learning_path_generator import LearningPathError, generate_learning_path
from eduportal.core.question_extractor import PATTERNS, QuestionExtractionError, extract_questions
from eduportal.core.question_saver import BatchSaveError, save_questions
from eduportal.db import academic_repository, questions_repository
from eduportal.db.database import init_db
from eduportal.integrations.classbuild import (
    ClassbuildClient,
    ClassbuildError,
    RemoteItem,
)
from eduportal.logging_setup import configure_logging

app = typer.Typer(
    name="eduportal",
    help="Plataforma educacional: banco de questões, provas e área de estudos.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    db: str | None = typer.Option(None, "--db", help="Caminho do banco SQLite"),
) -> None:
    """Configure logging and open the database before any command."""
    config = load_app_config()
    configure_logging(config.log_level)
    init_db(Path(db or config.db_path))


@app.command(name="init-db")
def init_database() -> None:
    """Create the database schema (idempotent)."""
    console.print("[green]✓ Banco de dados pronto[/green]")


@app.command(name="create-admin")
def create_admin(
    email: str = typer.Argument(..., help="E-mail do administrador"),
    name: str = typer.Option("", "--name", "-n", help="Nome exibido"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Register an administrator account."""
    try:
        profile = register_user(name=name, email=email, password=password, role="admin")
    except AuthError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Administrador criado: {profile.email}[/green]")
    console.print(f"  [dim]id:[/dim] {profile.id}")


def _print_questions(questions) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Enunciado")
    table.add_column("Alt.", justify="center")
    table.add_column("Gabarito", justify="center")
    for q in questions:
        statement = q.statement if len(q.statement) <= 70 else q.statement[:67] + "..."
        table.add_row(str(q.id), statement, str(len(q.choices)), q.correct or "-")
    console.print(table)


@app.command(name="import-questions")
def import_questions(
    file: str = typer.Argument(..., help="Arquivo PDF ou TXT com as questões"),
    pattern: str = typer.Option(
        "sequential", "--pattern", "-p", help=f"Padrão do documento: {', '.join(PATTERNS)}"
    ),
    discipline: str | None = typer.Option(
        None, "--discipline", "-d", help="ID da disciplina de destino"
    ),
    subject: str | None = typer.Option(None, "--subject", "-s", help="ID do assunto de destino"),
    lote: str | None = typer.Option(None, "--lote", "-l", help="Nome do lote"),
) -> None:
    """Extract questions from a document and optionally save them.

    Without --discipline/--subject/--lote the questions are only listed.

    Exemplos:

        eduportal import-questions prova.pdf

        eduportal import-questions prova.pdf -d <disciplina> -s <assunto> -l "Lote 1"
    """
    file_path = Path(file).expanduser().resolve()
    if not file_path.exists():
        console.print(f"[red]✗ Arquivo não encontrado: {file_path}[/red]")
        raise typer.Exit(code=1)

    try:
        document = extract_document_text(file_path.read_bytes(), file_path.name)
    except ExtractionError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[blue]Analisando {file_path.name} ({document.pages} página(s))...[/blue]")

    def on_progress(processed: int, total: int, status: str) -> None:
        console.print(f"  [dim]{processed}%[/dim] {status}")

    try:
        report = extract_questions(document.text, pattern=pattern, on_progress=on_progress)
    except QuestionExtractionError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    for warning in report.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")
    if not report.questions:
        console.print("[yellow]⚠ Nenhuma questão encontrada no documento[/yellow]")
        raise typer.Exit(code=1)

    _print_questions(report.questions)

    if not (discipline and subject and lote):
        console.print("[dim]Informe --discipline, --subject e --lote para salvar.[/dim]")
        return

    if academic_repository.get_item("subject", subject) is None:
        console.print(f"[red]✗ Assunto não encontrado: {subject}[/red]")
        raise typer.Exit(code=1)

    try:
        result = save_questions(report.questions, discipline, subject, lote)
    except BatchSaveError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ {result.message}[/green]")


@app.command(name="generate-path")
def generate_path(
    request: str = typer.Argument(..., help="Descrição da trilha desejada"),
    student: str | None = typer.Option(None, "--student", help="ID do aluno atribuído"),
) -> None:
    """Generate and store a learning path with AI."""
    console.print("[blue]Gerando trilha de aprendizagem...[/blue]")
    try:
        path = generate_learning_path(request, student_id=student)
    except (ValueError, LearningPathError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {path.title}[/green]")
    if path.duration:
        console.print(f"  [dim]duração:[/dim] {path.duration}")
    if path.target_audience:
        console.print(f"  [dim]público:[/dim] {path.target_audience}")
    for step in path.steps:
        console.print(f"  {step.step}. [bold]{step.title}[/bold] {step.description}")


@app.command(name="classbuild-check")
def classbuild_check() -> None:
    """Test the configured Classbuild credentials."""
    result = ClassbuildClient().check_connection()
    if result.success:
        console.print(f"[green]✓ {result.message}[/green]")
    else:
        console.print(f"[red]✗ {result.message}[/red]")
        raise typer.Exit(code=1)


@app.command(name="classbuild-export")
def classbuild_export(
    lote: str = typer.Argument(..., help="Lote de questões a enviar"),
    discipline_name: str = typer.Option(..., "--discipline", help="Disciplina no Classbuild"),
    subject_name: str = typer.Option(..., "--subject", help="Assunto no Classbuild"),
    discipline_id: str | None = typer.Option(
        None, "--discipline-id", help="ID existente da disciplina (não cria)"
    ),
    subject_id: str | None = typer.Option(
        None, "--subject-id", help="ID existente do assunto (não cria)"
    ),
) -> None:
    """Send a stored batch of questions to Classbuild."""
    # SQLite treats a negative LIMIT as unbounded
    questions = questions_repository.list_questions(
        questions_repository.QuestionFilter(lote=lote, limit=-1)
    )
    if not questions:
        console.print(f"[yellow]⚠ Nenhuma questão no lote '{lote}'[/yellow]")
        raise typer.Exit(code=1)

    client = ClassbuildClient()
    try:
        discipline = (
            RemoteItem(discipline_id, discipline_name)
            if discipline_id
            else client.create_discipline(discipline_name)
        )
        subject = (
            RemoteItem(subject_id, subject_name)
            if subject_id
            else client.create_subject(subject_name, discipline.id)
        )
    except ClassbuildError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[blue]Enviando {len(questions)} questões...[/blue]")
    report = client.send_questions(
        questions,
        discipline,
        subject,
        on_progress=lambda r: console.print(
            f"  [dim]{r.success_count + r.error_count}/{r.total}[/dim]"
        ),
    )
    console.print(f"[green]✓ {report.success_count} enviadas[/green]")
    for err in report.errors:
        console.print(f"[red]✗ Questão {err.question_id}: {err.message}[/red]")
    if report.error_count:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface de escuta"),
    port: int = typer.Option(8000, "--port", help="Porta HTTP"),
    reload: bool = typer.Option(False, "--reload", help="Recarregar ao editar código"),
) -> None:
    """Run the web API with uvicorn."""
    import uvicorn

    uvicorn.run("eduportal.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
