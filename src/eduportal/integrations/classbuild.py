"""Client for the Classbuild school-management API.

Questions are exported one request at a time, with a fixed pause before
each call. A failing question is recorded in the report and the loop goes
on with the next one.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable

import requests
import structlog

from eduportal.config.app_config import ClassbuildConfig, load_app_config
from eduportal.db.questions_repository import Question

logger = structlog.get_logger(__name__)


class ClassbuildError(Exception):
    """Classbuild request failed."""

    pass


@dataclass
class ClassbuildSettings:
    """Credentials and target ids."""

    api_key: str
    escola_id: str
    banco_questao_id: str
    base_url: str = "http://localhost:8080/proxy"
    timezone_offset: str = "-3"
    timeout: int = 30

    @classmethod
    def from_config(cls, config: ClassbuildConfig | None = None) -> ClassbuildSettings:
        config = config or load_app_config().classbuild
        return cls(
            api_key=config.get_api_key(),
            escola_id=config.escola_id,
            banco_questao_id=config.banco_questao_id,
            base_url=config.proxy_base_url,
            timezone_offset=config.timezone_offset,
            timeout=config.timeout,
        )


@dataclass
class RemoteItem:
    """Discipline or subject created on Classbuild."""

    id: str
    descricao: str


@dataclass
class SendError:
    question_id: int
    message: str


@dataclass
class SendReport:
    total: int
    success_count: int = 0
    error_count: int = 0
    errors: list[SendError] = field(default_factory=list)


@dataclass
class ConnectionCheck:
    success: bool
    message: str


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return str(data.get("detail") or data.get("message") or response.text)
    return response.text


def format_question(
    question: Question, discipline: RemoteItem, subject: RemoteItem, year: int | None = None
) -> dict[str, Any]:
    """Question payload in the shape Classbuild expects."""
    return {
        "enunciado": question.statement,
        "resolucao": question.resolution or None,
        "dica": question.hint or None,
        "alternativaLetraCorreta": question.correct,
        "disciplina": {"id": discipline.id},
        "assuntos": [{"id": subject.id}],
        "alternativas": [
            {"alternativaLetra": c.letter, "texto": c.text} for c in question.choices
        ],
        "ano": str(year or date.today().year),
        "classeDescricao": "Concurso",
        "banca": "Gerado por IA",
        "orgao": "N/A",
        "prova": None,
        "nivelQuestao": "MEDIO",
        "tipoQuestao": "OBJETIVA_MULTIPLA_ESCOLHA",
        "dificuldadeQuestao": "MEDIO",
    }


class ClassbuildClient:
    """Thin wrapper over the Classbuild REST endpoints."""

    def __init__(
        self,
        settings: ClassbuildSettings | None = None,
        session: requests.Session | None = None,
        throttle_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or ClassbuildSettings.from_config()
        self._session = session or requests.Session()
        self.throttle_seconds = (
            load_app_config().classbuild.throttle_seconds
            if throttle_seconds is None
            else throttle_seconds
        )
        self._sleep = sleep

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
            "client-timezone-offset": self.settings.timezone_offset,
        }

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}{path}"

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST and decode the JSON body ({} when empty).

        Raises:
            ClassbuildError: Network failure or non-2xx status
        """
        try:
            response = self._session.post(
                self._url(path),
                json=payload,
                headers=self._headers(),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise ClassbuildError(f"Erro de rede: {e}") from e

        if not response.ok:
            raise ClassbuildError(
                f"API Error ({response.status_code}): {response.reason}. "
                f"Detalhes: {_error_detail(response)}"
            )
        if not response.text:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ClassbuildError(f"Resposta inválida da API: {response.text[:200]}") from e

    def check_connection(self) -> ConnectionCheck:
        """Check access by fetching the disciplines listing with limit=1."""
        url = self._url(f"/api/v1/escolas/{self.settings.escola_id}/disciplinas")
        try:
            response = self._session.get(
                url,
                params={"format": "json", "limit": 1},
                headers=self._headers(),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            logger.warning("classbuild.connection_failed", error=str(e))
            return ConnectionCheck(False, f"Erro de rede: {e}")

        if response.ok:
            return ConnectionCheck(True, "Conexão bem-sucedida!")
        try:
            data = response.json()
            detail = data.get("detail") or data.get("message") or response.reason
        except (ValueError, AttributeError):
            detail = response.reason
        return ConnectionCheck(False, f"Falha na conexão ({response.status_code}): {detail}")

    def _create(self, path: str, payload: dict[str, Any], what: str) -> RemoteItem:
        try:
            data = self._post(path, payload)
        except ClassbuildError as e:
            raise ClassbuildError(f"Falha ao criar {what}: {e}") from e
        if not data.get("id") or not data.get("descricao"):
            raise ClassbuildError(
                f"Falha ao criar {what}: A API retornou uma resposta malformada ao criar {what}."
            )
        return RemoteItem(id=str(data["id"]), descricao=data["descricao"])

    def create_discipline(self, descricao: str) -> RemoteItem:
        return self._create(
            f"/api/v1/escolas/{self.settings.escola_id}/disciplinas?format=json",
            {"descricao": descricao},
            "disciplina",
        )

    def create_subject(self, descricao: str, discipline_id: str) -> RemoteItem:
        return self._create(
            f"/api/v1/disciplinas/{discipline_id}/assuntos?format=json",
            {"descricao": descricao, "disciplina": {"id": discipline_id}},
            "assunto",
        )

    def send_questions(
        self,
        questions: list[Question],
        discipline: RemoteItem,
        subject: RemoteItem,
        on_progress: Callable[[SendReport], None] | None = None,
    ) -> SendReport:
        """Send questions one by one; failures are reported, never raised."""
        report = SendReport(total=len(questions))
        path = (
            f"/api/v1/bancos-questao/interna/{self.settings.banco_questao_id}/questao?format=json"
        )

        for question in questions:
            self._sleep(self.throttle_seconds)
            try:
                self._post(path, format_question(question, discipline, subject))
                report.success_count += 1
            except ClassbuildError as e:
                report.error_count += 1
                report.errors.append(SendError(question_id=question.id, message=str(e)))
                logger.warning("classbuild.question_failed", question_id=question.id, error=str(e))
            if on_progress:
                on_progress(report)

        logger.info(
            "classbuild.sent",
            total=report.total,
            success=report.success_count,
            errors=report.error_count,
        )
        return report
