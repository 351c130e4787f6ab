"""HTTP client for the assessment API.

Every request carries a correlation id (``X-Request-ID``) and a client
timestamp (``X-Timestamp``). Transport failures, timeouts and 5xx responses
are retried with exponential backoff; 4xx responses are terminal.
"""

import base64
import itertools
import logging
import mimetypes
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx

from ..config import MAX_FILE_SIZE, SUPPORTED_FILE_TYPES, ClientConfig
from ..schemas import FileUploadResponse, Question, SaveResponseRequest
from .errors import FileUploadError, NetworkError

logger = logging.getLogger(__name__)

FileSource = str | Path | bytes


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail", body.get("error"))
        if isinstance(detail, dict):
            return str(detail.get("message") or f"Request failed with status {response.status_code}"), detail
        if detail:
            return str(detail), detail
    text = response.text.strip()
    return text or f"HTTP {response.status_code}: {response.reason_phrase}", body


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        max_file_size: int = MAX_FILE_SIZE,
        allowed_file_types: Iterable[str] = SUPPORTED_FILE_TYPES,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.max_file_size = max_file_size
        self.allowed_file_types = set(allowed_file_types)
        self._sleep = sleep
        self._counter = itertools.count(1)
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        logger.info("[api] client initialized base_url=%s timeout=%ss retries=%d", self.base_url, timeout, retry_attempts)

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "ApiClient":
        return cls(
            config.api_url,
            timeout=config.timeout,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
            max_file_size=int(config.feature_flags.get("max_file_size") or MAX_FILE_SIZE),
            **kwargs,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request_id(self) -> str:
        return f"req-{int(time.time() * 1000)}-{next(self._counter)}"

    def _request(self, method: str, path: str, *, json: Any = None, allow_not_found: bool = False) -> httpx.Response:
        request_id = self._request_id()
        attempt = 0
        while True:
            headers = {
                "Content-Type": "application/json",
                "X-Request-ID": request_id,
                "X-Timestamp": datetime.now(timezone.utc).isoformat(),
            }
            logger.debug("[api] [%s] %s %s (attempt %d)", request_id, method, path, attempt + 1)
            try:
                response = self._http.request(method, path, json=json, headers=headers)
            except httpx.TimeoutException:
                error = NetworkError(f"Request timed out after {self.timeout}s", retryable=True)
            except httpx.TransportError as exc:
                error = NetworkError(f"Network error: {exc}", retryable=True)
            else:
                if response.status_code < 400 or (allow_not_found and response.status_code == 404):
                    return response
                message, detail = _error_message(response)
                error = NetworkError(
                    message,
                    status_code=response.status_code,
                    retryable=response.status_code >= 500,
                    detail=detail,
                )

            if not error.retryable or attempt >= self.retry_attempts:
                logger.error("[api] [%s] %s %s failed: %s", request_id, method, path, error)
                raise error
            delay = self.retry_delay * (2 ** attempt)
            attempt += 1
            logger.warning("[api] [%s] retrying (%d/%d) in %.2fs: %s", request_id, attempt, self.retry_attempts, delay, error)
            self._sleep(delay)

    def get_questions(self, assessment_type: str) -> list[Question]:
        data = self._request("GET", f"/questions/{assessment_type}").json()
        raw = data.get("questions") if isinstance(data, dict) else data
        if not isinstance(raw, list):
            raise NetworkError("Invalid questions format received from server")
        questions = [Question.model_validate(q) for q in raw]
        logger.info("[api] loaded %d %s questions", len(questions), assessment_type)
        return questions

    def save_responses(self, request: SaveResponseRequest) -> dict[str, Any]:
        response = self._request("POST", "/responses", json=request.to_wire())
        return response.json()

    def get_responses(self, assessment_type: str, company_id: str, employee_id: str | None = None) -> dict[str, Any] | None:
        path = f"/responses/{assessment_type}/{company_id}"
        if assessment_type == "Employee" and employee_id:
            path += f"/{employee_id}"
        response = self._request("GET", path, allow_not_found=True)
        if response.status_code == 404:
            return None
        return response.json()

    def validate_file(
        self,
        file_name: str,
        size: int,
        content_type: str,
        *,
        file_types: Iterable[str] | None = None,
        max_size: int | None = None,
    ) -> None:
        """Reject a file before it is read or sent.

        ``file_types`` and ``max_size`` narrow the client-wide limits for a
        single question.
        """
        limit = self.max_file_size if max_size is None else min(max_size, self.max_file_size)
        if size > limit:
            raise FileUploadError(
                f"File size ({size / 1024 / 1024:.1f}MB) exceeds maximum allowed size ({limit / 1024 / 1024:g}MB)",
                file_name=file_name,
            )
        if content_type not in self.allowed_file_types:
            raise FileUploadError(f"File type '{content_type}' is not allowed", file_name=file_name)
        accepted = list(file_types or ())
        if accepted and content_type not in accepted:
            raise FileUploadError(
                f"{file_name} is not an accepted file type. Accepted types: {', '.join(accepted)}",
                file_name=file_name,
            )

    def upload_file(
        self,
        company_id: str,
        question_id: str,
        source: FileSource,
        *,
        file_name: str | None = None,
        content_type: str | None = None,
        assessment_type: str | None = None,
        file_types: Iterable[str] | None = None,
        max_size: int | None = None,
    ) -> FileUploadResponse:
        if isinstance(source, bytes):
            if not file_name:
                raise FileUploadError("file_name is required when uploading raw bytes")
            name, size = file_name, len(source)
        else:
            path = Path(source)
            name, size = file_name or path.name, path.stat().st_size
        content_type = content_type or mimetypes.guess_type(name)[0] or "application/octet-stream"

        # Checks run before the file is read or anything is sent.
        self.validate_file(name, size, content_type, file_types=file_types, max_size=max_size)
        data = source if isinstance(source, bytes) else Path(source).read_bytes()

        logger.info("[api] uploading %s (%dKB) for %s", name, round(size / 1024), question_id)
        payload = {
            "companyId": company_id,
            "questionId": question_id,
            "fileName": name,
            "fileContent": base64.b64encode(data).decode("ascii"),
            "contentType": content_type,
        }
        if assessment_type:
            payload["assessmentType"] = assessment_type
        try:
            response = self._request("POST", "/files", json=payload)
        except NetworkError as exc:
            raise FileUploadError(f"Failed to upload file: {exc}", file_name=name) from exc
        uploaded = FileUploadResponse.model_validate(response.json())
        if uploaded.content_type is None:
            uploaded = uploaded.model_copy(update={"content_type": content_type})
        return uploaded

    def upload_files(self, company_id: str, question_id: str, sources: Iterable[FileSource]) -> list[FileUploadResponse]:
        return [self.upload_file(company_id, question_id, source) for source in sources]

    def health_check(self) -> bool:
        for path in ("/health", "/questions/Company"):
            try:
                self._request("GET", path)
                return True
            except NetworkError as exc:
                logger.warning("[api] health check via %s failed: %s", path, exc)
        return False

    def status(self) -> dict[str, Any]:
        return {
            "initialized": True,
            "baseUrl": self.base_url,
            "timeout": self.timeout,
            "retryAttempts": self.retry_attempts,
            "retryDelay": self.retry_delay,
        }
