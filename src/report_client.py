"""
Client for the date-scoped financial report endpoint.

GET /report?date=<ISO date> returns {"report": {...}} on success and
{"message": "..."} on failure.

ReportClient performs the request and raises ReportClientError subclasses;
ReportController tracks loading/error/success state for the dashboard and
ignores responses to requests that have since been superseded.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, List, Optional, Union

import requests

import config

logger = logging.getLogger(__name__)


DEFAULT_ERROR_MESSAGE = "No report found"
NETWORK_ERROR_MESSAGE = "Something went wrong while fetching report."


# ============================================================================
# Errors
# ============================================================================

class ReportClientError(Exception):
    """Base error; `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReportNotFoundError(ReportClientError):
    """Server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ReportFormatError(ReportClientError):
    """Response body did not have the expected report shape."""


class ReportNetworkError(ReportClientError):
    """The request never produced an HTTP response."""


# ============================================================================
# Data Model
# ============================================================================

@dataclass(frozen=True)
class EarningItem:
    id: str
    platform: str
    amount: float


@dataclass(frozen=True)
class ExpenseItem:
    id: str
    type: str
    amount: float


@dataclass(frozen=True)
class Report:
    total_earnings: float
    total_expenses: float
    balance: float
    earnings: List[EarningItem] = field(default_factory=list)
    expenses: List[ExpenseItem] = field(default_factory=list)


def _number(value: Any, name: str) -> float:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReportFormatError(f"Report field '{name}' is not a number")
    if not math.isfinite(value):
        raise ReportFormatError(f"Report field '{name}' is not finite")
    return value


def parse_report(payload: Any) -> Report:
    """
    Validate and convert a raw `report` object.

    Args:
        payload: Decoded JSON value of the `report` field

    Returns:
        Report

    Raises:
        ReportFormatError: If a required field is missing or has the wrong type
    """
    if not isinstance(payload, dict):
        raise ReportFormatError(DEFAULT_ERROR_MESSAGE)

    try:
        earnings = [
            EarningItem(
                id=str(item["_id"]),
                platform=str(item["platform"]),
                amount=_number(item["amount"], "earnings.amount"),
            )
            for item in payload["earnings"]
        ]
        expenses = [
            ExpenseItem(
                id=str(item["_id"]),
                type=str(item["type"]),
                amount=_number(item["amount"], "expenses.amount"),
            )
            for item in payload["expenses"]
        ]
        return Report(
            total_earnings=_number(payload["totalEarnings"], "totalEarnings"),
            total_expenses=_number(payload["totalExpenses"], "totalExpenses"),
            balance=_number(payload["balance"], "balance"),
            earnings=earnings,
            expenses=expenses,
        )
    except (KeyError, TypeError) as e:
        raise ReportFormatError(f"Report is missing field {e}") from e


def normalize_report_date(value: Union[str, date_type]) -> str:
    """Return the ISO date string for a date or ISO string; raise ValueError otherwise."""
    if isinstance(value, date_type):
        return value.isoformat()
    return date_type.fromisoformat(str(value).strip()).isoformat()


# ============================================================================
# HTTP Client
# ============================================================================

class ReportClient:
    """
    Fetches reports from the report API.

    Args:
        base_url: API root, e.g. http://localhost:3000
        timeout: Request timeout in seconds
        session: requests session (created if omitted)
    """

    def __init__(
        self,
        base_url: str = config.REPORT_API_BASE_URL,
        timeout: float = config.REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    @property
    def report_url(self) -> str:
        return f"{self.base_url}{config.REPORT_ENDPOINT}"

    def fetch_report(self, report_date: Union[str, date_type]) -> Report:
        """
        Fetch the report for one date.

        Raises:
            ValueError: If report_date is not a valid ISO date
            ReportNotFoundError: Non-2xx response
            ReportFormatError: 2xx response without a usable report
            ReportNetworkError: Connection failure or timeout
        """
        iso_date = normalize_report_date(report_date)
        logger.info(f"Fetching report for {iso_date}")

        try:
            response = self.session.get(
                self.report_url,
                params={"date": iso_date},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Report request failed: {e}")
            raise ReportNetworkError(NETWORK_ERROR_MESSAGE) from e

        body = self._decode_body(response)
        server_message = body.get("message") if isinstance(body, dict) else None

        if not response.ok:
            message = server_message or DEFAULT_ERROR_MESSAGE
            logger.warning(f"Report request for {iso_date} returned {response.status_code}: {message}")
            raise ReportNotFoundError(message, status_code=response.status_code)

        if not isinstance(body, dict) or "report" not in body:
            logger.error(f"Report response for {iso_date} has no 'report' field")
            raise ReportFormatError(server_message or DEFAULT_ERROR_MESSAGE)

        try:
            report = parse_report(body["report"])
        except ReportFormatError as e:
            logger.error(f"Malformed report for {iso_date}: {e}")
            raise ReportFormatError(server_message or DEFAULT_ERROR_MESSAGE) from e

        logger.info(
            f"✓ Loaded report for {iso_date}: "
            f"{len(report.earnings)} earnings, {len(report.expenses)} expenses"
        )
        return report

    @staticmethod
    def _decode_body(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None


# ============================================================================
# UI State
# ============================================================================

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_ERROR = "error"
STATUS_SUCCESS = "success"


@dataclass
class ReportState:
    status: str = STATUS_IDLE
    message: str = ""
    report: Optional[Report] = None
    request_id: int = 0
    date: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.status == STATUS_LOADING


class ReportController:
    """
    Loading/error/success state for one report form.

    Each begin() supersedes any earlier request; a resolve() or reject()
    carrying an older request id is dropped so a slow stale response can
    never overwrite a newer one.
    """

    def __init__(self, client: Optional[ReportClient] = None):
        self.client = client if client is not None else ReportClient()
        self.state = ReportState()
        self._last_request_id = 0

    def begin(self, report_date: Union[str, date_type]) -> int:
        self._last_request_id += 1
        self.state = ReportState(
            status=STATUS_LOADING,
            request_id=self._last_request_id,
            date=str(report_date),
        )
        return self._last_request_id

    def is_current(self, request_id: int) -> bool:
        return request_id == self._last_request_id

    def resolve(self, request_id: int, report: Report) -> bool:
        if not self.is_current(request_id):
            logger.info(f"Dropping stale report response (request {request_id})")
            return False
        self.state = ReportState(
            status=STATUS_SUCCESS,
            report=report,
            request_id=request_id,
            date=self.state.date,
        )
        return True

    def reject(self, request_id: int, message: str) -> bool:
        if not self.is_current(request_id):
            logger.info(f"Dropping stale report error (request {request_id})")
            return False
        self.state = ReportState(
            status=STATUS_ERROR,
            message=message,
            request_id=request_id,
            date=self.state.date,
        )
        return True

    def load(self, report_date: Union[str, date_type]) -> ReportState:
        """Fetch a report and record the outcome. Returns the resulting state."""
        request_id = self.begin(report_date)
        try:
            report = self.client.fetch_report(report_date)
        except ValueError as e:
            self.reject(request_id, f"Invalid date: {report_date}")
            logger.warning(f"Invalid report date {report_date!r}: {e}")
        except ReportClientError as e:
            self.reject(request_id, e.message)
        else:
            self.resolve(request_id, report)
        return self.state
