"""
Reports section: report requests, report downloads and report schedules.
"""
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from mws_sdk.amazon import constants
from mws_sdk.amazon.core import (
    MockEntry,
    TimeInput,
    TokenPagination,
    as_str_list,
    decode_body,
    gen_time,
    parse_time,
)
from mws_sdk.amazon.parsing import child, children, text
from mws_sdk.amazon.sections import ReportsCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

REQUEST_INFO_FIELDS = (
    "ReportRequestId",
    "ReportType",
    "StartDate",
    "EndDate",
    "Scheduled",
    "SubmittedDate",
    "ReportProcessingStatus",
)


class ReportRequest(ReportsCore):
    """Asks MWS to generate a report with ``RequestReport``."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.response: Optional[Dict[str, str]] = None
        self.options["Action"] = "RequestReport"
        self._set_throttle(constants.THROTTLE_REPORT_REQUEST, "RequestReport")

    def set_report_type(self, report_type: str) -> None:
        if not isinstance(report_type, str) or not report_type:
            raise InvalidParameterError("Report type must be a non-empty string")
        self.options["ReportType"] = report_type

    def set_time_limits(self, start: TimeInput = None, end: TimeInput = None) -> None:
        """
        Set the report's date range. A start after the end is moved to one
        second before the end.
        """
        if start is not None:
            self.options["StartDate"] = gen_time(start)
        if end is not None:
            self.options["EndDate"] = gen_time(end)
        if (
            "StartDate" in self.options
            and "EndDate" in self.options
            and self.options["StartDate"] > self.options["EndDate"]
        ):
            self.options["StartDate"] = gen_time(parse_time(self.options["EndDate"]) - timedelta(seconds=1))

    def reset_time_limits(self) -> None:
        self.options.pop("StartDate", None)
        self.options.pop("EndDate", None)

    def set_show_sales_channel(self, show: Union[bool, str]) -> None:
        if show is True or show == "true":
            self.options["ReportOptions"] = "ShowSalesChannel=true"
        elif show is False or show == "false":
            self.options["ReportOptions"] = "ShowSalesChannel=false"
        else:
            raise InvalidParameterError("ShowSalesChannel must be a boolean")

    def set_marketplaces(self, marketplaces: Union[str, Sequence[str]]) -> None:
        self._set_list("MarketplaceIdList.Id", as_str_list(marketplaces, "marketplace"))

    def reset_marketplaces(self) -> None:
        self._remove_options("MarketplaceIdList.")

    async def request_report(self) -> bool:
        if "ReportType" not in self.options:
            self.log("Report Type must be set in order to request a report!", logging.WARNING)
            return False
        result = await self._fetch_result()
        if result is None:
            return False
        info = child(result, "ReportRequestInfo")
        if info is None:
            self.log("[REPORTS] RequestReport returned no request info", logging.WARNING)
            return False
        self.response = {field: text(info, field) for field in REQUEST_INFO_FIELDS}
        return True

    @property
    def report_request_id(self) -> Optional[str]:
        return self.response["ReportRequestId"] if self.response else None

    @property
    def status(self) -> Optional[str]:
        return self.response["ReportProcessingStatus"] if self.response else None


class Report(ReportsCore):
    """
    Downloads a finished report with ``GetReport``.

    Flat files come in the marketplace's own encoding (cp1252 in Europe,
    Shift_JIS in Japan), so the body is kept as bytes and written back
    unchanged; ``get_text`` decodes it for reading.
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        report_id: Optional[Union[str, int]] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.raw_report: Optional[bytes] = None
        self.charset: Optional[str] = None
        if report_id is not None:
            self.set_report_id(report_id)
        self.options["Action"] = "GetReport"
        self._set_throttle(constants.THROTTLE_REPORT, "GetReport")

    def set_report_id(self, report_id: Union[str, int]) -> None:
        if isinstance(report_id, bool) or not str(report_id).isdigit():
            raise InvalidParameterError(f"Report ID must be numeric, got {report_id!r}")
        self.options["ReportId"] = str(report_id)

    async def fetch_report(self) -> bool:
        if "ReportId" not in self.options:
            self.log("Report ID must be set in order to fetch it!", logging.WARNING)
            return False
        response = await self._fetch_raw()
        if response is None:
            return False
        self.raw_report = response["body"]
        self.charset = response.get("charset")
        return True

    def get_text(self, encoding: Optional[str] = None) -> Optional[str]:
        """Decode the report with ``encoding``, the response charset, or UTF-8."""
        if self.raw_report is None:
            return None
        return decode_body(self.raw_report, encoding or self.charset)

    def save_report(self, path: Union[str, Path]) -> bool:
        if self.raw_report is None:
            return False
        report_id = self.options.get("ReportId")
        try:
            Path(path).write_bytes(self.raw_report)
        except OSError as exc:
            self.log(f"Unable to save report #{report_id} at {path}: {exc}", logging.ERROR, exc_info=True)
            return False
        self.log(f"Successfully saved report #{report_id} at {path}")
        return True


class ReportScheduleList(TokenPagination, ReportsCore):
    """Scheduled reports, listed with ``GetReportScheduleList`` or counted."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.schedule_list: Optional[List[Dict[str, str]]] = None
        self.count: Optional[str] = None
        self._set_throttle(constants.THROTTLE_REPORT_SCHEDULE, "GetReportScheduleList")

    def set_report_types(self, report_types: Union[str, Sequence[str]]) -> None:
        self._set_list("ReportTypeList.Type", as_str_list(report_types, "report type"))

    def reset_report_types(self) -> None:
        self._remove_options("ReportTypeList.")

    def _prepare_token(self) -> None:
        if self._following_token():
            self.options["Action"] = "GetReportScheduleListByNextToken"
            self._set_throttle(constants.THROTTLE_REPORT_TOKEN, "GetReportScheduleListByNextToken")
            self.reset_report_types()
        else:
            self.options["Action"] = "GetReportScheduleList"
            self._set_throttle(constants.THROTTLE_REPORT_SCHEDULE, "GetReportScheduleList")
            self.options.pop("NextToken", None)
            self.schedule_list = []

    async def fetch_report_list(self, follow: bool = True) -> bool:
        self._prepare_token()
        result = await self._fetch_result()
        if result is None:
            return False
        for node in children(result, "ReportSchedule"):
            self.schedule_list.append(
                {
                    "ReportType": text(node, "ReportType"),
                    "Schedule": text(node, "Schedule"),
                    "ScheduledDate": text(node, "ScheduledDate"),
                }
            )
        self._check_token(result)

        if follow and self._following_token():
            while self.token_flag:
                self.log("Recursively fetching more Report Schedules")
                if not await self.fetch_report_list(follow=False):
                    return False
        return True

    async def fetch_count(self) -> bool:
        self.options["Action"] = "GetReportScheduleCount"
        self._set_throttle(constants.THROTTLE_REPORT_SCHEDULE, "GetReportScheduleCount")
        self.options.pop("NextToken", None)
        result = await self._fetch_result()
        if result is None:
            return False
        self.count = text(result, "Count")
        return True

    def _field(self, index: int, field: str) -> Optional[str]:
        if not self.schedule_list or not 0 <= index < len(self.schedule_list):
            return None
        return self.schedule_list[index][field]

    def get_report_type(self, index: int = 0) -> Optional[str]:
        return self._field(index, "ReportType")

    def get_schedule(self, index: int = 0) -> Optional[str]:
        return self._field(index, "Schedule")

    def get_scheduled_date(self, index: int = 0) -> Optional[str]:
        return self._field(index, "ScheduledDate")

    def get_list(self, index: Optional[int] = None) -> Any:
        """The whole schedule list, or one entry when ``index`` is given."""
        if self.schedule_list is None:
            return None
        if index is None:
            return self.schedule_list
        return self.schedule_list[index]

    def get_count(self) -> Optional[str]:
        return self.count

    def __iter__(self) -> Iterator[Dict[str, str]]:
        return iter(self.schedule_list or [])

    def __len__(self) -> int:
        return len(self.schedule_list or [])
