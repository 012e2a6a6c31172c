"""
Shared plumbing of every MWS operation class.

An operation object keeps its request parameters in ``options``; setters
fill them in, a ``fetch_*``/``create_*`` coroutine signs them, POSTs them
to the section endpoint and maps the ``<Action>Result`` element into plain
dicts. In mock mode responses are read from files in ``mock_dir`` instead.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import aiohttp

from mws_sdk.amazon.constants import ThrottleQuota
from mws_sdk.amazon.parsing import child, parse_xml, text
from mws_sdk.amazon.signing import (
    SIGNATURE_METHOD,
    SIGNATURE_VERSION,
    TIME_FORMAT,
    get_timestamp,
    sign_query,
)
from mws_sdk.amazon.throttle import throttle_registry
from mws_sdk.errors import InvalidParameterError, MwsConfigError, MwsParseError
from mws_sdk.logging import configure_logging, get_logger
from mws_sdk.settings import MwsSettings, get_mws_settings

MockEntry = Union[str, int]
Response = Dict[str, Any]
TimeInput = Union[datetime, timedelta, str, int, float, None]

USER_AGENT = "mws-sdk/0.1.0 (Language=Python)"


def gen_time(value: TimeInput = None) -> str:
    """
    Format a moment as the ISO-8601 UTC string MWS expects.

    Args:
        value: ``None`` for now, a ``timedelta`` offset from now, a datetime
            (naive values are taken as UTC), a Unix timestamp or an ISO-8601
            string

    Returns:
        ``YYYY-MM-DDTHH:MM:SSZ``

    Raises:
        InvalidParameterError: If a string cannot be parsed as a date
    """
    now = datetime.now(timezone.utc)
    if value is None:
        moment = now
    elif isinstance(value, timedelta):
        moment = now + value
    elif isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif isinstance(value, bool):
        raise InvalidParameterError(f"Cannot convert {value!r} to a time")
    elif isinstance(value, (int, float)):
        moment = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidParameterError(f"Invalid ISO 8601 time: {value!r}") from exc
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
    else:
        raise InvalidParameterError(f"Cannot convert {value!r} to a time")
    return moment.astimezone(timezone.utc).strftime(TIME_FORMAT)


def parse_time(value: str) -> datetime:
    """Inverse of ``gen_time`` for strings produced by it."""
    return datetime.strptime(value, TIME_FORMAT).replace(tzinfo=timezone.utc)


def decode_body(body: Union[str, bytes, None], charset: Optional[str] = None) -> str:
    """
    Decode a response body for parsing or logging.

    Bytes that do not fit ``charset`` (UTF-8 when unknown) are replaced, so a
    flat file in a marketplace encoding never raises here.
    """
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class AmazonCore:
    """
    Base class for one MWS section.

    Subclasses set ``url_branch``, ``version`` and a default throttle group;
    individual operations switch the group with ``_set_throttle`` before
    sending, since MWS meters each action separately.
    """

    url_branch = ""
    version = ""
    seller_param = "SellerId"
    throttle_group = ""
    throttle_limit = 1
    throttle_time = 1.0

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        self.settings = settings or get_mws_settings()
        self.store = self.settings.store
        self.service = self.settings.service
        self.logger = get_logger(type(self).__module__)
        configure_logging(self.service)

        missing = self.store.missing_credentials()
        if missing:
            raise MwsConfigError(f"Missing store credentials: {', '.join(missing)}")

        self.options: Dict[str, str] = {}
        if self.version:
            self.options["Version"] = self.version

        self.mock_mode = False
        self.mock_files: List[MockEntry] = []
        self.mock_index = 0
        self.set_mock(mock, mock_files)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log(self, message: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self.service.mute_log:
            return
        self.logger.log(level, message, **kwargs)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    @property
    def endpoint(self) -> str:
        return self.service.service_url.rstrip("/") + "/" + self.url_branch

    def get_options(self) -> Dict[str, str]:
        return dict(self.options)

    def _set_throttle(self, quota: ThrottleQuota, group: str) -> None:
        self.throttle_limit = quota.limit
        self.throttle_time = quota.restore_seconds
        self.throttle_group = group

    def _remove_options(self, prefix: str) -> None:
        """Drop every option whose name starts with ``prefix``."""
        for key in [k for k in self.options if k.startswith(prefix)]:
            del self.options[key]

    def _set_list(self, prefix: str, values: Iterable[Any]) -> None:
        """
        Replace an enumerated parameter: ``prefix.1``, ``prefix.2``, ...
        """
        self._remove_options(prefix + ".")
        for num, value in enumerate(values, start=1):
            self.options[f"{prefix}.{num}"] = str(value)

    def _keep_options(self, *keys: str) -> None:
        self.options = {k: v for k, v in self.options.items() if k in keys}

    def gen_time(self, value: TimeInput = None) -> str:
        return gen_time(value)

    def gen_query(self) -> str:
        """Return the signed query string for the current options."""
        params = {k: v for k, v in self.options.items() if v not in (None, "")}
        params["AWSAccessKeyId"] = self.store.key_id
        params[self.seller_param] = self.store.merchant_id
        params["SignatureMethod"] = SIGNATURE_METHOD
        params["SignatureVersion"] = SIGNATURE_VERSION
        params["Timestamp"] = get_timestamp()
        if self.store.mws_auth_token:
            params["MWSAuthToken"] = self.store.mws_auth_token
        return sign_query(params, self.store.secret_key, self.endpoint)

    # ------------------------------------------------------------------
    # Mock mode
    # ------------------------------------------------------------------

    def set_mock(
        self,
        enabled: bool = True,
        files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        """
        Toggle mock mode and optionally set the fixtures to replay.

        An integer entry replays a bare response with that HTTP status.
        """
        if not isinstance(enabled, bool):
            raise InvalidParameterError("Mock mode must be True or False")
        self.mock_mode = enabled
        if files is None:
            return
        if isinstance(files, (str, int)):
            self.mock_files = [files]
            self.log(f"Single Mock File set: {files}")
        else:
            self.mock_files = list(files)
            self.log("Mock files array set.")
        self.mock_index = 0

    def reset_mock(self, mock_off: bool = False) -> None:
        self.mock_files = []
        self.mock_index = 0
        if mock_off:
            self.mock_mode = False

    def _next_mock_entry(self) -> MockEntry:
        entry = self.mock_files[self.mock_index]
        self.mock_index = (self.mock_index + 1) % len(self.mock_files)
        return entry

    def fetch_mock_file(self, parse: bool = True) -> Union[Dict[str, Any], str, None]:
        """
        Read the next mock fixture.

        Args:
            parse: Return the parsed root element instead of the raw text

        Returns:
            The fixture contents, or None when it cannot be read
        """
        if not self.mock_files:
            self.log("Attempted to retrieve mock files, but no mock files present", logging.WARNING)
            return None
        entry = self._next_mock_entry()
        if isinstance(entry, int):
            self.log(f"Expected a mock file, got response code {entry}", logging.WARNING)
            return None

        body = self._read_mock_file(entry)
        if body is None:
            return None
        if not parse:
            return decode_body(body)
        try:
            return parse_xml(body)
        except MwsParseError as exc:
            self.log(f"Mock file {entry} is not valid XML: {exc}", logging.ERROR)
            return None

    def _read_mock_file(self, entry: str) -> Optional[bytes]:
        mock_dir = Path(self.service.mock_dir)
        path = mock_dir / entry
        if not path.is_file():
            self.log(f"Mock file not found: {path}", logging.ERROR)
            return None
        body = path.read_bytes()
        self.log(f"Fetched Mock File: {mock_dir.name}/{entry}")
        return body

    def fetch_mock_response(self) -> Optional[Response]:
        """Build a response record from the next mock entry."""
        if not self.mock_files:
            self.log("Attempted to retrieve mock responses, but no mock files present", logging.WARNING)
            return None
        entry = self.mock_files[self.mock_index]
        if isinstance(entry, int):
            self._next_mock_entry()
            self.log(f"Returning Mock Response: {entry}")
            return {"code": entry, "body": b"", "headers": {}, "charset": None, "error": f"Mock response {entry}"}
        body = self._read_mock_file(self._next_mock_entry())
        if body is None:
            return None
        return {"code": 200, "body": body, "headers": {}, "charset": None, "error": ""}

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        delay = throttle_registry.reserve(
            self.store.merchant_id,
            self.throttle_group or type(self).__name__,
            self.throttle_limit,
            self.throttle_time,
        )
        if delay > 0:
            self.log(f"[THROTTLE] {self.throttle_group} quota spent, waiting {delay:.1f}s", logging.WARNING)
            await asyncio.sleep(delay)

    async def _post(self, url: str, query: str) -> Response:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
            "User-Agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=self.service.request_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, data=query, headers=headers) as response:
                    body = await response.read()
                    return {
                        "code": response.status,
                        "body": body,
                        "headers": dict(response.headers),
                        "charset": response.charset,
                        "error": "",
                    }
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self.log(f"[HTTP] Request to {url} failed: {exc}", logging.ERROR, exc_info=True)
            return {"code": 0, "body": b"", "headers": {}, "charset": None, "error": str(exc) or type(exc).__name__}

    @staticmethod
    def response_text(response: Response) -> str:
        return decode_body(response.get("body"), response.get("charset"))

    def _is_throttled(self, response: Response) -> bool:
        return response.get("code") == 503 and "RequestThrottled" in self.response_text(response)

    async def send_request(self, url: str, query: Optional[str] = None) -> Response:
        """
        POST a signed query, waiting on the throttle group first.

        Throttled responses are retried after the group's restore time unless
        ``throttle_stop`` is set or ``max_throttle_retries`` is exhausted.

        Args:
            url: Section endpoint
            query: Signed query to send as-is; when omitted the query is
                signed again from ``options`` for every attempt so retries
                carry a fresh Timestamp
        """
        action = self.options.get("Action", "request")
        retries = 0
        while True:
            await self._throttle()
            response = await self._post(url, query if query is not None else self.gen_query())
            if not self._is_throttled(response):
                return response
            if self.service.throttle_stop:
                self.log(f"[THROTTLE] {action} was throttled, not retrying", logging.WARNING)
                return response
            if retries >= self.service.max_throttle_retries:
                self.log(f"[THROTTLE] {action} still throttled after {retries} retries", logging.ERROR)
                return response
            retries += 1
            self.log(
                f"[THROTTLE] {action} was throttled, retrying in {self.throttle_time}s "
                f"({retries}/{self.service.max_throttle_retries})",
                logging.WARNING,
            )
            await asyncio.sleep(self.throttle_time)

    def _error_details(self, body: str) -> str:
        if not body:
            return ""
        try:
            error = child(parse_xml(body), "Error")
        except MwsParseError:
            return body[:200]
        if error is None:
            return ""
        return f"{text(error, 'Type')} - {text(error, 'Code')} - {text(error, 'Message')}"

    def check_response(self, response: Optional[Response]) -> bool:
        """Return True for a 200 response; log anything else."""
        if response is None:
            self.log("No response found", logging.WARNING)
            return False
        code = response.get("code")
        if code == 200:
            return True
        message = f"Bad Response! {code}"
        if response.get("error"):
            message += f" {response['error']}"
        details = self._error_details(self.response_text(response))
        if details:
            message += f": {details}"
        self.log(message, logging.ERROR)
        return False

    async def _fetch_response(self) -> Optional[Response]:
        if self.mock_mode:
            response = self.fetch_mock_response()
        else:
            response = await self.send_request(self.endpoint)
        if not self.check_response(response):
            return None
        return response

    async def _fetch_result(self) -> Optional[Dict[str, Any]]:
        """
        Send the current options and return the ``<Action>Result`` element.

        Returns:
            The result element (empty dict when it has no content), or None
            when the request failed
        """
        action = self.options.get("Action", "")
        response = await self._fetch_response()
        if response is None:
            return None
        try:
            root = parse_xml(self.response_text(response))
        except MwsParseError as exc:
            self.log(f"Could not parse {action} response: {exc}", logging.ERROR)
            return None
        result = child(root, f"{action}Result")
        return result if isinstance(result, dict) else {}

    async def _fetch_raw(self) -> Optional[Response]:
        """Send the current options and return the response with its body left undecoded."""
        return await self._fetch_response()


class TokenPagination:
    """Continuation-token bookkeeping for list operations built on ``AmazonCore``."""

    token_flag = False
    use_token = False

    def has_token(self) -> bool:
        return self.token_flag

    def set_use_token(self, flag: bool = True) -> None:
        """Follow continuation tokens automatically when fetching."""
        if not isinstance(flag, bool):
            raise InvalidParameterError("Token use must be True or False")
        self.use_token = flag

    def _following_token(self) -> bool:
        return self.token_flag and self.use_token

    def _check_token(self, result: Optional[Dict[str, Any]]) -> None:
        token = text(result, "NextToken")
        if token and text(result, "HasNext").lower() != "false":
            self.options["NextToken"] = token
            self.token_flag = True
        else:
            self.options.pop("NextToken", None)
            self.token_flag = False


def as_str_list(values: Union[str, Sequence[Any]], what: str) -> List[str]:
    """Accept one value or a non-empty list of values for an enumerated filter."""
    if isinstance(values, str) and values:
        return [values]
    if isinstance(values, (list, tuple)) and values:
        return [str(v) for v in values]
    raise InvalidParameterError(f"Invalid {what} filter: {values!r}")
