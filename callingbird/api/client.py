"""
REST client for the CallingBird backend.

The bearer token is taken from an explicit token provider on every request;
the client holds no global state. Failed requests raise NetworkError and are
never retried.
"""
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

from callingbird.constants import (
    DAY_ORDER,
    DEFAULT_REPLY_STYLE,
    DEFAULT_VOICE_SETTINGS,
    PHONE_NUMBER_LIMIT,
    SETUP_FIELD_ADDRESS,
    SETUP_FIELD_BUSINESS_HOURS,
    SETUP_FIELD_COMPANY_NAME,
    SETUP_FIELD_CONTACT_EMAIL,
    SETUP_FIELD_PHONE_NUMBER,
    SETUP_ISSUE_AUTH,
    SETUP_ISSUE_NETWORK,
    SETUP_ISSUE_UNKNOWN,
)
from callingbird.dto.appointment_parser import (
    appointment_form_to_payload,
    parse_appointment_type,
    parse_appointment_types,
    parse_categories,
)
from callingbird.dto.availability_parser import parse_business_hours
from callingbird.dto.calendar_parser import parse_calendars
from callingbird.dto.call_parser import parse_call_summaries, parse_phone_numbers, parse_transcript
from callingbird.dto.settings_parser import (
    is_valid_reply_style,
    is_valid_voice_settings,
    parse_reply_style,
    parse_voice_settings,
)
from callingbird.dto.staff_parser import parse_staff, parse_staff_list, staff_to_payload
from callingbird.errors import CallingBirdError, DecodeError, NetworkError, ValidationError
from callingbird.helper.business_hours_helper import has_business_hours, hours_from_records, hours_to_records
from callingbird.models.model import (
    AppointmentCategory,
    AppointmentType,
    AppointmentTypeForm,
    BusinessHoursRecord,
    CallSummary,
    CallTranscript,
    CompanySetupStatus,
    GoogleCalendar,
    PhoneNumberEntry,
    ReplyStyle,
    StaffMember,
    VoiceSettings,
    WeeklyAvailability,
)
from callingbird.utils.logging_config import get_api_logger, log_api_request, log_hours_operation

logger = get_api_logger()

_MISSING = object()


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class CallingBirdClient:
    """
    Thin wrapper over the backend REST API.

    Args:
        base_url: Backend base URL, e.g. http://localhost:3002
        token_provider: Object with get_token() returning the bearer token or None
        session: Optional requests.Session to reuse
        timeout: Optional per-request timeout in seconds; None uses the transport default
    """

    def __init__(
        self,
        base_url: str,
        token_provider,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.timeout = timeout

    # ======================================
    # TRANSPORT
    # ======================================

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token_provider.get_token()}",
        }

    def _url(self, path: str, bypass_cache: bool = False) -> str:
        if not bypass_cache:
            return f"{self.base_url}{path}"
        separator = "&" if "?" in path else "?"
        return f"{self.base_url}{path}{separator}t={int(time.time() * 1000)}"

    def _request(
        self,
        method: str,
        path: str,
        body: Any = _MISSING,
        bypass_cache: bool = False,
        params: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        Issue one request and return the response when its status is 2xx.

        Raises:
            NetworkError: on transport failure or a non-2xx status
        """
        kwargs: Dict[str, Any] = {"headers": self._headers(), "timeout": self.timeout}
        if body is not _MISSING:
            kwargs["json"] = body
        if params:
            kwargs["params"] = params

        try:
            response = self.session.request(method, self._url(path, bypass_cache), **kwargs)
        except requests.RequestException as e:
            log_api_request(logger, method, path, None, success=False, error=e)
            raise NetworkError(f"{method} {path} failed: {e}", method=method, path=path) from e

        if not response.ok:
            log_api_request(logger, method, path, response.status_code, success=False)
            raise NetworkError(
                f"{method} {path} returned {response.status_code}",
                status=response.status_code,
                method=method,
                path=path,
            )

        log_api_request(logger, method, path, response.status_code)
        return response

    def _json(self, method: str, path: str, **kwargs) -> Any:
        response = self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"{method} {path} returned a non-JSON body") from e

    # ======================================
    # APPOINTMENT TYPES
    # ======================================

    def get_appointment_types(self) -> List[AppointmentType]:
        return parse_appointment_types(self._json("GET", "/scheduling/appointment-types"))

    def add_appointment_type(self, form: AppointmentTypeForm) -> AppointmentType:
        body = appointment_form_to_payload(form)
        return parse_appointment_type(self._json("POST", "/scheduling/appointment-types", body=body))

    def update_appointment_type(self, form: AppointmentTypeForm) -> AppointmentType:
        body = appointment_form_to_payload(form, include_id=True)
        return parse_appointment_type(self._json("PUT", "/scheduling/appointment-types", body=body))

    def delete_appointment_type(self, appointment_type_id: str) -> None:
        self._request("DELETE", f"/scheduling/appointment-types/{quote(str(appointment_type_id), safe='')}")

    def get_appointment_categories(self) -> List[AppointmentCategory]:
        return parse_categories(self._json("GET", "/scheduling/appointment-categories"))

    # ======================================
    # STAFF
    # ======================================

    def get_staff_members(self) -> List[StaffMember]:
        return parse_staff_list(self._json("GET", "/scheduling/staff-members"))

    def add_staff_member(self, staff: StaffMember) -> StaffMember:
        self._validate_staff(staff)
        body = staff_to_payload(staff)
        return parse_staff(self._json("POST", "/scheduling/staff-members", body=body))

    def update_staff_member(self, staff: StaffMember) -> StaffMember:
        self._validate_staff(staff)
        if not staff.id:
            raise ValidationError("Missing staff member id", field="id")
        body = staff_to_payload(staff, include_id=True)
        return parse_staff(self._json("PUT", "/scheduling/staff-members", body=body))

    def delete_staff_member(self, staff_id: str) -> None:
        self._request("DELETE", f"/scheduling/staff-members/{quote(str(staff_id), safe='')}")

    @staticmethod
    def _validate_staff(staff: StaffMember) -> None:
        if not _non_blank(staff.name):
            raise ValidationError("Staff member name is required", field="name")
        if not _non_blank(staff.role):
            raise ValidationError("Staff member role is required", field="role")

    # ======================================
    # GOOGLE CALENDARS
    # ======================================

    def get_google_calendars(self) -> List[GoogleCalendar]:
        return parse_calendars(self._json("GET", "/google/calendars"))

    # ======================================
    # COMPANY
    # ======================================

    def get_company_details(self) -> Dict[str, Any]:
        return self._json("GET", "/company/details")

    def get_company_contact(self) -> Dict[str, Any]:
        return self._json("GET", "/company/contact")

    def get_company_hours_records(self) -> List[BusinessHoursRecord]:
        return parse_business_hours(self._json("GET", "/company/hours"))

    def get_company_hours(self) -> WeeklyAvailability:
        return hours_from_records(self.get_company_hours_records())

    def save_company_hours(self, week: WeeklyAvailability, create: bool = False) -> Dict[str, bool]:
        """
        Save operating hours one day at a time. A failing day is logged and
        the remaining days are still sent.

        Args:
            week: Operating hours keyed by day
            create: POST new rows instead of PUT on existing ones

        Returns:
            Dict[str, bool]: Success per day key
        """
        method = "POST" if create else "PUT"
        records = dict(zip([day for day in DAY_ORDER if day in week], hours_to_records(week)))
        results: Dict[str, bool] = {}

        for day, record in records.items():
            try:
                self._request(method, "/company/hours", body=record.to_dict())
            except CallingBirdError as e:
                log_hours_operation(logger, "save", day, success=False, details=str(e))
                results[day] = False
                continue
            log_hours_operation(logger, "save", day, success=True)
            results[day] = True

        return results

    def fetch_company_setup_status(self, bypass_cache: bool = False) -> CompanySetupStatus:
        """
        Check which required company fields are still missing. Details,
        contact and hours are fetched in parallel and all awaited.

        Returns:
            CompanySetupStatus: needs_setup plus the missing fields or issues
        """
        if not self.token_provider.get_token():
            return CompanySetupStatus(needs_setup=True, missing_fields=[SETUP_ISSUE_AUTH])

        paths = ["/company/details", "/company/contact", "/company/hours"]
        try:
            with ThreadPoolExecutor(max_workers=len(paths)) as executor:
                futures = [executor.submit(self._fetch_optional, path, bypass_cache) for path in paths]
                (details, details_ok), (contact, contact_ok), (hours, hours_ok) = [f.result() for f in futures]
        except NetworkError as e:
            logger.warning(f"Failed to evaluate company setup status: {e}")
            return CompanySetupStatus(needs_setup=True, missing_fields=[SETUP_ISSUE_NETWORK])

        missing: List[str] = []
        if not (details_ok and contact_ok and hours_ok):
            missing.append(SETUP_ISSUE_UNKNOWN)

        details = details if isinstance(details, dict) else {}
        contact = contact if isinstance(contact, dict) else {}

        required: List[str] = []
        if not _non_blank(details.get("name")):
            required.append(SETUP_FIELD_COMPANY_NAME)
        if not (_non_blank(contact.get("contact_email")) or _non_blank(contact.get("email"))):
            required.append(SETUP_FIELD_CONTACT_EMAIL)
        if not _non_blank(contact.get("phone")):
            required.append(SETUP_FIELD_PHONE_NUMBER)
        if not _non_blank(contact.get("address")):
            required.append(SETUP_FIELD_ADDRESS)

        try:
            hour_records = parse_business_hours(hours) if hours_ok else []
        except DecodeError as e:
            logger.warning(f"Unreadable company hours payload: {e}")
            hour_records = []
        if not has_business_hours(hour_records):
            required.append(SETUP_FIELD_BUSINESS_HOURS)

        missing.extend(field for field in required if field not in missing)
        return CompanySetupStatus(needs_setup=bool(required), missing_fields=missing)

    def _fetch_optional(self, path: str, bypass_cache: bool) -> Tuple[Any, bool]:
        """
        GET a path where a non-2xx status is an expected outcome.

        Returns:
            Tuple: (parsed JSON or None, whether the status was 2xx)

        Raises:
            NetworkError: only when no response was received at all
        """
        try:
            return self._json("GET", path, bypass_cache=bypass_cache), True
        except NetworkError as e:
            if e.status is None:
                raise
            return None, False
        except DecodeError:
            return None, False

    # ======================================
    # VOICE SETTINGS
    # ======================================

    def get_voice_settings(self) -> VoiceSettings:
        return parse_voice_settings(self._json("GET", "/voice-settings/settings", bypass_cache=True))

    def save_voice_settings(self, settings: VoiceSettings, create: bool = False) -> None:
        body = {
            "welcomePhrase": settings.welcome_phrase,
            "talkingSpeed": settings.talking_speed,
            "voiceId": settings.voice_id,
        }
        self._request("POST" if create else "PUT", "/voice-settings/settings", body=body)

    def get_reply_style(self) -> ReplyStyle:
        return parse_reply_style(self._json("GET", "/voice-settings/reply-style", bypass_cache=True))

    def save_reply_style(self, reply_style: ReplyStyle, create: bool = False) -> None:
        body = {"name": reply_style.name, "description": reply_style.description}
        self._request("POST" if create else "PUT", "/voice-settings/reply-style", body=body)

    def ensure_voice_settings_defaults(self) -> None:
        """
        Seed default voice settings and reply style when the backend has none
        or holds an invalid payload. POST creates missing rows, PUT repairs
        invalid ones. Failures are logged, never raised.
        """
        if not self.token_provider.get_token():
            return

        try:
            self._seed_default("/voice-settings/settings", DEFAULT_VOICE_SETTINGS, is_valid_voice_settings)
            self._seed_default("/voice-settings/reply-style", DEFAULT_REPLY_STYLE, is_valid_reply_style)
        except CallingBirdError as e:
            logger.warning(f"Failed to ensure default voice settings: {e}")

    def _seed_default(self, path: str, default: Dict[str, Any], is_valid) -> None:
        payload, ok = self._fetch_optional(path, bypass_cache=True)
        if ok and is_valid(payload):
            return
        create = not ok or not payload
        self._request("POST" if create else "PUT", path, body=default)

    # ======================================
    # CALLS
    # ======================================

    def get_phone_numbers(self, limit: int = PHONE_NUMBER_LIMIT) -> List[PhoneNumberEntry]:
        return parse_phone_numbers(self._json("GET", "/calls/phone-numbers", params={"limit": limit}))

    def get_calls(self, phone_number: str) -> List[CallSummary]:
        if not _non_blank(phone_number):
            raise ValidationError("Phone number is required", field="phone_number")
        raw = self._json("GET", "/calls", params={"phoneNumber": phone_number})
        return parse_call_summaries(raw, fallback_number=phone_number)

    def get_call_transcript(self, call_sid: str) -> CallTranscript:
        if not _non_blank(call_sid):
            raise ValidationError("Call sid is required", field="call_sid")
        return parse_transcript(self._json("GET", f"/calls/{quote(call_sid, safe='')}"))
