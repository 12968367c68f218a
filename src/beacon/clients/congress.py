"""HTTP client for the Congress.gov v3 API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
import json
import logging
import time

import httpx

from ..core.identifiers import deterministic_uuid
from ..core.types import ChamberType, JurisdictionType, LegislativeBody, OfficeStatus, PublicOfficial

LOGGER = logging.getLogger(__name__)

_SLOW_REQUEST_SECONDS = 1.0
_CHAMBERS = (ChamberType.LOWER, ChamberType.UPPER)

STATE_ABBREVIATIONS: Dict[str, str] = {
    "alabama": "AL",
    "alaska": "AK",
    "arizona": "AZ",
    "arkansas": "AR",
    "california": "CA",
    "colorado": "CO",
    "connecticut": "CT",
    "delaware": "DE",
    "district of columbia": "DC",
    "florida": "FL",
    "georgia": "GA",
    "hawaii": "HI",
    "idaho": "ID",
    "illinois": "IL",
    "indiana": "IN",
    "iowa": "IA",
    "kansas": "KS",
    "kentucky": "KY",
    "louisiana": "LA",
    "maine": "ME",
    "maryland": "MD",
    "massachusetts": "MA",
    "michigan": "MI",
    "minnesota": "MN",
    "mississippi": "MS",
    "missouri": "MO",
    "montana": "MT",
    "nebraska": "NE",
    "nevada": "NV",
    "new hampshire": "NH",
    "new jersey": "NJ",
    "new mexico": "NM",
    "new york": "NY",
    "north carolina": "NC",
    "north dakota": "ND",
    "ohio": "OH",
    "oklahoma": "OK",
    "oregon": "OR",
    "pennsylvania": "PA",
    "rhode island": "RI",
    "south carolina": "SC",
    "south dakota": "SD",
    "tennessee": "TN",
    "texas": "TX",
    "utah": "UT",
    "vermont": "VT",
    "virginia": "VA",
    "washington": "WA",
    "west virginia": "WV",
    "wisconsin": "WI",
    "wyoming": "WY",
    "puerto rico": "PR",
    "guam": "GU",
    "american samoa": "AS",
    "northern mariana islands": "MP",
    "virgin islands": "VI",
}


class CongressGovClientError(RuntimeError):
    """Raised when the Congress.gov API cannot be reached or answers with an error."""


@dataclass(slots=True, frozen=True)
class MemberListing:
    """A roster candidate together with the raw JSON it was mapped from."""

    official: PublicOfficial
    legislative_body: LegislativeBody
    source_json: str


@dataclass(slots=True, frozen=True)
class HouseVoteSummary:
    congress_number: int
    session_number: int
    roll_call_number: int
    start_date: Optional[datetime] = None
    update_date: Optional[datetime] = None
    result: str = ""
    vote_type: str = ""
    legislation_type: str = ""
    legislation_number: str = ""
    legislation_url: str = ""
    source_data_url: str = ""


@dataclass(slots=True, frozen=True)
class MemberVoteResult:
    bioguide_id: str
    vote_cast: str
    party: str = ""
    state: str = ""


@dataclass(slots=True, frozen=True)
class HouseVoteDetail:
    congress_number: int
    session_number: int
    roll_call_number: int
    start_date: Optional[datetime] = None
    update_date: Optional[datetime] = None
    question: str = ""
    result: str = ""
    vote_type: str = ""
    legislation_type: str = ""
    legislation_number: str = ""
    legislation_url: str = ""
    source_data_url: str = ""
    member_votes: Dict[str, MemberVoteResult] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class _MemberRecord:
    bioguide_id: str
    name: str
    party: str
    district: str
    photo_url: str
    detail_url: str
    chamber: ChamberType
    term_start: Optional[datetime]
    state_code: str
    raw_json: str


class CongressGovClient:
    """Client for the member and House roll-call endpoints of Congress.gov."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        page_size: int = 250,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._max_retries = max(1, max_retries)
        self._page_size = page_size
        self._client = http_client or httpx.Client(timeout=timeout)

    # --- public API -----------------------------------------------------
    def fetch_legislative_bodies(self, congress_number: int) -> List[LegislativeBody]:
        """Return the House and Senate of ``congress_number`` without calling upstream."""

        return [build_legislative_body(congress_number, chamber) for chamber in _CHAMBERS]

    def fetch_member_listings(
        self, congress_number: int, chamber: Optional[ChamberType] = None
    ) -> List[MemberListing]:
        """Download the current roster, optionally restricted to one chamber.

        Every call goes upstream so a long running process sees roster changes.
        """

        bodies = {chamber: build_legislative_body(congress_number, chamber) for chamber in _CHAMBERS}
        listings: List[MemberListing] = []
        for record in self._members_for_congress(congress_number):
            if chamber not in (None, ChamberType.UNSPECIFIED) and record.chamber != chamber:
                continue
            body = bodies.get(record.chamber)
            if body is None:
                continue
            listings.append(
                MemberListing(
                    official=self._to_public_official(record, body),
                    legislative_body=body,
                    source_json=record.raw_json,
                )
            )
        return listings

    def fetch_house_vote_summaries(self, congress_number: int, session_number: int) -> List[HouseVoteSummary]:
        """List the House roll calls of one session (cheap, no member votes)."""

        summaries: List[HouseVoteSummary] = []
        path = f"/house-vote/{congress_number}/{session_number}"
        for page in self._iter_pages(path, {"limit": str(self._page_size)}):
            for entry in page.get("houseRollCallVotes") or []:
                summary = self._parse_vote_summary(entry, congress_number, session_number)
                if summary is not None:
                    summaries.append(summary)
        LOGGER.info(
            "Fetched %s House vote summaries for congress %s session %s",
            len(summaries),
            congress_number,
            session_number,
        )
        return summaries

    def fetch_house_vote_detail(
        self, congress_number: int, session_number: int, roll_call_number: int
    ) -> HouseVoteDetail:
        """Download a single roll call including every member vote."""

        path = f"/house-vote/{congress_number}/{session_number}/{roll_call_number}/members"
        data = self._request("GET", path)
        container = data.get("houseRollCallVoteMemberVotes") or data.get("houseRollCallVote") or {}
        if not isinstance(container, dict):
            raise CongressGovClientError(
                f"Unexpected roll call payload for {congress_number}/{session_number}/{roll_call_number}"
            )
        member_votes: Dict[str, MemberVoteResult] = {}
        self.collect_member_votes(container, member_votes)
        return HouseVoteDetail(
            congress_number=_parse_int(container.get("congress")) or congress_number,
            session_number=_parse_int(container.get("sessionNumber")) or session_number,
            roll_call_number=_parse_int(container.get("rollCallNumber")) or roll_call_number,
            start_date=_parse_datetime(container.get("startDate")),
            update_date=_parse_datetime(container.get("updateDate")),
            question=_text(container.get("voteQuestion")),
            result=_text(container.get("result")),
            vote_type=_text(container.get("voteType")),
            legislation_type=_text(container.get("legislationType")),
            legislation_number=_text(container.get("legislationNumber")),
            legislation_url=_text(container.get("legislationUrl")),
            source_data_url=_text(container.get("sourceDataURL") or container.get("sourceDataUrl")),
            member_votes=member_votes,
        )

    @staticmethod
    def collect_member_votes(container: Any, results: Dict[str, MemberVoteResult]) -> None:
        """Collect member votes from ``container`` into ``results`` keyed by bioguide id.

        The API nests the vote list either as ``results`` or as an ``item``
        container (single object or list); both shapes are accepted.
        """

        if isinstance(container, list):
            for entry in container:
                CongressGovClient.collect_member_votes(entry, results)
            return
        if not isinstance(container, dict):
            return
        bioguide_id = container.get("bioguideID") or container.get("bioguideId")
        if bioguide_id:
            results[str(bioguide_id)] = MemberVoteResult(
                bioguide_id=str(bioguide_id),
                vote_cast=_text(container.get("voteCast")),
                party=_text(container.get("voteParty")),
                state=_text(container.get("voteState")),
            )
            return
        for key in ("results", "item"):
            nested = container.get(key)
            if nested is not None:
                CongressGovClient.collect_member_votes(nested, results)

    def close(self) -> None:
        """Close the underlying HTTP client."""

        self._client.close()

    def __enter__(self) -> "CongressGovClient":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()

    # --- roster helpers -------------------------------------------------
    def _members_for_congress(self, congress_number: int) -> List[_MemberRecord]:
        records: List[_MemberRecord] = []
        params = {"limit": str(self._page_size), "currentMember": "true"}
        for page in self._iter_pages(f"/member/congress/{congress_number}", params):
            for entry in page.get("members") or []:
                record = self._to_member_record(entry)
                if record is not None:
                    records.append(record)
        LOGGER.info("Fetched %s members for congress %s", len(records), congress_number)
        return records

    @staticmethod
    def _to_member_record(data: Dict[str, Any]) -> Optional[_MemberRecord]:
        bioguide_id = _text(data.get("bioguideId"))
        if not bioguide_id:
            return None
        terms = _term_nodes(data.get("terms"))
        chamber = _resolve_chamber(terms)
        if chamber is ChamberType.UNSPECIFIED:
            return None
        name = _first_non_blank(
            data.get("name"),
            data.get("invertedOrderName"),
            data.get("directOrderName"),
            " ".join(part.strip() for part in (data.get("firstName") or "", data.get("lastName") or "") if part.strip()),
        )
        depiction = data.get("depiction") or {}
        return _MemberRecord(
            bioguide_id=bioguide_id,
            name=name,
            party=_text(data.get("partyName")),
            district=_text(data.get("district")),
            photo_url=_text(depiction.get("imageUrl")) if isinstance(depiction, dict) else "",
            detail_url=_text(data.get("url")),
            chamber=chamber,
            term_start=_extract_term_start(terms),
            state_code=_find_state_code(terms, data.get("state")),
            raw_json=json.dumps(data, sort_keys=True, separators=(",", ":")),
        )

    @staticmethod
    def _to_public_official(record: _MemberRecord, body: LegislativeBody) -> PublicOfficial:
        return PublicOfficial(
            uuid=deterministic_uuid(f"public-official-{record.bioguide_id}"),
            source_id=record.bioguide_id,
            legislative_body_uuid=body.uuid,
            full_name=record.name,
            party_affiliation=record.party,
            role_title="Senator" if record.chamber is ChamberType.UPPER else "Representative",
            jurisdiction_region_code=record.state_code,
            district_identifier=record.district,
            office_status=OfficeStatus.ACTIVE,
            biography_url=record.detail_url,
            photo_url=record.photo_url,
            term_start_date=record.term_start,
        )

    # --- vote helpers ---------------------------------------------------
    @staticmethod
    def _parse_vote_summary(
        data: Dict[str, Any], congress_number: int, session_number: int
    ) -> Optional[HouseVoteSummary]:
        roll_call = _parse_int(data.get("rollCallNumber"))
        if roll_call is None:
            LOGGER.warning("Skipping House vote summary without roll call number: %s", data)
            return None
        return HouseVoteSummary(
            congress_number=_parse_int(data.get("congress")) or congress_number,
            session_number=_parse_int(data.get("sessionNumber")) or session_number,
            roll_call_number=roll_call,
            start_date=_parse_datetime(data.get("startDate")),
            update_date=_parse_datetime(data.get("updateDate")),
            result=_text(data.get("result")),
            vote_type=_text(data.get("voteType")),
            legislation_type=_text(data.get("legislationType")),
            legislation_number=_text(data.get("legislationNumber")),
            legislation_url=_text(data.get("legislationUrl")),
            source_data_url=_text(data.get("sourceDataURL") or data.get("sourceDataUrl")),
        )

    # --- transport ------------------------------------------------------
    def _iter_pages(self, path: str, params: Dict[str, str]) -> Iterator[Dict[str, Any]]:
        next_url: Optional[str] = path
        next_params: Optional[Dict[str, str]] = params
        seen: set[str] = set()
        while next_url:
            page = self._request("GET", next_url, params=next_params)
            yield page
            pagination = page.get("pagination") or {}
            candidate = pagination.get("next") if isinstance(pagination, dict) else None
            if not candidate or candidate in seen:
                break
            seen.add(candidate)
            # The next link already carries offset/limit.
            next_url, next_params = str(candidate), None

    def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = path if path.startswith("http") else f"{self._base_url}{path}"
        query: Dict[str, str] = {"format": "json"}
        if self._api_key:
            query["api_key"] = self._api_key
        if params:
            query.update(params)
        last_exc: Optional[Exception] = None
        error_message: Optional[str] = None
        for attempt in range(1, self._max_retries + 1):
            started = time.monotonic()
            try:
                response = self._client.request(
                    method, url, headers={"Accept": "application/json"}, params=query
                )
                elapsed = time.monotonic() - started
                if elapsed > _SLOW_REQUEST_SECONDS:
                    LOGGER.info("Slow Congress.gov request: %s %.0f ms", httpx.URL(url).path, elapsed * 1000)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                status = exc.response.status_code
                LOGGER.warning(
                    "Congress.gov returned status %s for %s %s (attempt %s/%s)",
                    status,
                    method,
                    url,
                    attempt,
                    self._max_retries,
                )
                error_message = f"Congress.gov request failed with status {status} for {url}"
                if status in (401, 403):
                    error_message = (
                        f"Congress.gov rejected the request with status {status}; "
                        "check the configured API key"
                    )
                    break
                if status != 429 and status < 500:
                    break
            except httpx.HTTPError as exc:
                last_exc = exc
                LOGGER.warning("HTTP error while requesting %s %s: %s", method, url, exc)
            except ValueError as exc:
                raise CongressGovClientError(f"Unable to parse Congress.gov response from {url}") from exc
        if error_message:
            raise CongressGovClientError(error_message) from last_exc
        raise CongressGovClientError(f"Failed to request {url}") from last_exc


def build_legislative_body(congress_number: int, chamber: ChamberType) -> LegislativeBody:
    """Build the body for ``chamber`` with a deterministic identifier."""

    if chamber is ChamberType.UNSPECIFIED:
        raise CongressGovClientError("Cannot build legislative body for unspecified chamber")
    label = "SENATE" if chamber is ChamberType.UPPER else "HOUSE"
    source_id = f"US-{label}-{congress_number}"
    return LegislativeBody(
        uuid=deterministic_uuid(f"legislative-body-{source_id}"),
        source_id=source_id,
        name="U.S. Senate" if chamber is ChamberType.UPPER else "U.S. House of Representatives",
        chamber=chamber,
        session=str(congress_number),
        jurisdiction_code="US",
        jurisdiction_type=JurisdictionType.FEDERAL,
    )


def normalize_state_code(value: Optional[str]) -> str:
    if not value or not value.strip():
        return ""
    trimmed = value.strip()
    if len(trimmed) == 2:
        return trimmed.upper()
    return STATE_ABBREVIATIONS.get(trimmed.lower(), "")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first_non_blank(*values: Any) -> str:
    for value in values:
        text = _text(value)
        if text:
            return text
    return ""


def _parse_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (``Z`` suffix or offset) into an aware UTC datetime."""

    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text[:10]), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _term_nodes(terms: Any) -> List[Dict[str, Any]]:
    if not terms:
        return []
    if isinstance(terms, list):
        return [term for term in terms if isinstance(term, dict)]
    if isinstance(terms, dict):
        item = terms.get("item")
        if item is None:
            return [terms]
        if isinstance(item, list):
            return [term for term in item if isinstance(term, dict)]
        if isinstance(item, dict):
            return [item]
    return []


def _chamber_from_string(value: Optional[str]) -> ChamberType:
    normalized = (value or "").lower()
    if "house" in normalized:
        return ChamberType.LOWER
    if "senate" in normalized:
        return ChamberType.UPPER
    return ChamberType.UNSPECIFIED


def _resolve_chamber(terms: List[Dict[str, Any]]) -> ChamberType:
    for term in terms:
        chamber = _chamber_from_string(term.get("chamber"))
        if chamber is not ChamberType.UNSPECIFIED:
            return chamber
    return ChamberType.UNSPECIFIED


def _extract_term_start(terms: List[Dict[str, Any]]) -> Optional[datetime]:
    for term in terms:
        explicit = _parse_datetime(term.get("start"))
        if explicit is not None:
            return explicit
        start_year = _parse_int(term.get("startYear"))
        if start_year and start_year > 0:
            return datetime(start_year, 1, 3, tzinfo=timezone.utc)
    return None


def _find_state_code(terms: List[Dict[str, Any]], fallback_state: Optional[str]) -> str:
    for term in terms:
        code = _text(term.get("stateCode"))
        if code:
            return code.upper()
        normalized = normalize_state_code(term.get("stateName"))
        if normalized:
            return normalized
    return normalize_state_code(fallback_state)


__all__ = [
    "CongressGovClient",
    "CongressGovClientError",
    "HouseVoteDetail",
    "HouseVoteSummary",
    "MemberListing",
    "MemberVoteResult",
    "STATE_ABBREVIATIONS",
    "build_legislative_body",
    "normalize_state_code",
]
