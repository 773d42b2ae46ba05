"""US state codes and human-readable location labels."""

from __future__ import annotations

from dataclasses import dataclass

from covidcast_lens.schemas import GeoType


@dataclass(frozen=True)
class State:
    """A state (or DC / Puerto Rico) with its FIPS code and postal abbreviation."""

    fips: str
    abbr: str
    name: str


STATES: tuple[State, ...] = (
    State("01", "al", "Alabama"),
    State("02", "ak", "Alaska"),
    State("04", "az", "Arizona"),
    State("05", "ar", "Arkansas"),
    State("06", "ca", "California"),
    State("08", "co", "Colorado"),
    State("09", "ct", "Connecticut"),
    State("10", "de", "Delaware"),
    State("11", "dc", "District of Columbia"),
    State("12", "fl", "Florida"),
    State("13", "ga", "Georgia"),
    State("15", "hi", "Hawaii"),
    State("16", "id", "Idaho"),
    State("17", "il", "Illinois"),
    State("18", "in", "Indiana"),
    State("19", "ia", "Iowa"),
    State("20", "ks", "Kansas"),
    State("21", "ky", "Kentucky"),
    State("22", "la", "Louisiana"),
    State("23", "me", "Maine"),
    State("24", "md", "Maryland"),
    State("25", "ma", "Massachusetts"),
    State("26", "mi", "Michigan"),
    State("27", "mn", "Minnesota"),
    State("28", "ms", "Mississippi"),
    State("29", "mo", "Missouri"),
    State("30", "mt", "Montana"),
    State("31", "ne", "Nebraska"),
    State("32", "nv", "Nevada"),
    State("33", "nh", "New Hampshire"),
    State("34", "nj", "New Jersey"),
    State("35", "nm", "New Mexico"),
    State("36", "ny", "New York"),
    State("37", "nc", "North Carolina"),
    State("38", "nd", "North Dakota"),
    State("39", "oh", "Ohio"),
    State("40", "ok", "Oklahoma"),
    State("41", "or", "Oregon"),
    State("42", "pa", "Pennsylvania"),
    State("44", "ri", "Rhode Island"),
    State("45", "sc", "South Carolina"),
    State("46", "sd", "South Dakota"),
    State("47", "tn", "Tennessee"),
    State("48", "tx", "Texas"),
    State("49", "ut", "Utah"),
    State("50", "vt", "Vermont"),
    State("51", "va", "Virginia"),
    State("53", "wa", "Washington"),
    State("54", "wv", "West Virginia"),
    State("55", "wi", "Wisconsin"),
    State("56", "wy", "Wyoming"),
    State("72", "pr", "Puerto Rico"),
)

_BY_ABBR = {s.abbr: s for s in STATES}
_BY_FIPS = {s.fips: s for s in STATES}


def abbr_to_fips(abbr: str) -> str | None:
    """``"pa"`` -> ``"42"``; None if unknown."""
    state = _BY_ABBR.get(abbr.lower())
    return state.fips if state else None


def fips_to_abbr(fips: str) -> str | None:
    """``"42"`` (or a county FIPS like ``"42003"``) -> ``"pa"``; None if unknown."""
    state = _BY_FIPS.get(fips[:2])
    return state.abbr if state else None


def state_name(code: str) -> str | None:
    """Full state name from an abbreviation or a 2-digit FIPS code."""
    state = _BY_ABBR.get(code.lower()) or _BY_FIPS.get(code)
    return state.name if state else None


def location_label(geo_type: GeoType | str, geo_value: str) -> str:
    """Human-readable label for a location.

    States show their name, counties their FIPS code plus state name; other
    geo types are shown as-is.
    """
    if geo_type == GeoType.STATE:
        return state_name(geo_value) or geo_value.upper()
    if geo_type == GeoType.COUNTY:
        state = _BY_FIPS.get(geo_value[:2])
        if geo_value.endswith("000") and state:
            return f"{state.name} (rest of state)"
        return f"{geo_value} ({state.name})" if state else geo_value
    if geo_type == GeoType.NATION:
        return geo_value.upper()
    return geo_value
