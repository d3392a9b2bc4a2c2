"""Country code / name to flag emoji lookup"""
import re
from typing import Optional

from .logger import setup_logger

logger = setup_logger(__name__)

# Keys are ISO alpha-2, alpha-3 or the country name as the upstream source spells it
FLAG_MAP = {
    # North America
    "US": "🇺🇸", "USA": "🇺🇸", "United States": "🇺🇸",
    "CA": "🇨🇦", "CAN": "🇨🇦", "Canada": "🇨🇦",
    "MX": "🇲🇽", "MEX": "🇲🇽", "Mexico": "🇲🇽",
    "CU": "🇨🇺", "CUB": "🇨🇺", "Cuba": "🇨🇺",
    "JM": "🇯🇲", "JAM": "🇯🇲", "Jamaica": "🇯🇲",

    # Europe
    "GB": "🇬🇧", "UK": "🇬🇧", "United Kingdom": "🇬🇧",
    "England": "🏴\U000e0067\U000e0062\U000e0065\U000e006e\U000e0067\U000e007f",
    "IE": "🇮🇪", "IRL": "🇮🇪", "Ireland": "🇮🇪",
    "FR": "🇫🇷", "FRA": "🇫🇷", "France": "🇫🇷",
    "DE": "🇩🇪", "DEU": "🇩🇪", "Germany": "🇩🇪",
    "IT": "🇮🇹", "ITA": "🇮🇹", "Italy": "🇮🇹",
    "ES": "🇪🇸", "ESP": "🇪🇸", "Spain": "🇪🇸",
    "NL": "🇳🇱", "NLD": "🇳🇱", "Netherlands": "🇳🇱",
    "SE": "🇸🇪", "SWE": "🇸🇪", "Sweden": "🇸🇪",
    "NO": "🇳🇴", "NOR": "🇳🇴", "Norway": "🇳🇴",
    "FI": "🇫🇮", "FIN": "🇫🇮", "Finland": "🇫🇮",
    "IS": "🇮🇸", "ISL": "🇮🇸", "Iceland": "🇮🇸",
    "PL": "🇵🇱", "POL": "🇵🇱", "Poland": "🇵🇱",
    "LT": "🇱🇹", "LTU": "🇱🇹", "Lithuania": "🇱🇹",
    "LV": "🇱🇻", "LVA": "🇱🇻", "Latvia": "🇱🇻",
    "EE": "🇪🇪", "EST": "🇪🇪", "Estonia": "🇪🇪",
    "CZ": "🇨🇿", "CZE": "🇨🇿", "Czech Republic": "🇨🇿",
    "SK": "🇸🇰", "SVK": "🇸🇰", "Slovakia": "🇸🇰",
    "HR": "🇭🇷", "HRV": "🇭🇷", "Croatia": "🇭🇷",
    "RS": "🇷🇸", "SRB": "🇷🇸", "Serbia": "🇷🇸",
    "BA": "🇧🇦", "BIH": "🇧🇦", "Bosnia": "🇧🇦",
    "MK": "🇲🇰", "MKD": "🇲🇰", "North Macedonia": "🇲🇰",
    "RU": "🇷🇺", "RUS": "🇷🇺", "Russia": "🇷🇺",
    "UA": "🇺🇦", "UKR": "🇺🇦", "Ukraine": "🇺🇦",
    "GE": "🇬🇪", "GEO": "🇬🇪", "Georgia": "🇬🇪",
    "AM": "🇦🇲", "ARM": "🇦🇲", "Armenia": "🇦🇲",
    "AZ": "🇦🇿", "AZE": "🇦🇿", "Azerbaijan": "🇦🇿",

    # Central Asia
    "KZ": "🇰🇿", "KAZ": "🇰🇿", "Kazakhstan": "🇰🇿",
    "UZ": "🇺🇿", "UZB": "🇺🇿", "Uzbekistan": "🇺🇿",
    "KG": "🇰🇬", "KGZ": "🇰🇬", "Kyrgyzstan": "🇰🇬",
    "TJ": "🇹🇯", "TJK": "🇹🇯", "Tajikistan": "🇹🇯",

    # South America
    "BR": "🇧🇷", "BRA": "🇧🇷", "Brazil": "🇧🇷",
    "AR": "🇦🇷", "ARG": "🇦🇷", "Argentina": "🇦🇷",
    "CL": "🇨🇱", "CHL": "🇨🇱", "Chile": "🇨🇱",
    "CO": "🇨🇴", "COL": "🇨🇴", "Colombia": "🇨🇴",
    "PE": "🇵🇪", "PER": "🇵🇪", "Peru": "🇵🇪",
    "VE": "🇻🇪", "VEN": "🇻🇪", "Venezuela": "🇻🇪",

    # Asia & Oceania
    "AU": "🇦🇺", "AUS": "🇦🇺", "Australia": "🇦🇺",
    "NZ": "🇳🇿", "NZL": "🇳🇿", "New Zealand": "🇳🇿",
    "JP": "🇯🇵", "JPN": "🇯🇵", "Japan": "🇯🇵",
    "KR": "🇰🇷", "KOR": "🇰🇷", "South Korea": "🇰🇷",
    "CN": "🇨🇳", "CHN": "🇨🇳", "China": "🇨🇳",
    "TH": "🇹🇭", "THA": "🇹🇭", "Thailand": "🇹🇭",
    "PH": "🇵🇭", "PHL": "🇵🇭", "Philippines": "🇵🇭",
    "IN": "🇮🇳", "IND": "🇮🇳", "India": "🇮🇳",
    "ID": "🇮🇩", "IDN": "🇮🇩", "Indonesia": "🇮🇩",
    "MY": "🇲🇾", "MYS": "🇲🇾", "Malaysia": "🇲🇾",
    "SG": "🇸🇬", "SGP": "🇸🇬", "Singapore": "🇸🇬",

    # Africa & Middle East
    "ZA": "🇿🇦", "RSA": "🇿🇦", "South Africa": "🇿🇦",
    "NG": "🇳🇬", "NGA": "🇳🇬", "Nigeria": "🇳🇬",
    "CM": "🇨🇲", "CMR": "🇨🇲", "Cameroon": "🇨🇲",
    "EG": "🇪🇬", "EGY": "🇪🇬", "Egypt": "🇪🇬",
    "IL": "🇮🇱", "ISR": "🇮🇱", "Israel": "🇮🇱",
    "IR": "🇮🇷", "IRN": "🇮🇷", "Iran": "🇮🇷",
    "IQ": "🇮🇶", "IRQ": "🇮🇶", "Iraq": "🇮🇶",
    "AE": "🇦🇪", "ARE": "🇦🇪", "UAE": "🇦🇪",
}

# Partial matching is only attempted for names; short codes would match everything
_MIN_PARTIAL_LENGTH = 4

_FLAG_URL_PATTERN = re.compile(r"flags/([A-Z]{2,3})\.", re.IGNORECASE)


def get_country_flag(country_code: Optional[str] = None, country_name: Optional[str] = None) -> Optional[str]:
    """
    Look up a flag emoji for a country.

    The code is tried first, then the name. Lookups try the exact key, the
    upper-cased key, and finally a containment match against country names.

    Args:
        country_code: ISO alpha-2/alpha-3 code (e.g. 'BR', 'BRA')
        country_name: Country name (e.g. 'Brazil')

    Returns:
        Flag emoji or None if nothing matched
    """
    key = country_code or country_name
    if not key:
        return None
    key = key.strip()

    flag = FLAG_MAP.get(key) or FLAG_MAP.get(key.upper())
    if flag:
        logger.debug(f"Found flag for {key}")
        return flag

    key_lower = key.lower()
    if len(key_lower) >= _MIN_PARTIAL_LENGTH:
        for map_key, map_flag in FLAG_MAP.items():
            if len(map_key) < _MIN_PARTIAL_LENGTH:
                continue
            map_lower = map_key.lower()
            if key_lower in map_lower or map_lower in key_lower:
                logger.debug(f"Found partial flag match for {key} -> {map_key}")
                return map_flag

    logger.debug(f"No flag found for {key}")
    return None


def flag_from_image_url(url: Optional[str]) -> Optional[str]:
    """Extract the country code from a flag image URL (…/flags/BRA.png) and look it up"""
    if not url:
        return None
    match = _FLAG_URL_PATTERN.search(url)
    if not match:
        return None
    return get_country_flag(match.group(1))
