"""Heuristic browser and operating system detection from User-Agent strings."""

from dataclasses import dataclass

UNKNOWN = "Unknown"

BROWSER_LABELS = (
    "Opera",
    "Edge",
    "Chrome",
    "Chromium",
    "Firefox",
    "Safari",
    "Internet Explorer",
    UNKNOWN,
)
OS_LABELS = ("Windows", "macOS", "Android", "iOS", "Linux", UNKNOWN)


@dataclass(frozen=True)
class ClassificationResult:
    """Browser and OS labels derived from a User-Agent header."""

    browser: str = UNKNOWN
    os: str = UNKNOWN


def _contains_any(user_agent: str, *needles: str) -> bool:
    return any(needle in user_agent for needle in needles)


# Order matters: "Edg" agents also mention Chrome and Safari, Chrome agents
# mention Safari, and Android agents mention Linux.
def detect_browser(user_agent: str) -> str:
    if _contains_any(user_agent, "OPR", "Opera"):
        return "Opera"
    if _contains_any(user_agent, "Edg", "Edge"):
        return "Edge"
    if "Chrome" in user_agent and "Chromium" not in user_agent:
        return "Chrome"
    if "Chromium" in user_agent:
        return "Chromium"
    if "Firefox" in user_agent:
        return "Firefox"
    if "Safari" in user_agent and "Chrome" not in user_agent:
        return "Safari"
    if _contains_any(user_agent, "MSIE", "Trident"):
        return "Internet Explorer"
    return UNKNOWN


def detect_os(user_agent: str) -> str:
    if "Windows" in user_agent:
        return "Windows"
    if "Macintosh" in user_agent:
        return "macOS"
    if "Android" in user_agent:
        return "Android"
    if _contains_any(user_agent, "iPhone", "iPad"):
        return "iOS"
    if "Linux" in user_agent:
        return "Linux"
    return UNKNOWN


def classify_user_agent(user_agent: str) -> ClassificationResult:
    """Classify a raw User-Agent string into browser and OS labels."""
    return ClassificationResult(
        browser=detect_browser(user_agent), os=detect_os(user_agent)
    )
