"""Unit tests for the user-agent classification heuristic."""

import pytest

from hello_server.domain.user_agent import (
    BROWSER_LABELS,
    OS_LABELS,
    UNKNOWN,
    ClassificationResult,
    classify_user_agent,
)

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.91"
OPERA_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36 OPR/105.0.0.0"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
CHROMIUM_LINUX = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chromium/119.0.0.0 Chrome/119.0.0.0 Safari/537.36"
)
IE_WINDOWS = "Mozilla/5.0 (Windows NT 6.1; Trident/7.0; rv:11.0) like Gecko"


@pytest.mark.parametrize(
    ("user_agent", "browser", "os_name"),
    [
        (CHROME_WINDOWS, "Chrome", "Windows"),
        (EDGE_WINDOWS, "Edge", "Windows"),
        (OPERA_MAC, "Opera", "macOS"),
        (SAFARI_IPHONE, "Safari", "iOS"),
        (FIREFOX_LINUX, "Firefox", "Linux"),
        (CHROME_ANDROID, "Chrome", "Android"),
        (CHROMIUM_LINUX, "Chromium", "Linux"),
        (IE_WINDOWS, "Internet Explorer", "Windows"),
    ],
)
def test_classifies_common_agents(user_agent, browser, os_name):
    """Real-world agents map to the expected labels."""
    assert classify_user_agent(user_agent) == ClassificationResult(browser, os_name)


def test_empty_agent_is_unknown():
    result = classify_user_agent("")
    assert result.browser == UNKNOWN
    assert result.os == UNKNOWN


def test_curl_agent_is_unknown():
    assert classify_user_agent("curl/8.4.0") == ClassificationResult(UNKNOWN, UNKNOWN)


def test_crafted_agent_follows_rule_order():
    """Earlier rules win even when the string is contrived."""
    result = classify_user_agent("Opera Firefox Windows Linux")
    assert result == ClassificationResult("Opera", "Windows")


def test_labels_come_from_closed_set():
    for user_agent in (CHROME_WINDOWS, SAFARI_IPHONE, "random", IE_WINDOWS):
        result = classify_user_agent(user_agent)
        assert result.browser in BROWSER_LABELS
        assert result.os in OS_LABELS
