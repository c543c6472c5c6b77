# meal/services/device.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .types import UNKNOWN


@dataclass(frozen=True)
class Rule:
    """One rung of a detection ladder: `pattern` matches and `exclude` does not."""
    pattern: str
    result: str
    exclude: Optional[str] = None

    def matches(self, user_agent: str) -> bool:
        if not re.search(self.pattern, user_agent, re.IGNORECASE):
            return False
        if self.exclude and re.search(self.exclude, user_agent, re.IGNORECASE):
            return False
        return True


PLATFORM_RULES = (
    Rule(r"iPhone|iPad|iPod", "iOS"),
    Rule(r"Android", "Android"),
    Rule(r"Windows", "Windows"),
    Rule(r"Macintosh|Mac OS X", "macOS"),
    Rule(r"Linux", "Linux"),
)

BROWSER_RULES = (
    Rule(r"Chrome", "Chrome", exclude=r"Edge"),
    Rule(r"Firefox", "Firefox"),
    Rule(r"Safari", "Safari", exclude=r"Chrome"),
    Rule(r"Edge", "Edge"),
    Rule(r"Opera", "Opera"),
)

# most specific versions first
OS_RULES = (
    Rule(r"iPhone OS 18", "iOS 18"),
    Rule(r"iPhone OS 17", "iOS 17"),
    Rule(r"iPhone OS 16", "iOS 16"),
    Rule(r"iPhone OS 15", "iOS 15"),
    Rule(r"iPhone OS 14", "iOS 14"),
    Rule(r"iPhone OS 13", "iOS 13"),
    Rule(r"Android 14", "Android 14"),
    Rule(r"Android 13", "Android 13"),
    Rule(r"Android 12", "Android 12"),
    Rule(r"Android 11", "Android 11"),
    Rule(r"Android 10", "Android 10"),
    Rule(r"Windows NT 10.0", "Windows 10"),
    Rule(r"Windows NT 6.3", "Windows 8.1"),
    Rule(r"Windows NT 6.1", "Windows 7"),
    Rule(r"Mac OS X 10.15", "macOS Catalina"),
    Rule(r"Mac OS X 10.14", "macOS Mojave"),
)

MOBILE_RE = re.compile(r"Mobile|Android|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)
TABLET_RE = re.compile(r"iPad|Android(?=.*Tablet)|Kindle|Silk", re.IGNORECASE)


def first_match(rules: Iterable[Rule], user_agent, default: str = UNKNOWN) -> str:
    if not user_agent or not isinstance(user_agent, str):
        return default
    for rule in rules:
        if rule.matches(user_agent):
            return rule.result
    return default


def detect_platform(user_agent) -> str:
    return first_match(PLATFORM_RULES, user_agent)


def detect_browser(user_agent) -> str:
    return first_match(BROWSER_RULES, user_agent)


def detect_os(user_agent) -> str:
    return first_match(OS_RULES, user_agent)


def detect_mobile(user_agent) -> bool:
    if not user_agent or not isinstance(user_agent, str):
        return False
    return bool(MOBILE_RE.search(user_agent))


def detect_tablet(user_agent) -> bool:
    if not user_agent or not isinstance(user_agent, str):
        return False
    return bool(TABLET_RE.search(user_agent))
