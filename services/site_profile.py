"""Hostname → extraction strategy classification."""

from enum import Enum

import config


class SiteProfile(str, Enum):
    WEBTOONS = "webtoons"
    BATO_V2 = "bato_v2"
    BATO_V3 = "bato_v3"
    UNRECOGNIZED = "unrecognized"


def classify_hostname(hostname) -> SiteProfile:
    """Pick the extraction profile for the final (post-fallback) hostname.

    Any host that is not a known layout gets the generic aggregator profile;
    ``UNRECOGNIZED`` is reserved for a missing hostname.
    """
    host = (hostname or "").strip().lower().rstrip(".")
    if not host:
        return SiteProfile.UNRECOGNIZED
    if host in config.WEBTOONS_HOSTS:
        return SiteProfile.WEBTOONS
    if host in config.BATO_V2_HOSTS:
        return SiteProfile.BATO_V2
    return SiteProfile.BATO_V3
