"""Client metadata extraction from request headers.

Parses the user agent into coarse OS/browser families and resolves the best
effort public client IP behind proxies and CDNs.

Behavior:
    - Fail-open: unparseable agents degrade to "Unknown"
    - Header priority: infrastructure-injected headers win over client ones
    - CDN and private hops are skipped in ``X-Forwarded-For`` chains
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence, Union

from user_agents import parse as parse_user_agent_string  # type: ignore[import-untyped]

from portfolio_api.config.settings import ClientIpConfig
from portfolio_api.models.view import UNKNOWN

logger = logging.getLogger(__name__)

IpNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

# Family reported by ua-parser when nothing matched.
_UNMATCHED_FAMILY = "Other"


@dataclass(frozen=True)
class ClientAgent:
    """Coarse client attributes derived from the User-Agent header."""

    os_family: str = UNKNOWN
    browser_name: str = UNKNOWN
    is_mobile: bool = False


def _family_or_unknown(family: Optional[str]) -> str:
    if not family or family == _UNMATCHED_FAMILY:
        return UNKNOWN
    return family


def parse_user_agent(user_agent: Optional[str]) -> ClientAgent:
    """Parse a User-Agent header into OS family, browser name and mobile flag."""

    if not user_agent:
        return ClientAgent()

    try:
        ua = parse_user_agent_string(user_agent)
        return ClientAgent(
            os_family=_family_or_unknown(ua.os.family),
            browser_name=_family_or_unknown(ua.browser.family),
            is_mobile=bool(ua.is_mobile or ua.is_tablet),
        )
    except Exception as exc:
        logger.warning(
            "Failed to parse user agent",
            extra={"user_agent": user_agent[:100], "error": str(exc)},
        )
        return ClientAgent()


def parse_networks(ranges: Iterable[str]) -> tuple[IpNetwork, ...]:
    """Parse CIDR strings, skipping (and logging) malformed entries."""

    networks: list[IpNetwork] = []
    for raw in ranges:
        try:
            networks.append(ipaddress.ip_network(raw.strip(), strict=False))
        except ValueError:
            logger.warning("Ignoring invalid CDN range '%s'", raw)
    return tuple(networks)


def is_internal_address(
    ip: str,
    cdn_networks: Sequence[IpNetwork] = (),
) -> bool:
    """Return True when ``ip`` cannot be a visitor's public address.

    Unparseable strings, private, loopback, link-local, reserved, multicast and
    unspecified addresses count as internal, as does anything inside one of
    ``cdn_networks``.
    """

    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return True

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped

    if (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_multicast
        or address.is_unspecified
    ):
        return True

    return any(
        address.version == network.version and address in network
        for network in cdn_networks
    )


class HeaderTrust(str, Enum):
    """How much a client IP header can be relied upon.

    EDGE, CDN and PROXY headers carry one address set by infrastructure; a
    value that is not an IP address is ignored. CHAIN headers list every hop
    and are scanned for the first public address.
    """

    EDGE = "edge"
    CDN = "cdn"
    PROXY = "proxy"
    CHAIN = "chain"


class ClientIpResolver:
    """Resolve the visitor IP from an ordered list of candidate headers."""

    DEFAULT_HEADERS: tuple[tuple[str, HeaderTrust], ...] = (
        ("cf-connecting-ip", HeaderTrust.CDN),
        ("true-client-ip", HeaderTrust.CDN),
        ("x-real-ip", HeaderTrust.PROXY),
        ("x-forwarded-for", HeaderTrust.CHAIN),
    )

    def __init__(self, config: ClientIpConfig) -> None:
        headers: list[tuple[str, HeaderTrust]] = []
        if config.trusted_header:
            headers.append((config.trusted_header.lower(), HeaderTrust.EDGE))
        headers.extend(self.DEFAULT_HEADERS)
        self.header_priority: tuple[tuple[str, HeaderTrust], ...] = tuple(headers)
        self._cdn_networks = parse_networks(config.cdn_ranges)

    def resolve(
        self,
        headers: Mapping[str, str],
        socket_host: Optional[str] = None,
    ) -> str:
        """Return the best effort public client IP, or "Unknown"."""

        for name, trust in self.header_priority:
            raw = headers.get(name)
            if not raw:
                continue

            if trust is HeaderTrust.CHAIN:
                candidate = self._pick_from_chain(raw)
            else:
                candidate = self._single_address(name, raw)

            if candidate:
                return candidate

        if socket_host:
            return socket_host
        return UNKNOWN

    @staticmethod
    def _single_address(name: str, raw: str) -> str:
        value = raw.split(",")[0].strip()
        try:
            ipaddress.ip_address(value)
        except ValueError:
            logger.debug("Ignoring non-IP value in %s header", name)
            return ""
        return value

    def _pick_from_chain(self, raw: str) -> str:
        hops = [hop.strip() for hop in raw.split(",") if hop.strip()]
        if not hops:
            return ""
        for hop in hops:
            if not is_internal_address(hop, self._cdn_networks):
                return hop
        return hops[0]


__all__ = [
    "ClientAgent",
    "ClientIpResolver",
    "HeaderTrust",
    "is_internal_address",
    "parse_networks",
    "parse_user_agent",
]
