"""IP geolocation via the ip-api.com JSON endpoint."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from portfolio_api.config.settings import GeoIpConfig
from portfolio_api.models.view import UNKNOWN
from portfolio_api.telemetry import increment_geo_lookup

logger = logging.getLogger(__name__)


class NetworkType(str, Enum):
    """Coarse classification of a connection's origin."""

    BROADBAND = "Broadband"
    MOBILE = "Mobile"
    HOSTING = "Hosting/Data Center"
    PROXY = "Proxy/VPN"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class GeoClassification:
    """Geographic and network details for a single IP address."""

    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN
    isp: str = UNKNOWN
    network: str = NetworkType.UNKNOWN.value


UNKNOWN_GEO = GeoClassification()


class IpApiPayload(BaseModel):
    """Subset of the ip-api.com response this service relies on."""

    status: str = "fail"
    country: str = UNKNOWN
    regionName: str = UNKNOWN
    city: str = UNKNOWN
    isp: str = UNKNOWN
    mobile: bool = False
    hosting: bool = False
    proxy: bool = False

    @field_validator("country", "regionName", "city", "isp", mode="before")
    @classmethod
    def _blank_to_unknown(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return UNKNOWN
        return value

    @field_validator("mobile", "hosting", "proxy", mode="before")
    @classmethod
    def _null_flag(cls, value: object) -> object:
        return False if value is None else value


def classify_network(*, mobile: bool, hosting: bool, proxy: bool) -> NetworkType:
    """Pick a single network type; mobile beats hosting, which beats proxy."""

    if mobile:
        return NetworkType.MOBILE
    if hosting:
        return NetworkType.HOSTING
    if proxy:
        return NetworkType.PROXY
    return NetworkType.BROADBAND


def is_lookup_candidate(ip: Optional[str]) -> bool:
    """Return True only for public addresses worth sending to the provider."""

    if not ip or ip == UNKNOWN:
        return False
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    return address.is_global


class GeoIpClient:
    """Resolve IP addresses to a :class:`GeoClassification`, never raising."""

    def __init__(
        self,
        config: GeoIpConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    async def lookup(self, ip: Optional[str]) -> GeoClassification:
        if not is_lookup_candidate(ip):
            return UNKNOWN_GEO

        address = ip.strip()
        url = f"{self._config.base_url.rstrip('/')}/{address}"
        try:
            response = await self._client.get(
                url,
                params={"fields": self._config.fields},
                timeout=self._config.timeout_seconds,
            )
            response.raise_for_status()
            payload = IpApiPayload.model_validate(response.json())
        except httpx.TimeoutException:
            logger.warning("Geo lookup timed out for %s", address)
            increment_geo_lookup("timeout")
            return UNKNOWN_GEO
        except httpx.HTTPError as exc:
            logger.warning("Geo lookup failed for %s: %s", address, exc)
            increment_geo_lookup("error")
            return UNKNOWN_GEO
        except (ValueError, ValidationError) as exc:
            logger.warning("Invalid geo payload for %s: %s", address, exc)
            increment_geo_lookup("error")
            return UNKNOWN_GEO
        except Exception:
            logger.exception("Unexpected geo lookup failure for %s", address)
            increment_geo_lookup("error")
            return UNKNOWN_GEO

        if payload.status != "success":
            increment_geo_lookup("miss")
            return UNKNOWN_GEO

        increment_geo_lookup("success")
        network = classify_network(
            mobile=payload.mobile,
            hosting=payload.hosting,
            proxy=payload.proxy,
        )
        return GeoClassification(
            country=payload.country,
            region=payload.regionName,
            city=payload.city,
            isp=payload.isp,
            network=network.value,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = [
    "GeoClassification",
    "GeoIpClient",
    "IpApiPayload",
    "NetworkType",
    "UNKNOWN_GEO",
    "classify_network",
    "is_lookup_candidate",
]
