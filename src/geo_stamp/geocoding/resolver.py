"""
Place Resolver
==============

Resolves a GeoFix into a PlaceInfo through an ordered provider chain.

Resolution Rules:
    - Providers are tried in fixed priority order; the first success wins
    - A provider failure is logged and the next provider is tried
    - If every provider fails, PlaceInfo degrades to the
      "Unable to fetch address" placeholder (never raises)
    - At most one resolution is in flight per resolver; concurrent and
      repeated callers share its result

Example:
    resolver = PlaceResolver(build_providers(settings))
    place = await resolver.resolve(GeoFix(37.422, -122.084))
"""

import asyncio
import logging
from typing import Any, List, Optional, Sequence

from geo_stamp.config import Settings
from geo_stamp.geocoding.providers import (
    GeocodeError,
    GoogleGeocodeProvider,
    NominatimProvider,
    ReverseGeocodeProvider,
)
from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import PlaceInfo


logger = logging.getLogger(__name__)


async def first_successful(
    providers: Sequence[ReverseGeocodeProvider],
    fix: GeoFix,
) -> PlaceInfo:
    """
    Try each provider in order and return the first PlaceInfo.

    Args:
        providers: Providers in priority order
        fix: Coordinates to resolve

    Returns:
        PlaceInfo from the first provider that succeeded

    Raises:
        GeocodeError: If the chain is empty or every provider failed
    """
    errors: List[str] = []
    for provider in providers:
        try:
            place = await provider.reverse(fix)
            logger.info(f"Resolved place via {provider.name}: {place.landmark!r}")
            return place
        except GeocodeError as e:
            logger.warning(f"Provider {provider.name} failed, trying next: {e}")
            errors.append(f"{provider.name}: {e}")
    raise GeocodeError("All providers failed" + (f" ({'; '.join(errors)})" if errors else ""))


def build_providers(
    settings: Settings,
    session: Optional[Any] = None,
) -> List[ReverseGeocodeProvider]:
    """
    Build the provider chain from settings.

    Google is placed first only when an API key is configured;
    Nominatim is always the final fallback.
    """
    cfg = settings.providers
    common = dict(
        session=session,
        timeout=cfg.request_timeout_seconds,
        user_agent=cfg.user_agent,
    )
    providers: List[ReverseGeocodeProvider] = []
    if cfg.google_api_key:
        providers.append(GoogleGeocodeProvider(api_key=cfg.google_api_key, **common))
    providers.append(NominatimProvider(url=cfg.nominatim_url, **common))
    return providers


class PlaceResolver:
    """
    At-most-one-in-flight place resolution.

    Attributes:
        providers: Ordered provider chain
    """

    def __init__(self, providers: Sequence[ReverseGeocodeProvider]) -> None:
        self.providers = list(providers)
        self._task: Optional[asyncio.Task] = None
        self._fix: Optional[GeoFix] = None

    @property
    def result(self) -> Optional[PlaceInfo]:
        """Resolved PlaceInfo, or None while pending or never started."""
        if self._task is None or not self._task.done():
            return None
        return self._task.result()

    def start(self, fix: GeoFix) -> asyncio.Task:
        """
        Start resolution for `fix` unless one already exists.

        Returns:
            The shared resolution task
        """
        if self._task is None:
            self._fix = fix
            self._task = asyncio.create_task(self._resolve(fix), name="place_resolution")
        elif fix != self._fix:
            logger.debug("Resolution already started for an earlier fix; reusing it")
        return self._task

    async def resolve(self, fix: GeoFix) -> PlaceInfo:
        """Resolve `fix`, sharing any resolution already in flight."""
        return await asyncio.shield(self.start(fix))

    async def _resolve(self, fix: GeoFix) -> PlaceInfo:
        try:
            return await first_successful(self.providers, fix)
        except GeocodeError as e:
            logger.error(f"Place resolution failed for {fix.as_query()}: {e}")
            return PlaceInfo.geocode_failed()
