"""Arke API client.

Implements the registration capability (create/update a rhiza) and the read-only
klados listing. Every transport or HTTP failure surfaces as `RegistrationError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from rhiza_registrar import __version__
from rhiza_registrar.registrar.definition.model import WorkflowDefinition
from rhiza_registrar.registrar.errors import RegistrationError
from rhiza_registrar.registrar.sync.remote import RemoteIds
from rhiza_registrar.registrar.sync.state import Network

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KladosSummary:
    """A klados worker visible to the current key."""

    pi: str
    label: str | None
    status: str | None
    fetched: bool = True


class ArkeClient:
    """Small wrapper around a `requests.Session` for the Arke endpoints we need."""

    def __init__(
        self,
        *,
        user_key: str,
        network: Network,
        api_base: str = "https://arke-v1.arke.institute",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not user_key:
            raise ValueError("Arke user key is required")

        self._network = network
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"ApiKey {user_key}",
                "Accept": "application/json",
                "X-Arke-Network": network.value,
                "User-Agent": f"rhiza-registrar/{__version__}",
            }
        )

    @property
    def network(self) -> Network:
        return self._network

    def _url(self, path: str) -> str:
        return f"{self._api_base}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = self._url(path)
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise RegistrationError(f"{method} {url} failed: {e}") from e

        if not resp.ok:
            detail = (resp.text or "").strip()[:500]
            raise RegistrationError(
                f"{method} {url} returned HTTP {resp.status_code}: {detail or resp.reason}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise RegistrationError(f"{method} {url} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise RegistrationError(f"{method} {url} returned unexpected JSON")
        return data

    @staticmethod
    def _require_id(data: dict[str, Any], what: str) -> str:
        value = data.get("id") or data.get("pi")
        if not isinstance(value, str) or not value.strip():
            raise RegistrationError(f"Arke did not return an id for the new {what}")
        return value

    def create(self, definition: WorkflowDefinition, *, collection_label: str) -> RemoteIds:
        """Create the owning collection, then the rhiza inside it."""

        logger.info(
            "Creating collection",
            extra={"label": collection_label, "network": self._network.value},
        )
        collection = self._request(
            "POST",
            "/collections",
            json={"label": collection_label, "description": definition.description or ""},
        )
        collection_id = self._require_id(collection, "collection")

        logger.info("Creating rhiza", extra={"collection_id": collection_id})
        try:
            rhiza = self._request(
                "POST",
                "/rhizai",
                json={**definition.to_payload(), "collection": collection_id},
            )
            rhiza_id = self._require_id(rhiza, "rhiza")
        except RegistrationError as e:
            # The collection already exists; a retry would create another one.
            logger.error(
                "Rhiza creation failed after collection was created",
                extra={"collection_id": collection_id},
            )
            raise RegistrationError(
                f"{e} (collection {collection_id} was created and is now orphaned)",
                status_code=e.status_code,
            ) from e

        return RemoteIds(rhiza_id=rhiza_id, collection_id=collection_id)

    def update(self, rhiza_id: str, definition: WorkflowDefinition) -> None:
        logger.info("Updating rhiza", extra={"rhiza_id": rhiza_id, "version": definition.version})
        self._request("PUT", f"/rhizai/{rhiza_id}", json=definition.to_payload())

    def list_kladoi(self, *, limit: int = 50) -> list[KladosSummary]:
        """List klados workers, fetching each one for its label and status.

        Entities that cannot be fetched individually are still listed, with
        `fetched=False`.
        """

        result = self._request("GET", "/entities", params={"type": "klados", "limit": limit})
        entities = result.get("entities") or []

        out: list[KladosSummary] = []
        for entity in entities:
            pi = entity.get("pi") if isinstance(entity, dict) else None
            if not isinstance(pi, str):
                continue
            try:
                klados = self._request("GET", f"/entities/{pi}")
            except RegistrationError as e:
                logger.warning("Could not fetch klados", extra={"pi": pi, "error": str(e)})
                out.append(KladosSummary(pi=pi, label=None, status=None, fetched=False))
                continue
            props = klados.get("properties") or {}
            out.append(
                KladosSummary(pi=pi, label=props.get("label"), status=props.get("status"))
            )
        return out

    def close(self) -> None:
        self._session.close()
