"""Ordered candidate field paths for APEC API payloads.

The API has shipped several shapes for the same data. Each canonical field
lists the dotted paths it may live under, most trusted first. This module
is the only place that knows about those alternate shapes.
"""

from typing import Any

LISTING_FIELDS: dict[str, tuple[str, ...]] = {
    "native_id": ("numeroOffre", "id", "reference", "numOffre"),
    "title": ("intitule", "title", "libelle"),
    "company": ("entreprise.nom", "nomCommercial", "company", "recruteur"),
    "location": ("lieuTravail.libelle", "lieuTravail", "lieuTexte", "location", "lieu"),
    "salary": ("salaire.libelle", "salaireTexte", "salary"),
    "job_type": ("typeContrat.libelle", "contrat.libelle", "typeContrat", "job_type"),
    "date_posted": ("datePublication", "dateDePublication", "datePosted"),
    "description_html": ("descriptionHtml", "description_html", "texteHtml"),
    "description_text": ("description", "desc", "texteOffre"),
    "url": ("url", "lien", "link"),
    "experience_level": ("experience.libelle", "niveauExperience", "experience"),
    "remote_work": ("teletravail.libelle", "teletravail", "remote"),
    "apply_url": ("urlPostulation", "lienPostulation", "applyUrl"),
}

DETAIL_FIELDS: dict[str, tuple[str, ...]] = {
    **LISTING_FIELDS,
    "description_html": ("texteHtml", "descriptionHtml", "description_html", "texteOffreHtml"),
    "description_text": ("texteOffre", "description", "desc"),
    "location": ("lieux.0.libelle", "lieuTravail.libelle", "lieuTexte", "location"),
    "apply_url": ("urlPostulation", "lienPostulation", "adresseUrlCandidature", "applyUrl"),
}

RESULT_CONTAINERS: tuple[str, ...] = ("result", "data")
ITEM_ARRAYS: tuple[str, ...] = ("offers", "offres", "items", "resultats")
TOTAL_FIELDS: tuple[str, ...] = ("totalCount", "total", "totalElements", "nbTotal")

LOCATION_ID_FIELDS: tuple[str, ...] = ("id", "code", "lieuId", "idLieu")
LOCATION_NAME_FIELDS: tuple[str, ...] = ("libelle", "label", "nom", "name")


def resolve_path(payload: Any, path: str) -> Any:
    """Walk a dotted path through dicts (and lists, for numeric segments)."""
    current = payload
    for segment in path.split("."):
        if isinstance(current, dict):
            current = current.get(segment)
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def pick_text(payload: Any, paths: tuple[str, ...]) -> str | None:
    """First non-empty scalar found under ``paths``, as stripped text.

    Nested objects are skipped so a path like ``lieuTravail`` only matches
    when the API sent a plain string there.
    """
    for path in paths:
        value = resolve_path(payload, path)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def pick_fields(payload: Any, fields: dict[str, tuple[str, ...]]) -> dict[str, str | None]:
    return {name: pick_text(payload, paths) for name, paths in fields.items()}


def extract_items(body: Any) -> tuple[list[dict[str, Any]], int | None]:
    """Return (items, declared total) from a search response body.

    The total is None when the body declares none.
    """
    container = body
    if isinstance(body, dict):
        for key in RESULT_CONTAINERS:
            if isinstance(body.get(key), dict):
                container = body[key]
                break

    items: list[dict[str, Any]] = []
    if isinstance(container, list):
        items = [item for item in container if isinstance(item, dict)]
    elif isinstance(container, dict):
        for key in ITEM_ARRAYS:
            value = container.get(key)
            if isinstance(value, list):
                items = [item for item in value if isinstance(item, dict)]
                break

    total: int | None = None
    if isinstance(container, dict):
        for key in TOTAL_FIELDS:
            value = container.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                total = value
                break
            if isinstance(value, str) and value.isdigit():
                total = int(value)
                break
    return items, total
