"""
Catalog of the Tally forms embedded by the portal.

Each form produces operations of one category and one operation type.
The embed URLs come from the Tally dashboard ("Share" → "Embed") and
carry the display parameters the portal expects.
"""

from typing import Dict, List, Optional

from delegation_portal_api.app.core.config import settings
from delegation_portal_api.app.schemas.form import FormCatalog, FormConfig
from delegation_portal_api.app.schemas.operation import OperationType


_EMBED_PARAMS = "alignLeft=1&hideTitle=1&transparentBackground=1&dynamicHeight=1"


def _embed_url(form_id: str) -> str:
    return f"https://tally.so/embed/{form_id}?{_EMBED_PARAMS}"


FORMS: List[FormConfig] = [
    FormConfig(
        slug="assurance-vie",
        category=OperationType.SOUSCRIPTION,
        title="Délégation Souscription Assurance Vie",
        description="Déléguez la mise en place d'un contrat d'assurance vie pour votre client",
        form_url=_embed_url("mKa4yX"),
        operation_type="Assurance Vie",
    ),
    FormConfig(
        slug="per",
        category=OperationType.SOUSCRIPTION,
        title="Délégation Souscription PER",
        description="Déléguez la mise en place d'un Plan Épargne Retraite pour votre client",
        form_url=_embed_url("mB2Wg5"),
        operation_type="PER",
    ),
    FormConfig(
        slug="scpi-pp",
        category=OperationType.SOUSCRIPTION,
        title="Délégation Souscription SCPI en Pleine Propriété",
        description="Déléguez la souscription de parts de SCPI en pleine propriété pour votre client",
        form_url=_embed_url("nrkZ5R"),
        operation_type="SCPI Pleine Propriété",
    ),
    FormConfig(
        slug="scpi-np",
        category=OperationType.SOUSCRIPTION,
        title="Délégation Souscription SCPI en Nue Propriété",
        description="Déléguez la souscription de parts de SCPI en démembrement pour votre client",
        form_url=_embed_url("wAjXpD"),
        operation_type="SCPI Nue Propriété",
    ),
    FormConfig(
        slug="arbitrage",
        category=OperationType.ACTES_DE_GESTION,
        title="Arbitrage",
        description="Déléguez un arbitrage sur les contrats de votre client",
        form_url=_embed_url("mOoN7R"),
        operation_type="Arbitrage",
    ),
]

_BY_SLUG: Dict[str, FormConfig] = {form.slug: form for form in FORMS}


def get_form(slug: str) -> Optional[FormConfig]:
    """Return the form registered under ``slug``, if any."""
    return _BY_SLUG.get(slug)


def get_catalog() -> FormCatalog:
    """Group the forms by category, in catalog order."""
    categories: Dict[str, List[FormConfig]] = {member.value: [] for member in OperationType}
    for form in FORMS:
        categories[form.category.value].append(form)
    return FormCatalog(
        onboarding_form_id=settings.tally_onboarding_form_id,
        categories=categories,
    )
