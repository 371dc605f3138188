"""APEC DOM selector constants with fallbacks.

Each constant is a tuple so callers iterate until a match is found.
Item containers come in groups: the primary card group, then a bare
detail-link group for layouts without card markup.
"""

# --- Item containers, tried in order; first group with a match wins ---
CARD_SELECTORS: tuple[str, ...] = (
    "article.card-offre",
    "article[data-offer-id]",
    "div.card-offre",
)

LINK_SELECTORS: tuple[str, ...] = (
    'a[href*="/detail-offre/"]',
    "article.card-offre h2 a",
)

# --- Offer id attribute on a card ---
OFFER_ID_ATTR: str = "data-offer-id"

# --- Fields inside a card ---
CARD_TITLE_LINK_SELECTORS: tuple[str, ...] = (
    'a[href*="/detail-offre/"]',
    "h2 a",
)

CARD_COMPANY_SELECTORS: tuple[str, ...] = (
    ".card-company",
    '[class*="company"]',
    '[class*="entreprise"]',
)

CARD_LOCATION_SELECTORS: tuple[str, ...] = (
    ".card-location",
    '[class*="location"]',
    '[class*="lieu"]',
)

CARD_SALARY_SELECTORS: tuple[str, ...] = (
    ".card-salary",
    '[class*="salaire"]',
)

CARD_CONTRACT_SELECTORS: tuple[str, ...] = (
    '[class*="contract"]',
    '[class*="contrat"]',
)

CARD_DATE_SELECTORS: tuple[str, ...] = (
    "time",
    '[class*="date"]',
)

# --- Detail page fields ---
DETAIL_TITLE_SELECTORS: tuple[str, ...] = (
    "h1",
    ".offer-title",
    '[class*="title"]',
)

DETAIL_COMPANY_SELECTORS: tuple[str, ...] = (
    ".company-name",
    '[class*="company"]',
    '[class*="entreprise"]',
)

DETAIL_LOCATION_SELECTORS: tuple[str, ...] = (
    ".job-location",
    '[class*="location"]',
    '[class*="lieu"]',
)

DETAIL_SALARY_SELECTORS: tuple[str, ...] = (
    ".salary",
    '[class*="salary"]',
    '[class*="salaire"]',
)

DETAIL_CONTRACT_SELECTORS: tuple[str, ...] = (
    ".contract-type",
    '[class*="contract"]',
    '[class*="contrat"]',
)

DETAIL_DATE_SELECTORS: tuple[str, ...] = (
    ".date-posted",
    '[class*="date"]',
)

DETAIL_DESCRIPTION_SELECTORS: tuple[str, ...] = (
    "div.job-description-content",
    '[class*="description"]',
    ".offer-content",
    ".job-description",
)

DETAIL_EXPERIENCE_SELECTORS: tuple[str, ...] = (
    'li:-soup-contains("expérience")',
    'li:-soup-contains("experience")',
    ".experience",
    '[class*="experience"]',
)

DETAIL_REMOTE_SELECTORS: tuple[str, ...] = (
    'li:-soup-contains("télétravail")',
    'li:-soup-contains("remote")',
    '[class*="teletravail"]',
    '[class*="remote"]',
)

DETAIL_APPLY_SELECTORS: tuple[str, ...] = (
    'a[href*="postuler"]',
    'a[class*="apply"]',
    'a[class*="postuler"]',
)

JSON_LD_SELECTOR: str = 'script[type="application/ld+json"]'

