"""AdPulse — Campaign → Product Classifier.

Campaign names are free-form (``LEADGENERATION_TL+HEALTH-SABAI-JAI_v1``), so the
product code is resolved by ordered substring matching. The first matching
entry wins; the order of PRODUCT_RULES is the tie-break and must not change.
Both the ad fetcher and the audience fetcher use this single table.
"""

from typing import Optional, Tuple

UNKNOWN_PRODUCT = "UNKNOWN"
OTHER_PRODUCT = "OTHER"

# (substrings, product_code) — checked top to bottom
PRODUCT_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("SENIOR-BONECARE",), "LIFE-SENIOR-BONECARE"),
    (("MONEYSAVING14/6",), "SAVING-MONEYSAVING14/6"),
    (("EXTRASENIOR-BUPHAKARI",), "LIFE-EXTRASENIOR-BUPHAKARI"),
    (("SENIOR-MORRADOK",), "LIFE-SENIOR-MORRADOK"),
    (("HAPPY",), "SAVING-HAPPY"),
    (("TOPUP-SICK",), "HEALTH-TOPUP-SICK"),
    (("SABAI-JAI", "SABAIJAI"), "HEALTH-SABAI-JAI"),
)


def classify_campaign(campaign_name: Optional[str]) -> str:
    """Map a campaign name to its product code.

    Returns UNKNOWN_PRODUCT for a missing/empty name and OTHER_PRODUCT when
    no rule matches.
    """
    if not campaign_name:
        return UNKNOWN_PRODUCT
    name = campaign_name.upper()
    for needles, product_code in PRODUCT_RULES:
        if any(needle in name for needle in needles):
            return product_code
    return OTHER_PRODUCT
