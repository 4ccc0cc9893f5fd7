"""
Normalisation of policy request bodies.

``build_policy_document`` is shared by POST /policies (creation, required
fields enforced) and PUT /policies/{id} (full update). It has no side effects:
callers write the returned document themselves.
"""

import math
from typing import Any, Dict, List, Optional

from errors import InvalidArgument

REQUIRED_FIELDS = ("title", "category", "policyType", "description")
SCALAR_FIELDS = ("title", "category", "policyType", "description", "image", "termDuration")
LIST_FIELDS = ("healthConditionsExcluded", "paymentOptions", "termLengthOptions")


class PolicyValidationError(InvalidArgument):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        verb = "is" if len(self.missing) == 1 else "are"
        super().__init__(f"{', '.join(self.missing)} {verb} required")


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value is False


def _parse_number(value: Any) -> Optional[float]:
    """Numeric parse; None when the input is not a finite number."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0
        # int()/float() accept digit separators, JS Number() does not
        if "_" in text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _number(value: Any, field: str) -> float:
    if value is None:
        return 0
    parsed = _parse_number(value)
    if parsed is None:
        raise InvalidArgument(f"{field} must be a number")
    return parsed


def _section(body: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = body.get(key)
    return value if isinstance(value, dict) else {}


def build_policy_document(body: Dict[str, Any], is_update: bool = False) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise InvalidArgument("Policy body must be an object")

    if not is_update:
        missing = [f for f in REQUIRED_FIELDS if _is_blank(body.get(f))]
        if missing:
            raise PolicyValidationError(missing)

    doc: Dict[str, Any] = {}
    for field in SCALAR_FIELDS:
        if field in body:
            doc[field] = body[field]

    if "coverageAmount" in body:
        doc["coverageAmount"] = _number(body["coverageAmount"], "coverageAmount")
    if "popularity" in body:
        doc["popularity"] = _parse_number(body["popularity"]) or 0

    # Nested sections are always rebuilt from scratch.
    eligibility = _section(body, "eligibility")
    doc["eligibility"] = {
        "minAge": _number(eligibility.get("minAge"), "eligibility.minAge"),
        "maxAge": _number(eligibility.get("maxAge"), "eligibility.maxAge"),
        "residency": eligibility.get("residency") if eligibility.get("residency") is not None else "",
        "medicalExamRequired": bool(eligibility.get("medicalExamRequired")),
    }

    benefits = _section(body, "benefits")
    doc["benefits"] = {
        "deathBenefit": benefits.get("deathBenefit") if benefits.get("deathBenefit") is not None else "",
        "taxBenefits": benefits.get("taxBenefits") if benefits.get("taxBenefits") is not None else "",
        "accidentalDeathRider": bool(benefits.get("accidentalDeathRider")),
        "criticalIllnessRider": bool(benefits.get("criticalIllnessRider")),
        "waiverOfPremium": benefits.get("waiverOfPremium") if benefits.get("waiverOfPremium") is not None else "",
    }

    premium = _section(body, "premiumCalculation")
    doc["premiumCalculation"] = {
        "baseRatePerThousand": _number(premium.get("baseRatePerThousand"), "premiumCalculation.baseRatePerThousand"),
        "ageFactor": premium.get("ageFactor") or {},
        "smokerSurchargePercent": _number(
            premium.get("smokerSurchargePercent"), "premiumCalculation.smokerSurchargePercent"
        ),
        "formula": premium.get("formula") if premium.get("formula") is not None else "",
    }

    for field in LIST_FIELDS:
        value = body.get(field, [])
        if isinstance(value, list):
            doc[field] = value

    if "renewable" in body:
        doc["renewable"] = bool(body["renewable"])
    if "convertible" in body:
        doc["convertible"] = bool(body["convertible"])

    return doc
