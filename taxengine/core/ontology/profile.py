"""Business profile model for rule evaluation."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


class BusinessProfile(BaseModel):
    """Flat description of one business at evaluation time.

    Conditions address fields by their camelCase names, which is also the
    shape produced by ``to_flat_dict``.

    Example:
        {
            "legalForm": "company",
            "sector": "retail",
            "estimatedTurnover": 45000000,
            "vatRegistered": true,
            "employeeCount": 12
        }
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        strict=True,
    )

    # Registration
    legal_form: str | None = None
    sector: str | None = None
    state: str | None = None
    tin: str | None = None
    cac_number: str | None = None

    # Size
    estimated_turnover_band: str | None = None
    estimated_turnover: float | None = None
    annual_turnover_ngn: float | None = Field(None, alias="annualTurnoverNGN")
    fixed_assets_ngn: float | None = Field(None, alias="fixedAssetsNGN")
    employee_count: int | None = None

    # Accounting year
    accounting_year_end_month: int | None = Field(None, ge=1, le=12)
    accounting_year_end_day: int | None = Field(None, ge=1, le=31)

    # Flags
    vat_registered: bool | None = None
    is_professional_services: bool | None = None
    claims_tax_incentives: bool | None = None
    is_non_resident: bool | None = None
    sells_into_nigeria: bool | None = None
    einvoicing_enabled: bool | None = None

    # Flexible additional fields
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_flat_dict(cls, data: Mapping[str, Any]) -> BusinessProfile:
        """Build a profile from a flat record.

        Unknown keys, and values a typed field rejects (``"yes"`` for a
        flag, ``"50000000"`` for an amount), are kept unchanged in ``extra``
        so conditions see exactly what the caller supplied.
        """
        known: dict[str, Any] = {}
        extra: dict[str, Any] = dict(data.get("extra") or {})
        aliases = {
            (info.alias or name): name
            for name, info in cls.model_fields.items()
            if name != "extra"
        }
        for key, value in data.items():
            if key == "extra":
                continue
            if key in aliases:
                known[aliases[key]] = value
            elif key in cls.model_fields:
                known[key] = value
            else:
                extra[key] = value

        while True:
            try:
                return cls(extra=extra, **known)
            except ValidationError as exc:
                rejected = {
                    aliases.get(error["loc"][0], error["loc"][0])
                    for error in exc.errors()
                    if error["loc"]
                }.intersection(known)
                if not rejected:
                    raise
                for name in rejected:
                    extra[cls.model_fields[name].alias or name] = known.pop(name)

    def get(self, field: str, default: Any = None) -> Any:
        """Get a field value by its camelCase name, falling back to extra."""
        return self.to_flat_dict().get(field, default)

    def has(self, field: str) -> bool:
        """Check if a field exists and is not None."""
        return field in self.to_flat_dict()

    def to_flat_dict(self) -> dict[str, Any]:
        """Convert to the flat camelCase record conditions are evaluated against."""
        result = {}
        for field_name, info in type(self).model_fields.items():
            if field_name == "extra":
                continue
            value = getattr(self, field_name)
            if value is not None:
                result[info.alias or field_name] = value
        result.update(self.extra)
        return result
