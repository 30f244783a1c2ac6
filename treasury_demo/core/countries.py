"""
Country configuration for demo accounts.

Maps each supported country to its settlement currency and a fake address
that passes Stripe's test-mode address checks. Per-product overrides for
countries where the default address is rejected live in ADDRESS_OVERRIDES.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .models import FinancialProduct, SupportedCountry


@dataclass(frozen=True)
class FakeAddress:
    """City and postal code used when fabricating an address."""

    city: str
    postal_code: str
    state: Optional[str] = None


@dataclass(frozen=True)
class CountryConfig:
    """Static configuration of a supported country."""

    currency: str  # ISO 4217, lower case as Stripe expects
    fake_address: FakeAddress


COUNTRY_CONFIG: Dict[SupportedCountry, CountryConfig] = {
    SupportedCountry.US: CountryConfig("usd", FakeAddress("San Francisco", "94111")),
    SupportedCountry.GB: CountryConfig("gbp", FakeAddress("London", "SW1A 1AA")),
    SupportedCountry.AT: CountryConfig("eur", FakeAddress("Wien", "1010")),
    SupportedCountry.BE: CountryConfig("eur", FakeAddress("Antwerpen", "2000")),
    SupportedCountry.CY: CountryConfig("eur", FakeAddress("Nicosia", "1010")),
    SupportedCountry.DE: CountryConfig("eur", FakeAddress("Hamburg", "20095")),
    SupportedCountry.EE: CountryConfig("eur", FakeAddress("Tallinn", "10111")),
    SupportedCountry.ES: CountryConfig("eur", FakeAddress("Barcelona", "08001")),
    SupportedCountry.FI: CountryConfig("eur", FakeAddress("Espoo", "02100")),
    SupportedCountry.FR: CountryConfig("eur", FakeAddress("Lyon", "69001")),
    SupportedCountry.GR: CountryConfig("eur", FakeAddress("Athens", "10431")),
    SupportedCountry.HR: CountryConfig("eur", FakeAddress("Zagreb", "10000")),
    SupportedCountry.IE: CountryConfig("eur", FakeAddress("Dublin", "D02 X285")),
    SupportedCountry.IT: CountryConfig("eur", FakeAddress("Roma", "00184")),
    SupportedCountry.LT: CountryConfig("eur", FakeAddress("Vilnius", "01100")),
    SupportedCountry.LU: CountryConfig("eur", FakeAddress("Esch-sur-Alzette", "4001")),
    SupportedCountry.LV: CountryConfig("eur", FakeAddress("Riga", "LV-1050")),
    SupportedCountry.MT: CountryConfig("eur", FakeAddress("Valletta", "VLT 1010")),
    SupportedCountry.NL: CountryConfig("eur", FakeAddress("Rotterdam", "3011 AA")),
    SupportedCountry.PT: CountryConfig("eur", FakeAddress("Porto", "4000-001")),
    SupportedCountry.SI: CountryConfig("eur", FakeAddress("Ljubljana", "1000")),
    SupportedCountry.SK: CountryConfig("eur", FakeAddress("Bratislava", "811 01")),
}

_missing = set(SupportedCountry) - set(COUNTRY_CONFIG)
if _missing:
    raise RuntimeError(f"Countries without configuration: {sorted(c.value for c in _missing)}")


# Full replacement addresses per (product, country). Anything not listed keeps
# the country's fake address.
ADDRESS_OVERRIDES: Dict[Tuple[FinancialProduct, SupportedCountry], FakeAddress] = {
    (FinancialProduct.EMBEDDED_FINANCE, SupportedCountry.US): FakeAddress(
        "South San Francisco", "94080", state="CA"
    ),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.BE): FakeAddress("Brussel", "1000"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.FI): FakeAddress("Helsinki", "00100"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.FR): FakeAddress("Paris", "75001"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.DE): FakeAddress("Berlin", "10115"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.LU): FakeAddress("Luxemburg", "1111"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.NL): FakeAddress("Amsterdam", "1008 DG"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.PT): FakeAddress("Lisbon", "1000"),
    (FinancialProduct.EXPENSE_MANAGEMENT, SupportedCountry.ES): FakeAddress("Madrid", "28001"),
}


def get_country_config(country: SupportedCountry) -> CountryConfig:
    return COUNTRY_CONFIG[country]


def resolve_fake_address(
    country: SupportedCountry, product: FinancialProduct
) -> FakeAddress:
    """
    Address to fabricate for a country under a given product.

    The override, when one exists, replaces the default as a whole so city and
    postal code always come from the same source.
    """
    override = ADDRESS_OVERRIDES.get((product, country))
    if override is not None:
        return override
    return COUNTRY_CONFIG[country].fake_address
