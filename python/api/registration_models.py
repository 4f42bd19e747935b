"""
Business registration validators

One request model per typed registration table (exchange, stablecoin,
DeFi protocol, NFT marketplace, crypto fund). JSON sub-documents are typed
so malformed bags are rejected with field errors, while extra keys are
kept so the stored document matches what the client sent.
"""

import re
from datetime import date
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import EmailStr, Field, field_validator

from api.models import ApiModel, Number, SubDocument, validate_url

YEAR_RE = re.compile(r'^\d{4}$')
MIN_YEAR_ESTABLISHED = 1990

SupportedBlockchain = Literal["Ethereum", "Bitcoin", "Binance Smart Chain", "Solana", "Polygon"]

# Forms send either a list or an object for these bags
JsonBag = Union[Dict[str, Any], List[Any]]


def validate_year(value: str) -> str:
    """4-digit year between 1990 and the current year inclusive."""
    if not YEAR_RE.match(value):
        raise ValueError("Year must be a 4-digit number")
    year = int(value)
    current_year = date.today().year
    if not MIN_YEAR_ESTABLISHED <= year <= current_year:
        raise ValueError(f"Year must be between {MIN_YEAR_ESTABLISHED} and {current_year}")
    return value


# ============================================
# EXCHANGE
# ============================================

class TradingPair(SubDocument):
    pair: str
    volume: Number
    volatility: Number


class LeverageAndMargin(SubDocument):
    max_leverage: Number
    margin_accounts_percentage: Number


class HftActivityMetrics(SubDocument):
    hft_bots_allowed: bool
    hft_volume_percentage: Number


class WashTradingDetection(SubDocument):
    automated_bot_detection: bool
    time_stamp_granularity: Literal["milliseconds", "seconds"]
    spoofing_detection: bool


class KycVerificationMetrics(SubDocument):
    verified_users: Number
    non_verified_users: Number
    high_risk_jurisdiction_percentage: Number


class SanctionsCompliance(SubDocument):
    ofac_compliant: bool
    fatf_compliant: bool
    eu_compliant: bool


class ExchangeCustody(SubDocument):
    cold_storage_percentage: Number
    hot_wallet_percentage: Number
    user_fund_segregation: bool


class ExchangeInsurance(SubDocument):
    has_insurance: bool
    coverage_limit: Optional[Number] = None
    last_penetration_test: Optional[str] = None


class BlockchainAnalytics(SubDocument):
    real_time_analytics: bool
    proof_of_reserves: bool
    monitoring_tools: List[str]


class ExchangeRegistration(ApiModel):
    """Exchange intake form."""
    exchange_name: str = Field(..., min_length=2)
    legal_entity_name: str = Field(..., min_length=2)
    registration_number: str = Field(..., min_length=1)
    headquarters_location: str = Field(..., min_length=2)
    website_url: str
    year_established: str
    exchange_type: Literal["CEX", "DEX"]
    regulatory_licenses: Optional[str] = None

    compliance_contact_name: str = Field(..., min_length=2)
    compliance_contact_email: EmailStr
    compliance_contact_phone: str = Field(..., min_length=10)

    trading_pairs: Optional[List[TradingPair]] = None
    leverage_and_margin: Optional[LeverageAndMargin] = None
    hft_activity_metrics: Optional[HftActivityMetrics] = None
    wash_trading_detection: Optional[WashTradingDetection] = None
    security_measures: Optional[Dict[str, Any]] = None
    risk_management: Optional[Dict[str, Any]] = None
    kyc_verification_metrics: Optional[KycVerificationMetrics] = None
    sanctions_compliance: Optional[SanctionsCompliance] = None
    custody_arrangements: Optional[ExchangeCustody] = None
    insurance_coverage: Optional[ExchangeInsurance] = None
    supported_blockchains: Optional[List[SupportedBlockchain]] = None
    blockchain_analytics: Optional[BlockchainAnalytics] = None

    _check_urls = field_validator('website_url')(validate_url)
    _check_year = field_validator('year_established')(validate_year)


# ============================================
# STABLECOIN
# ============================================

class StablecoinRegistration(ApiModel):
    """Stablecoin issuer intake form."""
    stablecoin_name: str = Field(..., min_length=2)
    token_symbol: str = Field(..., min_length=1, max_length=20)
    issuer_name: str = Field(..., min_length=2)
    registration_number: Optional[str] = None
    jurisdiction: str = Field(..., min_length=2)
    website_url: str
    compliance_officer_email: EmailStr

    backing_asset_type: str = "Fiat"
    backing_asset_details: Optional[str] = None
    pegged_to: str = "USD"
    total_supply: Optional[str] = None
    reserve_ratio: Optional[str] = None
    custodian_name: Optional[str] = None

    audit_provider: Optional[str] = None
    attestation_method: Optional[str] = None
    redemption_policy: Optional[str] = None
    redemption_frequency: Optional[str] = None

    central_bank_partnership: bool = False
    is_regulated: bool = False
    has_market_makers: bool = False
    has_travel_rule: bool = False
    aml_policy_url: Optional[str] = None

    reserve_details: Optional[Dict[str, Any]] = None
    custodian_details: Optional[Dict[str, Any]] = None
    audit_information: Optional[Dict[str, Any]] = None
    contract_addresses: Optional[List[Any]] = None
    blockchain_platforms: Optional[List[str]] = None
    chain_ids: Optional[List[Union[int, str]]] = None

    _check_urls = field_validator('website_url', 'aml_policy_url')(validate_url)


# ============================================
# DEFI PROTOCOL
# ============================================

class DefiProtocolRegistration(ApiModel):
    """DeFi protocol intake form."""
    protocol_name: str = Field(..., min_length=2)
    protocol_type: str = "Lending"
    website_url: str

    smart_contract_addresses: Optional[List[Any]] = None
    supported_tokens: Optional[List[Any]] = None
    blockchain_networks: Optional[List[str]] = None
    security_audits: Optional[JsonBag] = None
    insurance_coverage: Optional[Dict[str, Any]] = None
    risk_management: Optional[Dict[str, Any]] = None
    governance_structure: Optional[Dict[str, Any]] = None
    tokenomics: Optional[Dict[str, Any]] = None

    _check_urls = field_validator('website_url')(validate_url)


# ============================================
# NFT MARKETPLACE
# ============================================

class NftMarketplaceRegistration(ApiModel):
    """NFT marketplace intake form."""
    marketplace_name: str = Field(..., min_length=2)
    business_entity: str = Field(..., min_length=2)
    website_url: str

    supported_standards: Optional[List[str]] = None
    blockchain_networks: Optional[List[str]] = None
    smart_contracts: Optional[JsonBag] = None
    royalty_enforcement: Optional[Dict[str, Any]] = None
    listing_policies: Optional[Dict[str, Any]] = None
    moderation_procedures: Optional[Dict[str, Any]] = None
    copyright_policies: Optional[Dict[str, Any]] = None
    aml_policies: Optional[Dict[str, Any]] = None

    _check_urls = field_validator('website_url')(validate_url)


# ============================================
# CRYPTO FUND
# ============================================

class AssetAllocation(SubDocument):
    bitcoin: Number = 0
    ethereum: Number = 0
    other_l1: Number = 0
    defi: Number = 0
    nft: Number = 0
    stablecoin: Number = 0
    other: Number = 0

    @field_validator('*')
    @classmethod
    def validate_share(cls, v):
        if isinstance(v, (int, float)) and not 0 <= v <= 100:
            raise ValueError("Allocation share must be between 0 and 100")
        return v


class FundRiskProfile(SubDocument):
    risk_level: Literal["Low", "Medium", "High", "Very High"] = "Medium"
    volatility_target: Optional[str] = None
    max_drawdown: Optional[str] = None
    risk_management: Optional[str] = None


class FundCustody(SubDocument):
    custodian_name: Optional[str] = None
    cold_storage: bool = False
    insurance_details: Optional[str] = None
    jurisdiction_of_custody: Optional[str] = None


class ValuationMethods(SubDocument):
    methodology: Optional[str] = None
    frequency: Optional[str] = None
    third_party_valuation: bool = False


class FundLicenses(SubDocument):
    licenses: List[str] = Field(default_factory=list)
    registration_numbers: Dict[str, str] = Field(default_factory=dict)


class AmlProcedures(SubDocument):
    kyc_provider: Optional[str] = None
    ongoing_monitoring: bool = False
    travel_rule: bool = False


class ServicingProviders(SubDocument):
    administrator: Optional[str] = None
    auditor: Optional[str] = None
    legal_counsel: Optional[str] = None
    tax_advisor: Optional[str] = None


class RestrictedInvestors(SubDocument):
    restricted_countries: List[str] = Field(default_factory=list)
    investor_restrictions: Optional[str] = None


class CryptoFundRegistration(ApiModel):
    """Crypto fund intake form."""
    fund_name: str = Field(..., min_length=2)
    fund_type: str = "Hedge Fund"
    registration_number: Optional[str] = None
    jurisdiction: str = Field(..., min_length=2)
    jurisdiction_id: Optional[int] = None
    legal_entity_type: str = "Limited Partnership"
    incorporation_date: Optional[str] = None
    website_url: Optional[str] = None

    contact_email: EmailStr
    contact_phone: Optional[str] = None
    aum: Optional[str] = None
    fund_currency: str = "USD"
    minimum_investment: Optional[str] = None
    redemption_terms: Optional[str] = None
    target_returns: Optional[str] = None
    management_fee: Optional[str] = None
    performance_fee: Optional[str] = None

    investment_strategy: Optional[Dict[str, Any]] = None
    asset_allocation: Optional[AssetAllocation] = None
    risk_profile: Optional[FundRiskProfile] = None
    custody_arrangements: Optional[FundCustody] = None
    valuation_methods: Optional[ValuationMethods] = None
    regulatory_licenses: Optional[FundLicenses] = None
    aml_procedures: Optional[AmlProcedures] = None
    servicing_providers: Optional[ServicingProviders] = None
    restricted_investors: Optional[RestrictedInvestors] = None

    _check_urls = field_validator('website_url')(validate_url)

    @field_validator('jurisdiction_id')
    @classmethod
    def drop_unset_jurisdiction(cls, v: Optional[int]) -> Optional[int]:
        # the form posts 0 when no jurisdiction is picked
        return v or None


# URL segment -> request model, keyed like BUSINESS_REGISTRATION_MODELS
REGISTRATION_VALIDATORS: Dict[str, Type[ApiModel]] = {
    'exchange': ExchangeRegistration,
    'stablecoin': StablecoinRegistration,
    'defi': DefiProtocolRegistration,
    'nft': NftMarketplaceRegistration,
    'fund': CryptoFundRegistration,
}
