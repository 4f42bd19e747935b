"""Request payload builders shared by the API tests."""

import copy

DEFAULT_PASSWORD = "Sup3r$ecretPass"

TOKEN_CONTRACT = "0x52908400098527886E0F7030069857D2E4169EE7"


def registration_body(username: str, **overrides) -> dict:
    body = {
        "username": username,
        "password": DEFAULT_PASSWORD,
        "email": f"{username}@example.com",
        "companyName": f"{username.title()} Holdings",
    }
    body.update(overrides)
    return body


# One valid intake form per business type, with nested JSON documents
BUSINESS_PAYLOADS = {
    "exchange": {
        "exchangeName": "Harbor Exchange",
        "legalEntityName": "Harbor Exchange Pte Ltd",
        "registrationNumber": "SG-2019-00421",
        "headquartersLocation": "Singapore",
        "websiteUrl": "https://harbor.example.com",
        "yearEstablished": "2019",
        "exchangeType": "CEX",
        "complianceContactName": "Mei Tan",
        "complianceContactEmail": "compliance@harbor.example.com",
        "complianceContactPhone": "+65 6123 4567",
        "tradingPairs": [
            {"pair": "BTC/USDT", "volume": 1250000.5, "volatility": 2.4},
            {"pair": "ETH/USDT", "volume": 830000, "volatility": 3},
        ],
        "leverageAndMargin": {"maxLeverage": 10, "marginAccountsPercentage": 12.5},
        "washTradingDetection": {
            "automatedBotDetection": True,
            "timeStampGranularity": "milliseconds",
            "spoofingDetection": True,
        },
        "kycVerificationMetrics": {
            "verifiedUsers": 48210,
            "nonVerifiedUsers": 310,
            "highRiskJurisdictionPercentage": 0.7,
        },
        "sanctionsCompliance": {"ofacCompliant": True, "fatfCompliant": True, "euCompliant": False},
        "custodyArrangements": {
            "coldStoragePercentage": 95,
            "hotWalletPercentage": 5,
            "userFundSegregation": True,
            "custodian": "in-house",
        },
        "supportedBlockchains": ["Ethereum", "Bitcoin", "Solana"],
        "blockchainAnalytics": {
            "realTimeAnalytics": True,
            "proofOfReserves": True,
            "monitoringTools": ["Chainalysis", "Elliptic"],
        },
        "securityMeasures": {"twoFactor": True, "withdrawalWhitelist": ["email", "totp"]},
    },
    "stablecoin": {
        "stablecoinName": "Harbor Dollar",
        "tokenSymbol": "HUSD",
        "issuerName": "Harbor Issuance Ltd",
        "jurisdiction": "Singapore",
        "websiteUrl": "https://husd.example.com",
        "complianceOfficerEmail": "officer@husd.example.com",
        "peggedTo": "USD",
        "isRegulated": True,
        "reserveDetails": {"cash": 40, "treasuries": 60, "breakdown": [{"asset": "T-Bill", "share": 60}]},
        "contractAddresses": [{"chain": "Ethereum", "address": TOKEN_CONTRACT}],
        "blockchainPlatforms": ["Ethereum", "Polygon"],
        "chainIds": [1, 137],
    },
    "defi": {
        "protocolName": "Tidepool",
        "protocolType": "DEX",
        "websiteUrl": "https://tidepool.example.com",
        "smartContractAddresses": [TOKEN_CONTRACT],
        "blockchainNetworks": ["Ethereum"],
        "securityAudits": [{"auditor": "Trail of Bits", "date": "2024-11-02", "findings": 3}],
        "governanceStructure": {"model": "DAO", "token": "TIDE", "quorum": 0.04},
        "tokenomics": {"totalSupply": 1000000000, "treasuryShare": 0.2},
    },
    "nft": {
        "marketplaceName": "Gallery Nine",
        "businessEntity": "Gallery Nine LLC",
        "websiteUrl": "https://gallery9.example.com",
        "supportedStandards": ["ERC-721", "ERC-1155"],
        "blockchainNetworks": ["Ethereum", "Polygon"],
        "smartContracts": {"marketplace": TOKEN_CONTRACT},
        "royaltyEnforcement": {"enforced": True, "defaultBps": 500},
        "amlPolicies": {"thresholdUsd": 10000, "screening": ["OFAC", "UN"]},
    },
    "fund": {
        "fundName": "Lighthouse Digital Fund",
        "jurisdiction": "Cayman Islands",
        "contactEmail": "ir@lighthouse.example.com",
        "fundType": "Hedge Fund",
        "assetAllocation": {"bitcoin": 45, "ethereum": 30, "stablecoin": 25},
        "riskProfile": {"riskLevel": "High", "maxDrawdown": "35%"},
        "regulatoryLicenses": {"licenses": ["CIMA"], "registrationNumbers": {"CIMA": "1234567"}},
        "servicingProviders": {"administrator": "Apex", "auditor": "KPMG"},
        "investmentStrategy": {"style": "long-biased", "rebalancing": "monthly"},
    },
}


def business_payload(registration_type: str, **overrides) -> dict:
    payload = copy.deepcopy(BUSINESS_PAYLOADS[registration_type])
    payload.update(overrides)
    return payload


def policy_payload(**overrides) -> dict:
    payload = {
        "name": "AML Policy",
        "description": "Anti money laundering controls",
        "type": "AML",
        "content": "All customers are screened before onboarding.",
    }
    payload.update(overrides)
    return payload


def token_payload(**overrides) -> dict:
    payload = {
        "tokenName": "Harbor Gold",
        "tokenSymbol": "HGLD",
        "tokenCategory": "REAL_WORLD_ASSET",
        "tokenStandard": "ERC-20",
        "issuerName": "Harbor Metals",
        "issuerLegalEntity": "Harbor Metals AG",
        "blockchainNetworks": ["Ethereum"],
        "smartContracts": [{"network": "Ethereum", "address": TOKEN_CONTRACT}],
        "totalSupply": 1000000,
        "description": "Token backed one to one by allocated gold bars.",
        "assetBackingDetails": {"asset": "gold", "custodian": "Vault AG", "auditFrequency": "monthly"},
    }
    payload.update(overrides)
    return payload


def jurisdiction_document(name: str = "Singapore", **overrides) -> dict:
    """Import document exercising every child section."""
    document = {
        "jurisdiction": {
            "name": name,
            "region": "Asia Pacific",
            "riskLevel": "low",
            "favorabilityScore": 85,
            "isoCode": "SG",
            "currencyCode": "SGD",
            "isFatfMember": True,
            "centralBankUrl": "https://www.mas.gov.sg",
        },
        "regulatoryBodies": [
            {"name": "Monetary Authority of Singapore", "websiteUrl": "https://www.mas.gov.sg",
             "authorityLevel": "national"},
        ],
        "laws": [
            {"title": "Payment Services Act 2019", "abbreviation": "PSA", "lawType": "Statute",
             "regulatoryBodyName": "Monetary Authority of Singapore", "effectiveDate": "2020-01-28"},
        ],
        "obligations": [
            {"title": "Annual AML/CFT audit", "lawTitle": "Payment Services Act 2019",
             "frequency": "annually", "dueByDay": 31, "penaltyAmount": "100000.00"},
            {"title": "Suspicious transaction reporting", "frequency": "ad hoc"},
        ],
        "taxationRule": {"incomeTaxApplicable": True, "capitalGainsTax": "None", "vatApplicable": False},
        "reportingObligations": [{"type": "STR", "frequency": "ad hoc"}],
        "regulatoryUpdates": [{"updateTitle": "DTSP licensing regime", "updateDate": "2025-06-30"}],
        "tags": ["fatf", "licensing"],
        "keywords": ["MAS", "PSA"],
    }
    document.update(overrides)
    return document


def checklist_document() -> dict:
    """Two categories, listed out of order so sequencing is visible."""
    return {
        "categories": [
            {
                "name": "AML/CTF Compliance",
                "sequence": 2,
                "items": [
                    {"task": "Appoint an MLRO", "responsible": "Board", "sequence": 2},
                    {"task": "Adopt an AML policy", "responsible": "Compliance Officer", "sequence": 1},
                ],
            },
            {
                "name": "Licensing",
                "description": "Licences needed before launch",
                "sequence": 1,
                "items": [
                    {"task": "Obtain a VARA licence", "responsible": "Legal", "notes": "Dubai only", "sequence": 1},
                ],
            },
        ],
    }
