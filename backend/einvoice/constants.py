# einvoice/constants.py
"""
MyInvois and PEPPOL code lists.

Only the codes the document builder and validator need are listed; the
full LHDN code tables are published with the MyInvois SDK.
"""

import re

MYINVOIS_ENDPOINTS = {
    "SANDBOX": {
        "api": "https://preprod-api.myinvois.hasil.gov.my",
        "identity": "https://preprod-api.myinvois.hasil.gov.my/connect/token",
    },
    "PRODUCTION": {
        "api": "https://api.myinvois.hasil.gov.my",
        "identity": "https://api.myinvois.hasil.gov.my/connect/token",
    },
}

DOCUMENT_VERSION = "1.0"

DOCUMENT_TYPES = {
    "01": "Invoice",
    "02": "Credit Note",
    "03": "Debit Note",
    "04": "Refund Note",
    "11": "Self-billed Invoice",
    "12": "Self-billed Credit Note",
    "13": "Self-billed Debit Note",
    "14": "Self-billed Refund Note",
}
INVOICE = "01"

TAX_TYPE_CODES = {
    "01": "Sales Tax",
    "02": "Service Tax",
    "03": "Tourism Tax",
    "04": "High-Value Goods Tax",
    "05": "Sales Tax on Low Value Goods",
    "06": "Not Applicable",
    "E": "Tax exemption (where applicable)",
}
EXEMPT_TAX_TYPES = {"06", "E"}

TAX_EXEMPTION_CODES = {
    "E1": "Exempt under Sales Tax (Exemption) Order",
    "E2": "Exempt under Service Tax (Exemption) Order",
    "E3": "Goods not subject to tax",
    "E4": "Services not subject to tax",
}

UNIT_CODES = {
    "C62": "One (unit)",
    "EA": "Each",
    "HR": "Hour",
    "DAY": "Day",
    "MON": "Month",
    "ANN": "Year",
    "KGM": "Kilogram",
    "GRM": "Gram",
    "LTR": "Litre",
    "MLT": "Millilitre",
    "MTR": "Metre",
    "CMT": "Centimetre",
    "MTK": "Square metre",
    "MTQ": "Cubic metre",
    "SET": "Set",
    "PR": "Pair",
    "BX": "Box",
    "PK": "Pack",
    "CT": "Carton",
    "LS": "Lump sum",
}

ID_TYPES = {
    "NRIC": "National Registration Identity Card",
    "PASSPORT": "Passport",
    "BRN": "Business Registration Number",
    "ARMY": "Army ID",
    "TIN": "Tax Identification Number",
}

CURRENCY_CODES = {
    "MYR": "Malaysian Ringgit",
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "SGD": "Singapore Dollar",
    "AUD": "Australian Dollar",
    "JPY": "Japanese Yen",
    "CNY": "Chinese Yuan",
}

COUNTRY_CODES = {
    "MY": "Malaysia",
    "SG": "Singapore",
    "ID": "Indonesia",
    "TH": "Thailand",
    "PH": "Philippines",
    "VN": "Vietnam",
    "US": "United States",
    "GB": "United Kingdom",
    "AU": "Australia",
    "JP": "Japan",
    "CN": "China",
    "IN": "India",
}

STATE_CODES = {
    "01": "Johor",
    "02": "Kedah",
    "03": "Kelantan",
    "04": "Melaka",
    "05": "Negeri Sembilan",
    "06": "Pahang",
    "07": "Pulau Pinang",
    "08": "Perak",
    "09": "Perlis",
    "10": "Selangor",
    "11": "Terengganu",
    "12": "Sabah",
    "13": "Sarawak",
    "14": "Wilayah Persekutuan Kuala Lumpur",
    "15": "Wilayah Persekutuan Labuan",
    "16": "Wilayah Persekutuan Putrajaya",
}

PAYMENT_MEANS_CODES = {
    "01": "Cash",
    "10": "Cash",
    "20": "Cheque",
    "30": "Credit transfer",
    "42": "Payment to bank account",
    "48": "Bank card",
    "49": "Direct debit",
    "57": "Standing agreement",
    "58": "SEPA credit transfer",
    "59": "SEPA direct debit",
}

PEPPOL_CUSTOMIZATION_ID = "urn:cen.eu:en16931:2017#compliant#urn:fdc:peppol.eu:2017:poacc:billing:3.0"
PEPPOL_PROFILE_ID = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"
PEPPOL_DEFAULT_SCHEME = "0195"

TIN_PATTERN = re.compile(r"^[CDGFI]\d{10,12}$")
BRN_PATTERNS = (
    re.compile(r"^\d{12}$"),                # new SSM format
    re.compile(r"^[A-Z]{2}\d{4,7}$"),       # old business format
    re.compile(r"^\d{6,7}-[A-Z]$"),         # ROC
    re.compile(r"^LLP\d{7}-[A-Z]{3}$"),     # LLP
)
MSIC_PATTERN = re.compile(r"^\d{5}$")
