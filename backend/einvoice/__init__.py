# einvoice/__init__.py
"""
E-invoice app - LHDN MyInvois and PEPPOL document preparation.

Documents are built from sent invoices, validated, and stored with
their payload. Submission to MyInvois is not performed here; prepared
documents stay PENDING.
"""
