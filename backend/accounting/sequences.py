# accounting/sequences.py
from django.db import IntegrityError, transaction

from accounting.models import CompanySequence


def next_company_sequence(company, name: str) -> int:
    """
    Allocate the next sequence value for a company/name pair.
    Uses select_for_update to avoid concurrent duplicates; must run inside
    a transaction.
    """
    try:
        seq = CompanySequence.objects.select_for_update().get(
            company=company,
            name=name,
        )
    except CompanySequence.DoesNotExist:
        try:
            with transaction.atomic():
                seq = CompanySequence.objects.create(
                    company=company,
                    name=name,
                    next_value=1,
                )
        except IntegrityError:
            seq = CompanySequence.objects.select_for_update().get(
                company=company,
                name=name,
            )

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return value
