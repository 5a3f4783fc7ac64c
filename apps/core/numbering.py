"""Human-readable document numbers: <PREFIX><yymmdd><daily sequence>."""

from django.db import transaction, IntegrityError
from django.utils import timezone

MAX_NUMBER_ATTEMPTS = 5


def next_document_number(prefix: str, model, field: str) -> str:
    today = timezone.localdate()
    stem  = f"{prefix}{today:%y%m%d}"
    sequence = model.objects.filter(**{f"{field}__startswith": stem}).count() + 1
    number = f"{stem}{sequence:04d}"
    while model.objects.filter(**{field: number}).exists():
        sequence += 1
        number = f"{stem}{sequence:04d}"
    return number


def create_numbered(model, field: str, prefix: str, **values):
    """
    Insert a row under the next free document number.

    Two concurrent inserts can pick the same number; the loser's savepoint is
    rolled back and it retries with a fresh number. An IntegrityError that is
    not a number collision propagates unchanged.
    """
    for attempt in range(MAX_NUMBER_ATTEMPTS):
        number = next_document_number(prefix, model, field)
        try:
            with transaction.atomic():
                return model.objects.create(**{field: number}, **values)
        except IntegrityError:
            if not model.objects.filter(**{field: number}).exists():
                raise
    raise IntegrityError(f"No free {prefix} number after {MAX_NUMBER_ATTEMPTS} attempts")
