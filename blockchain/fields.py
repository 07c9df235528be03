from decimal import Decimal, InvalidOperation, localcontext

from django.core.exceptions import ValidationError
from django.db import models

from .units import PRECISE_CONTEXT


class PreciseDecimalField(models.Field):
    """
    A Decimal stored as its plain string form.

    Keeps every digit on every database backend (SQLite's NUMERIC affinity
    would otherwise round through a float). Values are normalised to
    `decimal_places` digits when saved.
    """
    description = "Arbitrary-precision decimal stored as text"

    def __init__(self, *args, decimal_places=18, **kwargs):
        self.decimal_places = decimal_places
        kwargs.setdefault('max_length', 100)
        super().__init__(*args, **kwargs)

    def deconstruct(self):
        name, path, args, kwargs = super().deconstruct()
        kwargs['decimal_places'] = self.decimal_places
        if kwargs.get('max_length') == 100:
            del kwargs['max_length']
        return name, path, args, kwargs

    def get_internal_type(self):
        return 'CharField'

    def to_python(self, value):
        if value is None or isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"'{value}' is not a valid decimal")

    def from_db_value(self, value, expression, connection):
        if value is None or value == '':
            return None
        return Decimal(value)

    def get_prep_value(self, value):
        value = self.to_python(value)
        if value is None:
            return None
        with localcontext(PRECISE_CONTEXT):
            return format(value.quantize(Decimal(1).scaleb(-self.decimal_places)), 'f')
